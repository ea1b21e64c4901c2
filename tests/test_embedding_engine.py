# tests/test_embedding_engine.py

import numpy as np
import pytest
from unittest.mock import MagicMock

from src.infrastructure import embedding_engine
from src.infrastructure.embedding_engine import SentenceTransformerBackend


@pytest.fixture
def fake_sentence_transformers(monkeypatch):
    """Replace model construction so no weights are downloaded."""
    fake_models = MagicMock()
    fake_models.Transformer.return_value.get_word_embedding_dimension.return_value = 384

    fake_model = MagicMock()
    fake_model.encode.return_value = np.ones(384, dtype=np.float64)
    fake_constructor = MagicMock(return_value=fake_model)

    monkeypatch.setattr(embedding_engine, "models", fake_models)
    monkeypatch.setattr(embedding_engine, "SentenceTransformer", fake_constructor)
    return fake_models, fake_constructor, fake_model


def test_load_refuses_cuda_when_unavailable(monkeypatch, fake_sentence_transformers):
    _, fake_constructor, _ = fake_sentence_transformers
    monkeypatch.setattr(embedding_engine.torch.cuda, "is_available", lambda: False)

    with pytest.raises(RuntimeError, match="CUDA"):
        SentenceTransformerBackend().load("test-model", "cuda")

    fake_constructor.assert_not_called()


def test_load_builds_mean_pooling_model_on_cpu(fake_sentence_transformers):
    fake_models, fake_constructor, _ = fake_sentence_transformers

    extractor = SentenceTransformerBackend().load("test-model", "cpu")

    fake_models.Transformer.assert_called_once_with("test-model")
    fake_models.Pooling.assert_called_once_with(384, pooling_mode="mean")
    assert fake_constructor.call_args.kwargs["device"] == "cpu"
    assert extractor.pooling == "mean"


def test_extractor_returns_flat_float32_vector(fake_sentence_transformers):
    _, _, fake_model = fake_sentence_transformers
    extractor = SentenceTransformerBackend().load("test-model", "cpu")

    vector = extractor("hello", pooling="mean", normalize=True)

    assert vector.dtype == np.float32
    assert vector.shape == (384,)
    assert fake_model.encode.call_args.kwargs["normalize_embeddings"] is True


def test_extractor_rejects_other_pooling(fake_sentence_transformers):
    extractor = SentenceTransformerBackend().load("test-model", "cpu")

    with pytest.raises(ValueError, match="pooling"):
        extractor("hello", pooling="cls")
