# src/infrastructure/embedding_engine.py
# Device probing lives here; the port only knows model names and device strings

import numpy as np
import torch
from sentence_transformers import SentenceTransformer, models

from src.domain.interfaces import EmbeddingBackendPort, FeatureExtractorPort


class SentenceTransformerExtractor(FeatureExtractorPort):

    def __init__(self, model: SentenceTransformer, pooling: str = "mean"):
        self._model = model
        self._pooling = pooling

    @property
    def pooling(self) -> str:
        return self._pooling

    def __call__(
        self,
        text: str,
        pooling: str = "mean",
        normalize: bool = True,
    ) -> np.ndarray:
        if pooling != self._pooling:
            raise ValueError(
                f"Extractor was built with '{self._pooling}' pooling, "
                f"'{pooling}' requested."
            )
        embedding = self._model.encode(
            text,
            convert_to_numpy=True,
            normalize_embeddings=normalize,
        )
        return np.asarray(embedding, dtype=np.float32).ravel()


class SentenceTransformerBackend(EmbeddingBackendPort):
    """
    Loads a Hugging Face encoder as transformer + explicit pooling head,
    so the pooling mode is what the caller asked for rather than whatever
    the checkpoint ships with.
    """

    def __init__(self, pooling: str = "mean"):
        self._pooling = pooling

    def load(self, model_name: str, device: str) -> SentenceTransformerExtractor:
        _ensure_device_available(device)
        print(f"[EmbeddingEngine] Loading model: {model_name} on {device} ...")
        word_embedding_model = models.Transformer(model_name)
        pooling_model = models.Pooling(
            word_embedding_model.get_word_embedding_dimension(),
            pooling_mode=self._pooling,
        )
        model = SentenceTransformer(
            modules=[word_embedding_model, pooling_model],
            device=device,
        )
        print(f"[EmbeddingEngine] Model ready on {device}.")
        return SentenceTransformerExtractor(model, pooling=self._pooling)


def _ensure_device_available(device: str) -> None:
    """Refuse accelerated devices up front instead of failing mid-load."""
    if device.startswith("cuda") and not torch.cuda.is_available():
        raise RuntimeError("CUDA is not available on this machine.")
    if device == "mps" and not torch.backends.mps.is_available():
        raise RuntimeError("MPS is not available on this machine.")
