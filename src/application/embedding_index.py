# src/application/embedding_index.py

import threading
from typing import Callable, List, Optional, Sequence
import numpy as np

from src.domain.errors import EmbeddingError, InitializationError
from src.domain.interfaces import EmbeddingBackendPort, FeatureExtractorPort
from src.domain.models import Document, EmbeddingResult, SimilarityResult
from src.infrastructure.similarity import (
    DEFAULT_LIMIT,
    DEFAULT_THRESHOLD,
    cosine_similarity,
    rank_by_similarity,
)
from src.infrastructure.text_processing import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    chunk_text,
    preprocess_text,
)


DEFAULT_MODEL_NAME = "mixedbread-ai/mxbai-embed-xsmall-v1"
EMBEDDING_DIMENSION = 384
ACCELERATED_DEVICE = "cuda"
FALLBACK_DEVICE = "cpu"

PlaceholderFactory = Callable[[int, np.random.Generator], np.ndarray]


def random_placeholder(dimension: int, rng: np.random.Generator) -> np.ndarray:
    """Uniform noise on [-1, 1]. Keeps callers running, but scores become meaningless."""
    return rng.uniform(-1.0, 1.0, size=dimension).astype(np.float32)


class EmbeddingIndex:
    """
    Embedding generation and similarity retrieval over a small in-memory
    document set.

    Lifecycle:
    - The backend is injected and loaded lazily on first use
    - Loading tries the accelerated device first, then the fallback device
    - Concurrent first callers share a single load (single-flight)

    Failure policy:
    - try_generate_embedding() reports failures as an EmbeddingResult
    - generate_embedding() substitutes `placeholder` output and logs the error;
      with placeholder=None it raises EmbeddingError instead
    """

    def __init__(
        self,
        backend: EmbeddingBackendPort,
        model_name: str = DEFAULT_MODEL_NAME,
        accelerated_device: str = ACCELERATED_DEVICE,
        fallback_device: str = FALLBACK_DEVICE,
        dimension: int = EMBEDDING_DIMENSION,
        placeholder: Optional[PlaceholderFactory] = random_placeholder,
        rng: Optional[np.random.Generator] = None,
    ):
        self._backend = backend
        self._model_name = model_name
        self._accelerated_device = accelerated_device
        self._fallback_device = fallback_device
        self._dimension = dimension
        self._placeholder = placeholder
        self._rng = rng if rng is not None else np.random.default_rng()

        self._extractor: Optional[FeatureExtractorPort] = None
        self._device: Optional[str] = None
        self._init_lock = threading.Lock()

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def device(self) -> Optional[str]:
        """Device the extractor runs on, None until initialized."""
        return self._device

    @property
    def is_initialized(self) -> bool:
        return self._extractor is not None

    # ─── Initialization ───────────────────────────────────────────────────────

    def initialize(self) -> None:
        if self._extractor is not None:
            return

        with self._init_lock:
            # Another caller may have finished loading while we waited
            if self._extractor is not None:
                return

            print(f"[EmbeddingIndex] Initializing embedding model '{self._model_name}'...")
            try:
                extractor = self._backend.load(self._model_name, self._accelerated_device)
                device = self._accelerated_device
            except Exception as error:
                print(
                    f"[EmbeddingIndex] ⚠ {self._accelerated_device} not available, "
                    f"falling back to {self._fallback_device}: {error}"
                )
                try:
                    extractor = self._backend.load(self._model_name, self._fallback_device)
                    device = self._fallback_device
                except Exception as fallback_error:
                    print(f"[EmbeddingIndex] Failed to initialize embedding model: {fallback_error}")
                    raise InitializationError(
                        f"Failed to initialize embedding model '{self._model_name}' "
                        f"on '{self._accelerated_device}' or '{self._fallback_device}'."
                    ) from fallback_error

            self._extractor = extractor
            self._device = device
            print(f"[EmbeddingIndex] Embedding model initialized on {device}.")

    # ─── Embedding generation ─────────────────────────────────────────────────

    def try_generate_embedding(self, text: str) -> EmbeddingResult:
        try:
            self.initialize()
            clean_text = preprocess_text(text)
            vector = self._extractor(clean_text, pooling="mean", normalize=True)
        except Exception as error:
            return EmbeddingResult(error=error)

        vector = np.asarray(vector, dtype=np.float32).ravel()
        print(
            f"[EmbeddingIndex] Generated embedding for text "
            f"({len(clean_text)} chars): {vector.shape[0]} dimensions"
        )
        return EmbeddingResult(vector=vector)

    def generate_embedding(self, text: str) -> np.ndarray:
        result = self.try_generate_embedding(text)
        if result.ok:
            return result.vector

        print(f"[EmbeddingIndex] Error generating embedding: {result.error}")
        if self._placeholder is None:
            raise EmbeddingError(f"Embedding failed: {result.error}") from result.error

        print(f"[EmbeddingIndex] ⚠ Substituting a placeholder embedding ({self._dimension} dimensions).")
        return self._placeholder(self._dimension, self._rng)

    def generate_embeddings(self, texts: Sequence[str]) -> List[np.ndarray]:
        """One embedding per text, in order, one backend call at a time."""
        return [self.generate_embedding(text) for text in texts]

    # ─── Similarity ───────────────────────────────────────────────────────────

    @staticmethod
    def calculate_similarity(a: Sequence[float], b: Sequence[float]) -> float:
        return cosine_similarity(a, b)

    @staticmethod
    def find_similar_documents(
        query_embedding: Sequence[float],
        documents: Sequence[Document],
        threshold: float = DEFAULT_THRESHOLD,
        limit: int = DEFAULT_LIMIT,
    ) -> List[SimilarityResult]:
        return rank_by_similarity(query_embedding, documents, threshold, limit)

    # ─── Text ─────────────────────────────────────────────────────────────────

    @staticmethod
    def preprocess_text(text: str) -> str:
        return preprocess_text(text)

    @staticmethod
    def chunk_text(
        text: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> List[str]:
        return chunk_text(text, chunk_size, overlap)
