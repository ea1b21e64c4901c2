# src/domain/models.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import numpy as np

from .errors import EmbeddingError


@dataclass
class DocumentMetadata:
    source: str
    uploaded_at: datetime
    word_count: int


@dataclass
class Document:
    """
    A user-supplied text document and its embedding.
    The embedding is replaced in place when embeddings are regenerated.
    """
    id: str
    title: str
    content: str
    metadata: DocumentMetadata
    embedding: Optional[np.ndarray] = field(default=None, repr=False, compare=False)


@dataclass
class SimilarityResult:
    """
    A document ranked against a query. Derived per query, never stored.
    """
    document: Document
    similarity: float

    def __repr__(self) -> str:
        preview = self.document.content[:80].replace("\n", " ")
        return (
            f"SimilarityResult(similarity={self.similarity:.4f}, "
            f"title='{self.document.title}', "
            f"preview='{preview}...')"
        )


@dataclass
class EmbeddingResult:
    """
    Outcome of a single embedding attempt: a vector, or the error that
    prevented one. Lets the caller decide between substituting, retrying
    or propagating.
    """
    vector: Optional[np.ndarray] = field(default=None, repr=False)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.vector is not None

    def unwrap(self) -> np.ndarray:
        if self.ok:
            return self.vector
        raise EmbeddingError(f"Embedding failed: {self.error}") from self.error
