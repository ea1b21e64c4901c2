# src/domain/errors.py


class EmbeddingError(RuntimeError):
    """Raised when an embedding cannot be produced."""


class InitializationError(EmbeddingError):
    """
    Neither the accelerated nor the fallback backend could be acquired.
    The index stays uninitialized, so the next call retries.
    """


class DimensionMismatchError(EmbeddingError, ValueError):
    """Two vectors of different length were compared."""


class ConfigurationError(ValueError):
    """Invalid chunking or ranking parameters."""
