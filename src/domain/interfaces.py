# src/domain/interfaces.py

from abc import ABC, abstractmethod
import numpy as np


class FeatureExtractorPort(ABC):
    """
    A loaded feature-extraction model: text in, one pooled vector out.
    """

    @abstractmethod
    def __call__(
        self,
        text: str,
        pooling: str = "mean",
        normalize: bool = True,
    ) -> np.ndarray: ...


class EmbeddingBackendPort(ABC):
    """
    Port for any embedding backend.
    Loading is the only concern here. Device probing and model download
    belong to the adapter.
    """

    @abstractmethod
    def load(self, model_name: str, device: str) -> FeatureExtractorPort:
        """
        Acquire an extractor for `model_name` on `device`.
        Raises any exception when the device or model is unavailable.
        """
        ...
