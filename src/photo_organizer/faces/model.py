"""Face descriptor extraction and lazy model initialization."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import List

import numpy as np

from ..exceptions import FaceAnalysisError
from ..models.photo_file import PhotoFile

logger = logging.getLogger(__name__)


class FaceDescriptorExtractor(ABC):
    """Turns a photo into one descriptor vector per detected face.

    Concrete extractors wrap a detection/recognition model. Loading the model
    is expensive and happens through :class:`FaceModelState`.
    """

    @abstractmethod
    def load(self) -> None:
        """Load model weights.

        Raises:
            FaceAnalysisError: If the model cannot be loaded
        """
        pass

    @abstractmethod
    def describe(self, photo: PhotoFile) -> List[np.ndarray]:
        """Return a descriptor for every face found in ``photo``.

        Raises:
            FaceAnalysisError: If the photo cannot be analysed
        """
        pass


class FaceModelState:
    """Owns an extractor and loads it at most once."""

    def __init__(self, extractor: FaceDescriptorExtractor):
        self.extractor = extractor
        self._is_loaded = False
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    def ensure_ready(self) -> FaceDescriptorExtractor:
        """Load the model on first use and return the extractor.

        A failed load leaves the state unloaded so a later call retries.
        """
        if self._is_loaded:
            return self.extractor

        with self._lock:
            if not self._is_loaded:
                try:
                    self.extractor.load()
                except FaceAnalysisError:
                    raise
                except Exception as e:
                    raise FaceAnalysisError(f"Failed to load face models: {e}") from e
                self._is_loaded = True
                logger.info("Face models loaded")
        return self.extractor
