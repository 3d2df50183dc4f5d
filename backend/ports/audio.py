"""AudioProcessingPort — abstract interface for decoding uploads to samples."""

from abc import ABC, abstractmethod

import numpy as np


class AudioProcessingPort(ABC):
    @abstractmethod
    def convert_to_wav(self, input_path: str, sample_rate: int = 16000) -> str:
        """Convert audio to 16kHz mono WAV. Returns path to converted file."""

    @abstractmethod
    def load_samples(self, input_path: str, sample_rate: int = 16000) -> np.ndarray:
        """Decode any supported file to mono float32 samples at sample_rate."""
