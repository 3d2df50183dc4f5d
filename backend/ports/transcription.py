"""TranscriptionPort — the narrow ASR capability the diarization core depends on."""

from abc import ABC, abstractmethod

import numpy as np


class TranscriptionPort(ABC):
    @abstractmethod
    async def load(self) -> None:
        """Load the ASR model. Calling it on a loaded adapter is a no-op."""

    @abstractmethod
    def unload(self) -> None:
        """Release the model handle."""

    @abstractmethod
    async def transcribe(self, audio: np.ndarray, language: str) -> str:
        """Transcribe a float32 mono slice at 16kHz.

        Returns "" for silent or degenerate input. May raise on genuine failures;
        callers isolate those per segment.
        """

    @abstractmethod
    def model_name(self) -> str:
        """Return the human-readable model name for API responses."""

    @abstractmethod
    def is_loaded(self) -> bool:
        """Whether the model has been loaded and is ready for inference."""
