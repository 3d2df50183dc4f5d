"""Classical (feature + clustering) diarization backend."""

from .diarization import ClassicalDiarizationAdapter

__all__ = ["ClassicalDiarizationAdapter"]
