"""faster-whisper adapter for per-segment transcription."""

from .transcription import WhisperTranscriptionAdapter

__all__ = ["WhisperTranscriptionAdapter"]
