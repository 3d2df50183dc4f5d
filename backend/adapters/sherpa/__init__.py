"""Sherpa-ONNX adapter for offline transducer transcription."""

from .transcription import SherpaTranscriptionAdapter

__all__ = ["SherpaTranscriptionAdapter"]
