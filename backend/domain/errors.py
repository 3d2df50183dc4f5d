"""Exceptions raised by the diarization pipeline."""

from typing import Any, Dict, Optional


class DiarizationError(Exception):
    """A run could not produce a result.

    Raised by execute() when the pipeline ends with a failure event, and by
    adapters for conditions that must abort the whole run.
    """

    def __init__(self, message: str, error_code: str = "DIARIZATION_ERROR", details: Optional[Dict] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class InvalidRequestError(DiarizationError):
    """The request itself is unusable (bad speaker count, undecodable audio)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="INVALID_REQUEST",
            details={"field": field} if field else None,
        )


class ModelLoadError(DiarizationError):
    """The ASR backend failed to load."""

    def __init__(self, model_name: str, reason: Optional[str] = None):
        super().__init__(
            message=f"Failed to load ASR model '{model_name}'",
            error_code="MODEL_LOAD_ERROR",
            details={"model": model_name, "reason": reason or "unknown"},
        )
