"""ProgressPort — abstract interface for reporting pipeline progress."""

from abc import ABC, abstractmethod
from typing import Optional


class ProgressPort(ABC):
    @abstractmethod
    def report(
        self,
        job_id: str,
        stage: str,
        progress: int = 0,
        detail: Optional[str] = None,
    ) -> None:
        """Report progress (0-100). stage: extracting-features, clustering, loading-model, transcribing, summarizing."""
