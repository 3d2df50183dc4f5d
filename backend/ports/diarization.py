"""DiarizationPort — abstract interface for speaker diarization backends."""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from domain.models import FeatureVector, SpeakerAssignment


class DiarizationPort(ABC):
    @abstractmethod
    def extract_features(self, samples: np.ndarray) -> list[FeatureVector]:
        """Turn raw samples into time-ordered feature vectors with voice flags."""

    @abstractmethod
    def assign_speakers(
        self,
        features: list[FeatureVector],
        num_speakers: Optional[int] = None,
    ) -> SpeakerAssignment:
        """Cluster voiced vectors and return merged, time-ordered speaker turns.

        num_speakers bypasses speaker-count estimation when given.
        """
