"""ClassicalDiarizationAdapter — speaker diarization from hand-built acoustic features.

No speaker-embedding model is involved: windows are featurized with plain DSP,
voiced windows are clustered by cosine distance, and cluster labels become
speaker turns. Speaker identities are anonymous and local to one recording.
"""

import logging
from typing import Optional

import numpy as np

from domain.models import DiarizationParams, FeatureVector, SpeakerAssignment
from ports.diarization import DiarizationPort
from adapters.classical.clustering import agglomerative_clustering, estimate_num_speakers
from adapters.classical.features import extract_features
from adapters.classical.segmentation import build_segments, merge_segments

logger = logging.getLogger(__name__)


class ClassicalDiarizationAdapter(DiarizationPort):
    def __init__(self, params: Optional[DiarizationParams] = None):
        self._params = params or DiarizationParams()

    @property
    def params(self) -> DiarizationParams:
        return self._params

    def extract_features(self, samples: np.ndarray) -> list[FeatureVector]:
        return extract_features(samples, self._params)

    def assign_speakers(
        self,
        features: list[FeatureVector],
        num_speakers: Optional[int] = None,
    ) -> SpeakerAssignment:
        voiced = [v for v in features if v.has_voice]
        if not voiced:
            return SpeakerAssignment()

        if num_speakers is None:
            k = estimate_num_speakers(
                voiced,
                max_speakers=self._params.max_speakers,
                min_score=self._params.min_silhouette,
            )
        else:
            logger.info(f"Using caller-supplied speaker count: {num_speakers}")
            k = num_speakers

        labels = agglomerative_clustering(voiced, k)
        raw = build_segments(features, labels)
        merged = merge_segments(
            raw,
            merge_gap_ms=self._params.merge_gap_ms,
            min_segment_ms=self._params.min_segment_ms,
        )
        speakers = {seg.speaker_id for seg in merged}
        logger.info(f"Built {len(merged)} segments ({len(raw)} raw) for {len(speakers)} speakers")
        return SpeakerAssignment(segments=merged, num_speakers=k)
