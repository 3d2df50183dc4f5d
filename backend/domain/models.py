"""Framework-agnostic domain models for the diarization engine.

Everything emitted by a run is frozen. The pipeline builds fresh instances per
run and never mutates them after they leave the stage that produced them.
Pydantic DTOs in models.py remain the wire format, with mappers at the boundary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

import numpy as np


class Stage(str, Enum):
    """Stage names reported in progress events."""
    EXTRACTING_FEATURES = "extracting-features"
    CLUSTERING = "clustering"
    LOADING_MODEL = "loading-model"
    TRANSCRIBING = "transcribing"
    SUMMARIZING = "summarizing"


class PipelineState(str, Enum):
    IDLE = "idle"
    EXTRACTING_FEATURES = "extracting-features"
    CLUSTERING = "clustering"
    LOADING_MODEL = "loading-model"
    TRANSCRIBING = "transcribing"
    SUMMARIZING = "summarizing"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class DiarizationParams:
    """Tunables of the classical diarization pipeline."""
    sample_rate: int = 16000
    window_s: float = 1.5
    hop_s: float = 0.75
    frame_size: int = 512
    frame_hop: int = 256
    num_bands: int = 13
    rolloff_threshold: float = 0.85
    vad_energy_threshold: float = 0.005
    max_speakers: int = 5
    min_silhouette: float = 0.1
    merge_gap_ms: int = 600
    min_segment_ms: int = 500
    segment_padding_ms: int = 200
    min_slice_ms: int = 300


@dataclass(frozen=True)
class FeatureVector:
    """Averaged acoustic features of one analysis window."""
    start_ms: int
    end_ms: int
    features: np.ndarray
    has_voice: bool


@dataclass
class RawSegment:
    """A speaker turn from the segment builder, before transcription."""
    speaker_id: str
    start_ms: int
    end_ms: int

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


@dataclass(frozen=True)
class DiarizeSegment:
    """A final speaker turn with its transcribed text (possibly empty)."""
    id: str
    speaker_id: str
    start_ms: int
    end_ms: int
    text: str = ""

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


@dataclass(frozen=True)
class SpeakerStats:
    speaker_id: str
    talk_time_ms: int
    turns: int
    word_count: int


@dataclass(frozen=True)
class ParticipantSummary:
    speaker_id: str
    headline: str
    bullet_points: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()


@dataclass
class SpeakerAssignment:
    """Output of the diarization backend: merged turns and the speaker count used."""
    segments: list[RawSegment] = field(default_factory=list)
    num_speakers: int = 0


@dataclass(frozen=True)
class ProgressEvent:
    progress: int
    stage: Stage


@dataclass(frozen=True)
class DiarizationResult:
    """Terminal success event of a run."""
    segments: tuple[DiarizeSegment, ...] = ()
    speaker_stats: tuple[SpeakerStats, ...] = ()
    participant_summaries: tuple[ParticipantSummary, ...] = ()


@dataclass(frozen=True)
class DiarizationFailure:
    """Terminal failure event of a run. No partial result accompanies it."""
    error: str


PipelineEvent = Union[ProgressEvent, DiarizationResult, DiarizationFailure]
