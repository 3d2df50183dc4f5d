"""Wire DTOs. Field names serialize as camelCase (startMs, speakerStats, ...)."""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DiarizeSegmentDTO(CamelModel):
    """One speaker turn with its transcribed text"""
    id: str
    speaker_id: str
    start_ms: int
    end_ms: int
    text: str = ""


class SpeakerStatsDTO(CamelModel):
    """Per-speaker talk time, turns and word count."""
    speaker_id: str
    talk_time_ms: int
    turns: int
    word_count: int


class ParticipantSummaryDTO(CamelModel):
    speaker_id: str
    headline: str
    bullet_points: List[str] = []
    keywords: List[str] = []


class DiarizeResponse(CamelModel):
    """Successful diarization result"""
    segments: List[DiarizeSegmentDTO]
    speaker_stats: List[SpeakerStatsDTO]
    participant_summaries: List[ParticipantSummaryDTO]
    model: Optional[str] = None
    language: Optional[str] = None


class ProgressMessage(CamelModel):
    type: Literal["diarize-progress"] = "diarize-progress"
    progress: int
    stage: str


class ResultMessage(DiarizeResponse):
    type: Literal["diarize-result"] = "diarize-result"


class ErrorMessage(CamelModel):
    type: Literal["diarize-error"] = "diarize-error"
    error: str
