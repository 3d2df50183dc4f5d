"""Domain <-> DTO mappers.

Converts pipeline events (domain dataclasses) to the Pydantic wire DTOs.
"""

from typing import Optional

from domain.models import (
    DiarizationFailure, DiarizationResult, DiarizeSegment, ParticipantSummary,
    PipelineEvent, ProgressEvent, SpeakerStats,
)
from models import (
    DiarizeResponse, DiarizeSegmentDTO, ErrorMessage, ParticipantSummaryDTO,
    ProgressMessage, ResultMessage, SpeakerStatsDTO,
)


def segment_to_dto(seg: DiarizeSegment) -> DiarizeSegmentDTO:
    return DiarizeSegmentDTO(
        id=seg.id,
        speaker_id=seg.speaker_id,
        start_ms=seg.start_ms,
        end_ms=seg.end_ms,
        text=seg.text,
    )


def stats_to_dto(stats: SpeakerStats) -> SpeakerStatsDTO:
    return SpeakerStatsDTO(
        speaker_id=stats.speaker_id,
        talk_time_ms=stats.talk_time_ms,
        turns=stats.turns,
        word_count=stats.word_count,
    )


def summary_to_dto(summary: ParticipantSummary) -> ParticipantSummaryDTO:
    return ParticipantSummaryDTO(
        speaker_id=summary.speaker_id,
        headline=summary.headline,
        bullet_points=list(summary.bullet_points),
        keywords=list(summary.keywords),
    )


def result_to_response(
    result: DiarizationResult,
    model: Optional[str] = None,
    language: Optional[str] = None,
) -> DiarizeResponse:
    return DiarizeResponse(
        segments=[segment_to_dto(s) for s in result.segments],
        speaker_stats=[stats_to_dto(s) for s in result.speaker_stats],
        participant_summaries=[summary_to_dto(s) for s in result.participant_summaries],
        model=model,
        language=language,
    )


def event_to_message(event: PipelineEvent, model: Optional[str] = None, language: Optional[str] = None):
    """Map a pipeline event to its streamed message DTO."""
    if isinstance(event, ProgressEvent):
        return ProgressMessage(progress=event.progress, stage=event.stage.value)
    if isinstance(event, DiarizationFailure):
        return ErrorMessage(error=event.error)
    response = result_to_response(event, model=model, language=language)
    return ResultMessage(**response.model_dump())
