"""Turn per-window cluster labels into speaker turns."""

import logging
from dataclasses import replace
from typing import Sequence

from domain.models import FeatureVector, RawSegment

logger = logging.getLogger(__name__)

MERGE_GAP_MS = 600
MIN_SEGMENT_MS = 500


def speaker_label(cluster: int) -> str:
    return f"SPEAKER_{cluster:02d}"


def build_segments(vectors: Sequence[FeatureVector], labels: Sequence[int]) -> list[RawSegment]:
    """Open a new segment whenever the label changes between voiced windows.

    `labels` holds one entry per voiced vector, in order. Unvoiced windows are
    skipped: they never start a segment and never extend one, so a speaker
    change across silence leaves a gap.

    Analysis windows overlap, so at a speaker change the previous segment's end
    lies past the next one's start. The boundary is moved to the middle of that
    overlap, keeping segments non-overlapping.
    """
    voiced = [v for v in vectors if v.has_voice]
    if len(voiced) != len(labels):
        raise ValueError(f"Got {len(labels)} labels for {len(voiced)} voiced windows")

    segments: list[RawSegment] = []
    current = None
    current_label = None
    for vector, label in zip(voiced, labels):
        if current is None or label != current_label:
            start = vector.start_ms
            if current is not None:
                if current.end_ms > start:
                    boundary = (current.end_ms + start) // 2
                    current.end_ms = boundary
                    start = boundary
                segments.append(current)
            current = RawSegment(speaker_id=speaker_label(label), start_ms=start, end_ms=vector.end_ms)
            current_label = label
        else:
            current.end_ms = vector.end_ms

    if current is not None:
        segments.append(current)
    return segments


def merge_segments(
    segments: Sequence[RawSegment],
    merge_gap_ms: int = MERGE_GAP_MS,
    min_segment_ms: int = MIN_SEGMENT_MS,
) -> list[RawSegment]:
    """Single left-to-right pass over time-ordered segments.

    1. Same speaker as the previous turn and a gap under merge_gap_ms: extend
       the previous turn.
    2. Shorter than min_segment_ms: absorbed into the previous turn whatever its
       speaker. Short blips are treated as clustering noise, which also means a
       genuine one-word interjection at a turn boundary is credited to the
       previous speaker.

    Input segments are not modified.
    """
    if len(segments) <= 1:
        return [replace(s) for s in segments]

    merged = [replace(segments[0])]
    for seg in segments[1:]:
        prev = merged[-1]
        if seg.speaker_id == prev.speaker_id and seg.start_ms - prev.end_ms < merge_gap_ms:
            prev.end_ms = max(prev.end_ms, seg.end_ms)
            continue
        if seg.duration_ms < min_segment_ms:
            prev.end_ms = max(prev.end_ms, seg.end_ms)
            continue
        merged.append(replace(seg))

    if len(merged) != len(segments):
        logger.debug(f"Merged {len(segments)} raw segments into {len(merged)}")
    return merged
