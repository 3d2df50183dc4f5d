"""Post-processing for diarized segments.

Functions for speaker statistics, extractive per-speaker summaries,
hallucination detection and speaker relabeling.
"""

import re
import logging
from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, List

from domain.models import (
    DiarizationResult, DiarizeSegment, ParticipantSummary, SpeakerStats,
)

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 5
MAX_BULLET_POINTS = 3
HEADLINE_CHARS = 100
MIN_SENTENCE_CHARS = 10
MIN_KEYWORD_CHARS = 3

# Spanish and English function words, lowercase.
STOPWORDS = frozenset({
    "el", "la", "los", "las", "un", "una", "unos", "unas", "de", "del", "al",
    "en", "y", "o", "a", "que", "es", "se", "no", "si", "por", "con", "para",
    "su", "lo", "como", "más", "pero", "sus", "le", "ya", "fue", "este", "ha",
    "me", "sin", "sobre", "ser", "también", "entre", "cuando", "muy", "son",
    "the", "is", "are", "was", "were", "be", "been", "being", "have", "has",
    "had", "do", "does", "did", "will", "would", "could", "should", "may",
    "might", "shall", "can", "and", "or", "but", "in", "on", "at", "to",
    "for", "of", "with", "by", "from", "not", "this", "that", "it", "as",
})

_SENTENCE_END = re.compile(r"[.!?]+")

HALLUCINATION_REPEAT_THRESHOLD = 3
MIN_UNIQUE_WORDS_RATIO = 0.25


def compute_speaker_statistics(segments: Iterable[DiarizeSegment]) -> List[SpeakerStats]:
    """Per-speaker talk time, turn count and word count, most talkative first."""
    totals: Dict[str, dict] = {}
    for seg in segments:
        entry = totals.setdefault(seg.speaker_id, {"talk_time_ms": 0, "turns": 0, "word_count": 0})
        entry["talk_time_ms"] += seg.end_ms - seg.start_ms
        entry["turns"] += 1
        entry["word_count"] += len(seg.text.split())

    stats = [SpeakerStats(speaker_id=spk, **data) for spk, data in totals.items()]
    stats.sort(key=lambda s: s.talk_time_ms, reverse=True)
    return stats


def split_sentences(text: str) -> List[str]:
    """Sentences longer than MIN_SENTENCE_CHARS, in text order."""
    parts = (part.strip() for part in _SENTENCE_END.split(text))
    return [part for part in parts if len(part) > MIN_SENTENCE_CHARS]


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """Most frequent non-stopword tokens. Ties keep first-seen order."""
    counts = Counter(
        word for word in text.lower().split()
        if len(word) >= MIN_KEYWORD_CHARS and word not in STOPWORDS
    )
    return [word for word, _ in counts.most_common(limit)]


def summarize_text(speaker_id: str, text: str) -> ParticipantSummary:
    sentences = split_sentences(text)
    bullets = sorted(sentences, key=lambda s: len(s.split()), reverse=True)[:MAX_BULLET_POINTS]
    headline = sentences[0][:HEADLINE_CHARS] if sentences else text[:HEADLINE_CHARS]
    return ParticipantSummary(
        speaker_id=speaker_id,
        headline=headline,
        bullet_points=tuple(bullets),
        keywords=tuple(extract_keywords(text)),
    )


def generate_summaries(segments: Iterable[DiarizeSegment]) -> List[ParticipantSummary]:
    """One extractive summary per speaker that said anything.

    Speakers whose segments all have empty text get no summary.
    """
    texts: Dict[str, List[str]] = {}
    for seg in segments:
        if not seg.text.strip():
            continue
        texts.setdefault(seg.speaker_id, []).append(seg.text)

    return [summarize_text(spk, " ".join(parts)) for spk, parts in texts.items()]


def is_hallucination(text: str) -> bool:
    """Detect repetitive, low-information ASR output.

    Flags text whose distinct-word ratio is under MIN_UNIQUE_WORDS_RATIO or
    where any word trigram repeats HALLUCINATION_REPEAT_THRESHOLD times.
    """
    if not text or len(text) < 20:
        return False
    words = [w for w in text.lower().split() if len(w) > 1]
    if len(words) < 4:
        return False

    if len(set(words)) / len(words) < MIN_UNIQUE_WORDS_RATIO:
        return True

    trigrams: Counter = Counter()
    for i in range(len(words) - 2):
        gram = " ".join(words[i:i + 3])
        trigrams[gram] += 1
        if trigrams[gram] >= HALLUCINATION_REPEAT_THRESHOLD:
            return True
    return False


def rename_speaker(result: DiarizationResult, old_id: str, new_name: str) -> DiarizationResult:
    """Relabel one speaker across segments, stats and summaries.

    Returns a new result; the input is left untouched.
    """
    return apply_speaker_labels(result, {old_id: new_name})


def apply_speaker_labels(result: DiarizationResult, labels: Dict[str, str]) -> DiarizationResult:
    """Rename speaker IDs using a user-supplied mapping.

    Args:
        result: A finished diarization result.
        labels: Mapping of original speaker ID to custom name,
                e.g. {"SPEAKER_00": "Alice"}.

    Returns:
        A new result with speakers renamed. IDs missing from the mapping are kept.
    """
    def relabel(items):
        return tuple(
            replace(item, speaker_id=labels[item.speaker_id]) if item.speaker_id in labels else item
            for item in items
        )

    return DiarizationResult(
        segments=relabel(result.segments),
        speaker_stats=relabel(result.speaker_stats),
        participant_summaries=relabel(result.participant_summaries),
    )
