"""Sample-level guards applied before handing audio to an ASR model."""

import numpy as np

VAD_RMS_THRESHOLD = 0.012
NORMALIZE_TARGET = 0.95
NORMALIZE_MIN_PEAK = 0.01


def has_voice_activity(audio: np.ndarray, threshold: float = VAD_RMS_THRESHOLD, step: int = 4) -> bool:
    """RMS over every `step`-th sample, compared against threshold."""
    sampled = np.asarray(audio, dtype=np.float64)[::step]
    if sampled.size == 0:
        return False
    return bool(np.sqrt(np.mean(sampled * sampled)) >= threshold)


def normalize_audio(audio: np.ndarray) -> np.ndarray:
    """Peak-normalize quiet audio to NORMALIZE_TARGET.

    Near-silent input (peak under NORMALIZE_MIN_PEAK) and already-loud input
    are returned unchanged.
    """
    if audio.size == 0:
        return audio
    peak = float(np.max(np.abs(audio)))
    if peak < NORMALIZE_MIN_PEAK or peak >= NORMALIZE_TARGET:
        return audio
    return (audio * (NORMALIZE_TARGET / peak)).astype(np.float32)


def slice_samples(
    audio: np.ndarray,
    start_ms: int,
    end_ms: int,
    padding_ms: int = 200,
    sample_rate: int = 16000,
) -> np.ndarray:
    """Copy of [start - padding, end + padding], clamped to the buffer."""
    start = max(0, (start_ms - padding_ms) * sample_rate // 1000)
    # ceiling division keeps the last partial sample
    end = min(len(audio), -(-(end_ms + padding_ms) * sample_rate // 1000))
    return np.array(audio[start:end], dtype=np.float32) if end > start else np.zeros(0, dtype=np.float32)
