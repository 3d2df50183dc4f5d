"""Frame-level acoustic features for classical speaker clustering.

Each 1.5s analysis window is cut into 512-sample Hann-windowed frames at a
256-sample hop. Per frame we compute energy, zero-crossing rate, spectral
centroid, spectral rolloff and 13 log-compressed band averages of the
magnitude spectrum; the window's feature vector is the mean over its frames:

    [energy, zcr, centroid / sample_rate, rolloff, band_0 .. band_12]

The 13 bands are equal-width slices of the linear-frequency half spectrum, not
a mel filter bank, and no DCT is applied. They are a cheap stand-in for MFCCs,
good enough to separate voices by timbre but not perceptually motivated.

Magnitudes come from a real FFT normalized by 1/n, which matches a direct-form
DFT over the first n/2 bins.
"""

import logging

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from domain.models import DiarizationParams, FeatureVector

logger = logging.getLogger(__name__)

FEATURE_DIM = 17


def frame_signal(window: np.ndarray, frame_size: int, frame_hop: int) -> np.ndarray:
    """Return a (num_frames, frame_size) view of overlapping frames."""
    return sliding_window_view(window, frame_size)[::frame_hop]


def magnitude_spectrum(frames: np.ndarray) -> np.ndarray:
    """Hann-windowed magnitude spectrum of each frame, lower half only, scaled by 1/n."""
    n = frames.shape[-1]
    windowed = frames * np.hanning(n)
    spectrum = np.fft.rfft(windowed, axis=-1)[..., : n // 2]
    return np.abs(spectrum) / n


def frame_energy(frames: np.ndarray) -> np.ndarray:
    return np.mean(frames * frames, axis=-1)


def zero_crossing_rate(frames: np.ndarray) -> np.ndarray:
    positive = frames >= 0
    crossings = np.count_nonzero(positive[..., 1:] != positive[..., :-1], axis=-1)
    return crossings / (frames.shape[-1] - 1)


def spectral_centroid(magnitudes: np.ndarray, sample_rate: int, fft_size: int) -> np.ndarray:
    """Magnitude-weighted mean frequency in Hz; 0 for an all-zero spectrum."""
    freqs = np.arange(magnitudes.shape[-1]) * sample_rate / fft_size
    total = magnitudes.sum(axis=-1)
    weighted = (magnitudes * freqs).sum(axis=-1)
    safe_total = np.where(total > 0, total, 1.0)
    return np.where(total > 0, weighted / safe_total, 0.0)


def spectral_rolloff(magnitudes: np.ndarray, threshold: float = 0.85) -> np.ndarray:
    """Fraction of the half spectrum below which `threshold` of the energy lies.

    Returned as bin_index / bin_count. A silent frame rolls off at 0.
    """
    power = magnitudes * magnitudes
    cumulative = np.cumsum(power, axis=-1)
    reached = cumulative >= threshold * cumulative[..., -1:]
    first = np.argmax(reached, axis=-1)
    return np.where(reached.any(axis=-1), first / magnitudes.shape[-1], 1.0)


def band_energies(magnitudes: np.ndarray, num_bands: int = 13) -> np.ndarray:
    """Mean magnitude of equal-width bands, compressed with log(1 + 1000x)."""
    band_size = magnitudes.shape[-1] // num_bands
    usable = magnitudes[..., : band_size * num_bands]
    bands = usable.reshape(*magnitudes.shape[:-1], num_bands, band_size).mean(axis=-1)
    return np.log1p(bands * 1000)


def window_features(window: np.ndarray, params: DiarizationParams) -> np.ndarray:
    """17-dim feature vector averaged over the frames of one analysis window."""
    frames = frame_signal(window.astype(np.float64), params.frame_size, params.frame_hop)
    mags = magnitude_spectrum(frames)

    vector = np.empty(4 + params.num_bands, dtype=np.float64)
    vector[0] = frame_energy(frames).mean()
    vector[1] = zero_crossing_rate(frames).mean()
    vector[2] = spectral_centroid(mags, params.sample_rate, params.frame_size).mean() / params.sample_rate
    vector[3] = spectral_rolloff(mags, params.rolloff_threshold).mean()
    vector[4:] = band_energies(mags, params.num_bands).mean(axis=0)
    return vector


def extract_features(samples: np.ndarray, params: DiarizationParams = DiarizationParams()) -> list[FeatureVector]:
    """Slide the analysis window over the buffer and featurize each position.

    Trailing audio shorter than one full window produces no vector.
    """
    samples = np.asarray(samples, dtype=np.float32)
    if samples.ndim != 1:
        raise ValueError(f"Expected mono samples, got shape {samples.shape}")

    rate = params.sample_rate
    window_samples = int(params.window_s * rate)
    hop_samples = int(params.hop_s * rate)

    vectors: list[FeatureVector] = []
    for start in range(0, len(samples) - window_samples + 1, hop_samples):
        features = window_features(samples[start:start + window_samples], params)
        vectors.append(FeatureVector(
            start_ms=round(start / rate * 1000),
            end_ms=round((start + window_samples) / rate * 1000),
            features=features,
            has_voice=bool(features[0] > params.vad_energy_threshold),
        ))

    voiced = sum(1 for v in vectors if v.has_voice)
    logger.info(f"Extracted {len(vectors)} feature windows ({voiced} voiced)")
    return vectors
