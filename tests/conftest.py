"""Shared fixtures: synthetic signals and fake ports."""

from typing import Callable, Optional, Union

import numpy as np
import pytest

from adapters.classical.diarization import ClassicalDiarizationAdapter
from ports.progress import ProgressPort
from ports.transcription import TranscriptionPort
from use_cases.diarize import DiarizeAudioUseCase

SAMPLE_RATE = 16000


def tone(freq: float, seconds: float, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(int(seconds * SAMPLE_RATE)) / SAMPLE_RATE
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def alternating_bursts(
    total_s: float = 20.0,
    block_s: float = 2.0,
    burst_s: float = 0.5,
    freqs: tuple = (200.0, 3000.0),
    amplitude: float = 0.5,
) -> np.ndarray:
    """Two tonal "voices" taking turns every block_s seconds.

    Each block opens with a burst_s tone and is silent for the rest, so no
    1.5s analysis window ever hears both voices at once.
    """
    audio = np.zeros(int(total_s * SAMPLE_RATE), dtype=np.float32)
    block = int(block_s * SAMPLE_RATE)
    burst = tone(freqs[0], burst_s, amplitude), tone(freqs[1], burst_s, amplitude)
    for i, start in enumerate(range(0, len(audio), block)):
        chunk = burst[i % 2][: len(audio) - start]
        audio[start:start + len(chunk)] = chunk
    return audio


class FakeTranscriber(TranscriptionPort):
    """Stands in for an ASR engine; records every call."""

    def __init__(
        self,
        text: Union[str, Callable[[np.ndarray], str]] = "hola equipo, el presupuesto esta listo.",
        fail_on: tuple = (),
        load_error: Optional[Exception] = None,
    ):
        self.text = text
        self.fail_on = set(fail_on)
        self.load_error = load_error
        self.calls: list[tuple[int, str]] = []
        self.load_calls = 0
        self.loaded = False

    async def load(self) -> None:
        self.load_calls += 1
        if self.load_error is not None:
            raise self.load_error
        self.loaded = True

    def unload(self) -> None:
        self.loaded = False

    async def transcribe(self, audio: np.ndarray, language: str) -> str:
        self.calls.append((len(audio), language))
        if len(self.calls) in self.fail_on:
            raise RuntimeError("decoder crashed")
        return self.text(audio) if callable(self.text) else self.text

    def model_name(self) -> str:
        return "fake-asr"

    def is_loaded(self) -> bool:
        return self.loaded


class RecordingProgress(ProgressPort):
    def __init__(self):
        self.reports: list[tuple[str, int]] = []

    def report(self, job_id, stage, progress=0, detail=None) -> None:
        self.reports.append((stage, progress))


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def progress():
    return RecordingProgress()


@pytest.fixture
def diarization():
    return ClassicalDiarizationAdapter()


@pytest.fixture
def use_case(diarization, transcriber, progress):
    return DiarizeAudioUseCase(diarization=diarization, transcription=transcriber, progress=progress)


@pytest.fixture
def two_voices():
    return alternating_bursts()
