"""WhisperTranscriptionAdapter — faster-whisper ASR over in-memory slices.

The model is loaded once per adapter instance and released by unload(). All
inference runs in the default executor so the event loop stays responsive.
Calls are not reentrant; the diarization use case transcribes one segment at
a time.
"""

import asyncio
import logging
from typing import Any, Optional

import numpy as np

from audio_utils import has_voice_activity, normalize_audio
from domain.errors import ModelLoadError
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "base"


class WhisperTranscriptionAdapter(TranscriptionPort):
    def __init__(
        self,
        model_id: str = DEFAULT_MODEL_ID,
        device: str = "cpu",
        compute_type: str = "int8",
        beam_size: int = 5,
    ):
        self._model_id = model_id
        self._device = device
        self._compute_type = compute_type
        self._beam_size = beam_size
        self._model: Optional[Any] = None

    def _load_sync(self) -> Any:
        from faster_whisper import WhisperModel

        logger.info(f"Loading Whisper model {self._model_id} (device={self._device}, compute_type={self._compute_type})...")
        return WhisperModel(self._model_id, device=self._device, compute_type=self._compute_type)

    async def load(self) -> None:
        if self._model is not None:
            return
        loop = asyncio.get_running_loop()
        try:
            self._model = await loop.run_in_executor(None, self._load_sync)
        except Exception as e:
            logger.error(f"Failed to load Whisper model: {e}")
            raise ModelLoadError(self._model_id, str(e)) from e
        logger.info(f"Whisper model ready: {self._model_id}")

    def unload(self) -> None:
        if self._model is not None:
            logger.info(f"Unloading Whisper model {self._model_id}")
        self._model = None

    def _transcribe_sync(self, audio: np.ndarray, language: str) -> str:
        segments, _ = self._model.transcribe(
            audio,
            language=language or None,
            task="transcribe",
            beam_size=self._beam_size,
            condition_on_previous_text=False,
        )
        parts = [(seg.text or "").strip() for seg in segments]
        return " ".join(p for p in parts if p).strip()

    async def transcribe(self, audio: np.ndarray, language: str) -> str:
        if self._model is None:
            raise RuntimeError("Whisper model not loaded")
        if not has_voice_activity(audio):
            return ""

        normalized = normalize_audio(np.asarray(audio, dtype=np.float32))
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._transcribe_sync, normalized, language)

    def model_name(self) -> str:
        return f"whisper-{self._model_id}"

    def is_loaded(self) -> bool:
        return self._model is not None
