"""SherpaTranscriptionAdapter — offline transducer ASR for diarized segments.

Each segment slice becomes one sherpa-onnx stream that is decoded on its own.
Diarized segments are short (seconds to tens of seconds), so they always fit
the encoder's attention window and need no sub-chunking.

The bundled Parakeet TDT model is English-only; the language argument is
accepted for interface compatibility and otherwise ignored.
"""

import asyncio
import logging
import os
from typing import Any, Optional

import numpy as np

from audio_utils import has_voice_activity, normalize_audio
from domain.errors import ModelLoadError
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

# Expected model files (downloaded from the sherpa-onnx GitHub releases)
REQUIRED_FILES = {
    "asr": ["encoder.int8.onnx", "decoder.int8.onnx", "joiner.int8.onnx", "tokens.txt"],
}

DEFAULT_MODEL_DIR = "/models/sherpa-onnx"
SAMPLE_RATE = 16000


class SherpaTranscriptionAdapter(TranscriptionPort):
    def __init__(self, model_dir: str = DEFAULT_MODEL_DIR, device: str = "cpu", num_threads: int = 4):
        self._model_dir = model_dir
        self._device = device
        self._num_threads = num_threads
        self._recognizer: Optional[Any] = None

    def _load_sync(self) -> Any:
        import sherpa_onnx

        self._ensure_models()
        logger.info(f"Loading Sherpa-ONNX ASR model (provider={self._device})...")
        return sherpa_onnx.OfflineRecognizer.from_transducer(
            encoder=os.path.join(self._model_dir, "encoder.int8.onnx"),
            decoder=os.path.join(self._model_dir, "decoder.int8.onnx"),
            joiner=os.path.join(self._model_dir, "joiner.int8.onnx"),
            tokens=os.path.join(self._model_dir, "tokens.txt"),
            model_type="nemo_transducer",
            provider=self._device,
            num_threads=self._num_threads,
        )

    async def load(self) -> None:
        if self._recognizer is not None:
            return
        loop = asyncio.get_running_loop()
        try:
            self._recognizer = await loop.run_in_executor(None, self._load_sync)
        except Exception as e:
            logger.error(f"Failed to load Sherpa model: {e}")
            raise ModelLoadError(self._model_dir, str(e)) from e
        logger.info(f"Sherpa transcription adapter ready: {self._model_dir}")

    def unload(self) -> None:
        self._recognizer = None

    def _transcribe_sync(self, audio: np.ndarray) -> str:
        stream = self._recognizer.create_stream()
        stream.accept_waveform(SAMPLE_RATE, audio)
        self._recognizer.decode_stream(stream)
        return stream.result.text.strip()

    async def transcribe(self, audio: np.ndarray, language: str) -> str:
        if self._recognizer is None:
            raise RuntimeError("Sherpa adapter not loaded")
        if not has_voice_activity(audio):
            return ""

        normalized = normalize_audio(np.asarray(audio, dtype=np.float32))
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._transcribe_sync, normalized)

    def model_name(self) -> str:
        return "parakeet-tdt-0.6b-v2-int8"

    def is_loaded(self) -> bool:
        return self._recognizer is not None

    def _ensure_models(self):
        """Verify all required model files are present."""
        missing = []
        for group, files in REQUIRED_FILES.items():
            for f in files:
                path = os.path.join(self._model_dir, f)
                if os.path.exists(path):
                    size_mb = os.path.getsize(path) / (1024 * 1024)
                    logger.info(f"  {group}: {f} ({size_mb:.1f} MB)")
                else:
                    missing.append(f)
                    logger.error(f"  {group}: {f} MISSING")

        if missing:
            raise FileNotFoundError(f"Missing model files in {self._model_dir}: {missing}")

        logger.info("All sherpa-onnx models verified")
