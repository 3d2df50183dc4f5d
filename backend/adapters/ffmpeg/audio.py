"""FFmpegAudioAdapter — decodes uploads to 16kHz mono float32 via ffmpeg + soundfile."""

import os
import logging
import tempfile
import subprocess

import numpy as np
import soundfile

from domain.errors import InvalidRequestError
from ports.audio import AudioProcessingPort

logger = logging.getLogger(__name__)


class FFmpegAudioAdapter(AudioProcessingPort):
    def __init__(self, temp_dir: str = None):
        self._temp_dir = temp_dir

    def convert_to_wav(self, input_path: str, sample_rate: int = 16000) -> str:
        temp_file = tempfile.NamedTemporaryFile(suffix=".wav", delete=False, dir=self._temp_dir)
        temp_file.close()
        output_path = temp_file.name

        try:
            cmd = [
                "ffmpeg", "-y",
                "-i", input_path,
                "-c:a", "pcm_s16le",
                "-ar", str(sample_rate),
                "-ac", "1",
                output_path,
            ]
            result = subprocess.run(cmd, capture_output=True, text=True)
            if result.returncode != 0:
                logger.error(f"Error converting audio: {result.stderr}")
                raise InvalidRequestError(f"Failed to convert audio: {result.stderr.strip()[-500:]}", field="file")
            return output_path

        except Exception:
            if os.path.exists(output_path):
                os.unlink(output_path)
            raise

    def load_samples(self, input_path: str, sample_rate: int = 16000) -> np.ndarray:
        wav_path = self.convert_to_wav(input_path, sample_rate)
        try:
            audio, rate = soundfile.read(wav_path, dtype="float32")
        finally:
            if os.path.exists(wav_path):
                os.unlink(wav_path)

        if audio.ndim > 1:
            audio = audio.mean(axis=1).astype(np.float32)
        if rate != sample_rate:
            raise InvalidRequestError(f"Decoded audio is {rate}Hz, expected {sample_rate}Hz", field="file")

        logger.info(f"Audio loaded: {len(audio) / rate:.2f}s @ {rate}Hz")
        return audio
