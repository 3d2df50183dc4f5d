import os
import logging
from typing import Dict, Any
from pathlib import Path

from dotenv import load_dotenv

from domain.models import DiarizationParams

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8001
DEFAULT_MODEL_ID_WHISPER = "base"
DEFAULT_MODEL_ID_SHERPA = "/models/sherpa-onnx"
DEFAULT_LANGUAGE = "es"


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = int(os.environ.get("PORT", DEFAULT_PORT))
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.engine = os.environ.get("ENGINE", "whisper").lower()
        self.device = os.environ.get("DEVICE", "cpu").lower()
        self.compute_type = os.environ.get("COMPUTE_TYPE", "int8")
        self.default_language = os.environ.get("DEFAULT_LANGUAGE", DEFAULT_LANGUAGE)
        self.vad_energy_threshold = float(os.environ.get("VAD_ENERGY_THRESHOLD", "0.005"))
        self.max_speakers = int(os.environ.get("MAX_SPEAKERS", "5"))
        self.filter_hallucinations = _env_bool("FILTER_HALLUCINATIONS", "true")
        self.temp_dir = os.environ.get("TEMP_DIR", "/tmp/echo-diarizer")

        # Model ID defaults to engine-appropriate value if not explicitly set
        model_id_env = os.environ.get("MODEL_ID", "").strip()
        if model_id_env:
            self.model_id = model_id_env
        elif self.engine == "sherpa":
            self.model_id = DEFAULT_MODEL_ID_SHERPA
        else:
            self.model_id = DEFAULT_MODEL_ID_WHISPER
        Path(self.temp_dir).mkdir(parents=True, exist_ok=True)

    def diarization_params(self) -> DiarizationParams:
        return DiarizationParams(
            vad_energy_threshold=self.vad_energy_threshold,
            max_speakers=self.max_speakers,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "engine": self.engine,
            "model_id": self.model_id,
            "device": self.device,
            "compute_type": self.compute_type,
            "default_language": self.default_language,
            "vad_energy_threshold": self.vad_energy_threshold,
            "max_speakers": self.max_speakers,
            "filter_hallucinations": self.filter_hallucinations,
        }


config = Config()


def get_config() -> Config:
    return config


def create_ml_adapters(cfg: Config):
    """Create the ASR and diarization adapters based on ENGINE env var.

    Uses lazy imports so unused frameworks are never loaded. Models are not
    loaded here; the pipeline loads the ASR model on first use.
    """
    from adapters.classical.diarization import ClassicalDiarizationAdapter

    engine = cfg.engine

    if engine == "whisper":
        from adapters.whisper.transcription import WhisperTranscriptionAdapter
        transcription = WhisperTranscriptionAdapter(
            model_id=cfg.model_id, device=cfg.device, compute_type=cfg.compute_type,
        )
    elif engine == "sherpa":
        from adapters.sherpa.transcription import SherpaTranscriptionAdapter
        transcription = SherpaTranscriptionAdapter(model_dir=cfg.model_id, device=cfg.device)
    else:
        raise ValueError(f"Unknown ENGINE: {engine!r}. Valid options: whisper, sherpa")

    diarization = ClassicalDiarizationAdapter(cfg.diarization_params())
    logger.info(f"ML adapters: engine={engine}, transcription={type(transcription).__name__}, diarization={type(diarization).__name__}")
    return transcription, diarization


def create_audio_adapter(cfg: Config):
    """Create the audio decoding adapter (always FFmpeg)."""
    from adapters.ffmpeg.audio import FFmpegAudioAdapter
    return FFmpegAudioAdapter(temp_dir=cfg.temp_dir)


def create_infra_adapters(cfg: Config):
    """Create infrastructure adapters."""
    from adapters.local.log_progress import LogProgressAdapter

    adapters = {"progress": LogProgressAdapter()}
    logger.info(f"Infra adapters: {', '.join(type(v).__name__ for v in adapters.values())}")
    return adapters


def create_use_case(cfg: Config):
    """Wire the diarization use case from configured adapters."""
    from use_cases.diarize import DiarizeAudioUseCase

    transcription, diarization = create_ml_adapters(cfg)
    infra = create_infra_adapters(cfg)
    return DiarizeAudioUseCase(
        diarization=diarization,
        transcription=transcription,
        progress=infra["progress"],
        params=cfg.diarization_params(),
    )
