"""HTTP surface for the diarization service.

POST /v1/audio/diarize accepts an audio upload and either returns the final
result as JSON or, with stream=true, streams NDJSON: progress messages
followed by exactly one diarize-result or diarize-error line.
"""

import asyncio
import json
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from config import create_audio_adapter, create_use_case, get_config
from domain.errors import DiarizationError, InvalidRequestError
from domain.models import DiarizationResult
from mappers import event_to_message, result_to_response
from ports.audio import AudioProcessingPort
from post_processing import apply_speaker_labels
from use_cases.diarize import DiarizeAudioUseCase, DiarizeRequest

logger = logging.getLogger(__name__)


def _parse_speaker_labels(raw: Optional[str]) -> Optional[Dict[str, str]]:
    if not raw:
        return None
    try:
        labels = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Invalid speaker_labels JSON, skipping")
        return None
    if not isinstance(labels, dict):
        logger.warning("speaker_labels must be a JSON object, skipping")
        return None
    return {str(k): str(v) for k, v in labels.items()}


async def _read_upload(file: UploadFile, audio: AudioProcessingPort, temp_dir: str):
    suffix = os.path.splitext(file.filename or "")[1] or ".bin"
    temp_file = tempfile.NamedTemporaryFile(suffix=suffix, delete=False, dir=temp_dir)
    try:
        temp_file.write(await file.read())
        temp_file.close()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, audio.load_samples, temp_file.name)
    finally:
        temp_file.close()
        if os.path.exists(temp_file.name):
            os.unlink(temp_file.name)


def create_app(
    use_case: Optional[DiarizeAudioUseCase] = None,
    audio: Optional[AudioProcessingPort] = None,
) -> FastAPI:
    cfg = get_config()
    use_case = use_case or create_use_case(cfg)
    audio = audio or create_audio_adapter(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Config: {cfg.as_dict()}")
        yield
        use_case.transcription.unload()

    app = FastAPI(title="Echo Diarizer", lifespan=lifespan)
    app.state.use_case = use_case
    app.state.audio = audio

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "engine": cfg.engine,
            "model": use_case.transcription.model_name(),
            "model_loaded": use_case.transcription.is_loaded(),
            "state": use_case.state.value,
        }

    @app.post("/v1/audio/diarize")
    async def diarize(
        file: UploadFile = File(...),
        language: Optional[str] = Form(None),
        num_speakers: Optional[int] = Form(None),
        stream: bool = Form(False),
        speaker_labels: Optional[str] = Form(None),
    ):
        if num_speakers is not None and num_speakers < 1:
            raise HTTPException(status_code=400, detail="num_speakers must be a positive integer")

        try:
            samples = await _read_upload(file, audio, cfg.temp_dir)
        except InvalidRequestError as e:
            raise HTTPException(status_code=400, detail=e.message)

        language = language or cfg.default_language
        labels = _parse_speaker_labels(speaker_labels)
        req = DiarizeRequest(
            audio=samples,
            language=language,
            num_speakers=num_speakers,
            filter_hallucinations=cfg.filter_hallucinations,
        )
        model = use_case.transcription.model_name()

        if stream:
            async def body():
                async for event in use_case.stream(req):
                    if labels and isinstance(event, DiarizationResult):
                        event = apply_speaker_labels(event, labels)
                    message = event_to_message(event, model=model, language=language)
                    yield message.model_dump_json(by_alias=True) + "\n"

            return StreamingResponse(body(), media_type="application/x-ndjson")

        try:
            result = await use_case.execute(req)
        except DiarizationError as e:
            return JSONResponse(status_code=500, content={"error": e.message})

        if labels:
            result = apply_speaker_labels(result, labels)
        response = result_to_response(result, model=model, language=language)
        return JSONResponse(content=response.model_dump(by_alias=True))

    return app
