"""DiarizeAudioUseCase — orchestrates the full diarization pipeline.

Accepts all ports via dependency injection. A run is an async stream of
progress events that ends with exactly one terminal event, either a
DiarizationResult or a DiarizationFailure:

    extracting-features -> clustering -> loading-model -> transcribing -> summarizing

Recordings with fewer than two voiced windows skip clustering and are
transcribed as a single SPEAKER_00 segment.
"""

import asyncio
import functools
import logging
import uuid
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import numpy as np

from audio_utils import slice_samples
from domain.errors import DiarizationError, InvalidRequestError
from domain.models import (
    DiarizationFailure, DiarizationParams, DiarizationResult, DiarizeSegment,
    PipelineEvent, PipelineState, ProgressEvent, RawSegment, Stage,
)
from ports.diarization import DiarizationPort
from ports.progress import ProgressPort
from ports.transcription import TranscriptionPort
from post_processing import compute_speaker_statistics, generate_summaries, is_hallucination

logger = logging.getLogger(__name__)

SINGLE_SPEAKER_ID = "SPEAKER_00"

# Overall progress window shared out across segments while transcribing.
TRANSCRIBE_PROGRESS_START = 40
TRANSCRIBE_PROGRESS_SPAN = 50


@dataclass
class DiarizeRequest:
    """All parameters for a diarization request."""
    audio: np.ndarray
    language: str = "es"
    num_speakers: Optional[int] = None
    filter_hallucinations: bool = True


class DiarizeAudioUseCase:
    def __init__(
        self,
        diarization: DiarizationPort,
        transcription: TranscriptionPort,
        progress: ProgressPort,
        params: Optional[DiarizationParams] = None,
    ):
        self._diarization = diarization
        self._transcription = transcription
        self._progress = progress
        self._params = params or DiarizationParams()
        self._lock = asyncio.Lock()
        self._job_id = ""
        self._last_progress = 0
        self.state = PipelineState.IDLE

    @property
    def transcription(self) -> TranscriptionPort:
        return self._transcription

    async def execute(self, req: DiarizeRequest) -> DiarizationResult:
        """Run the pipeline to completion. Raises DiarizationError on failure."""
        outcome: Optional[PipelineEvent] = None
        async for event in self.stream(req):
            outcome = event
        if isinstance(outcome, DiarizationFailure):
            raise DiarizationError(outcome.error)
        return outcome

    async def stream(self, req: DiarizeRequest) -> AsyncIterator[PipelineEvent]:
        """Yield progress events, then one DiarizationResult or DiarizationFailure.

        Runs on the same instance are serialized: the ASR engine is not reentrant.
        """
        async with self._lock:
            self._job_id = uuid.uuid4().hex[:12]
            self._last_progress = 0
            try:
                async for event in self._run(req):
                    yield event
            except asyncio.CancelledError:
                logger.warning(f"[{self._job_id}] Diarization cancelled")
                self.state = PipelineState.IDLE
                raise
            except Exception as e:
                logger.error(f"[{self._job_id}] Diarization failed: {e}", exc_info=True)
                self.state = PipelineState.ERROR
                yield DiarizationFailure(error=str(e) or type(e).__name__)

    async def _run(self, req: DiarizeRequest) -> AsyncIterator[PipelineEvent]:
        loop = asyncio.get_running_loop()

        # 1. Feature extraction
        yield self._enter(PipelineState.EXTRACTING_FEATURES, Stage.EXTRACTING_FEATURES, 5)
        samples = self._validate(req)
        features = await loop.run_in_executor(None, self._diarization.extract_features, samples)
        voiced_count = sum(1 for v in features if v.has_voice)
        duration_ms = round(len(samples) / self._params.sample_rate * 1000)

        if voiced_count < 2:
            # Too little speech to cluster: one speaker over the whole buffer
            logger.info(f"[{self._job_id}] Only {voiced_count} voiced windows, skipping clustering")
            yield self._enter(PipelineState.LOADING_MODEL, Stage.LOADING_MODEL, 30)
            await self._transcription.load()
            yield self._enter(PipelineState.TRANSCRIBING, Stage.TRANSCRIBING, 60)
            text = await self._transcribe_segment(samples, 0, duration_ms, req)
            segments = [DiarizeSegment(id="seg-0", speaker_id=SINGLE_SPEAKER_ID, start_ms=0, end_ms=duration_ms, text=text)]
            yield self._finish(segments)
            return

        # 2. Speaker count + clustering + segment building
        yield self._enter(PipelineState.CLUSTERING, Stage.CLUSTERING, 15)
        assign = functools.partial(self._diarization.assign_speakers, features, req.num_speakers)
        assignment = await loop.run_in_executor(None, assign)

        # 3. ASR model
        yield self._enter(PipelineState.LOADING_MODEL, Stage.LOADING_MODEL, 30)
        await self._transcription.load()

        # 4. Re-transcribe each segment, one at a time
        yield self._enter(PipelineState.TRANSCRIBING, Stage.TRANSCRIBING, TRANSCRIBE_PROGRESS_START)
        segments = []
        total = len(assignment.segments)
        for i, raw in enumerate(assignment.segments):
            progress = TRANSCRIBE_PROGRESS_START + round(i / total * TRANSCRIBE_PROGRESS_SPAN)
            yield self._report(Stage.TRANSCRIBING, progress, detail=f"segment {i + 1}/{total}")
            segments.append(await self._transcribe_raw(samples, raw, i, req))

        # 5. Stats + summaries
        yield self._enter(PipelineState.SUMMARIZING, Stage.SUMMARIZING, 95)
        yield self._finish(segments)

    def _validate(self, req: DiarizeRequest) -> np.ndarray:
        if req.num_speakers is not None:
            if isinstance(req.num_speakers, bool) or not isinstance(req.num_speakers, (int, np.integer)) or req.num_speakers < 1:
                raise InvalidRequestError(f"num_speakers must be a positive integer, got {req.num_speakers!r}", field="num_speakers")

        samples = np.asarray(req.audio, dtype=np.float32)
        if samples.ndim != 1:
            raise InvalidRequestError(f"Expected mono audio, got shape {samples.shape}", field="audio")
        if not np.all(np.isfinite(samples)):
            raise InvalidRequestError("Audio contains NaN or infinite samples", field="audio")
        return samples

    async def _transcribe_raw(self, samples: np.ndarray, raw: RawSegment, index: int, req: DiarizeRequest) -> DiarizeSegment:
        text = await self._transcribe_segment(samples, raw.start_ms, raw.end_ms, req)
        return DiarizeSegment(
            id=f"seg-{index}",
            speaker_id=raw.speaker_id,
            start_ms=raw.start_ms,
            end_ms=raw.end_ms,
            text=text,
        )

    async def _transcribe_segment(self, samples: np.ndarray, start_ms: int, end_ms: int, req: DiarizeRequest) -> str:
        """Best-effort ASR of one padded slice. Failures yield empty text."""
        p = self._params
        chunk = slice_samples(samples, start_ms, end_ms, padding_ms=p.segment_padding_ms, sample_rate=p.sample_rate)
        if len(chunk) < p.sample_rate * p.min_slice_ms / 1000:
            return ""

        try:
            text = await self._transcription.transcribe(chunk, req.language)
        except Exception as e:
            logger.warning(f"[{self._job_id}] Transcription failed for {start_ms}-{end_ms}ms: {e}")
            return ""

        text = (text or "").strip()
        if req.filter_hallucinations and is_hallucination(text):
            logger.info(f"[{self._job_id}] Dropping hallucinated text for {start_ms}-{end_ms}ms")
            return ""
        return text

    def _finish(self, segments: list[DiarizeSegment]) -> DiarizationResult:
        result = DiarizationResult(
            segments=tuple(segments),
            speaker_stats=tuple(compute_speaker_statistics(segments)),
            participant_summaries=tuple(generate_summaries(segments)),
        )
        self.state = PipelineState.DONE
        logger.info(f"[{self._job_id}] Diarization done: {len(segments)} segments, {len(result.speaker_stats)} speakers")
        return result

    def _enter(self, state: PipelineState, stage: Stage, progress: int) -> ProgressEvent:
        self.state = state
        return self._report(stage, progress)

    def _report(self, stage: Stage, progress: int, detail: Optional[str] = None) -> ProgressEvent:
        self._last_progress = max(self._last_progress, min(100, progress))
        self._progress.report(self._job_id, stage.value, self._last_progress, detail)
        return ProgressEvent(progress=self._last_progress, stage=stage)
