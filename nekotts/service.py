"""Background synthesis service: worker pool, backpressure and streaming sinks."""

from __future__ import annotations

import asyncio
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
import threading
from typing import Dict, Optional, Protocol

from nekotts.config import Settings
from nekotts.errors import ServiceBusy
from nekotts.logging_utils import get_logger
from nekotts.pipeline import (
    CancellationToken,
    PipelineContext,
    ProgressChannel,
    SynthesisOrchestrator,
    SynthesisOutcome,
    SynthesisRequest,
    SynthesisResult,
    build_context,
)

logger = get_logger(__name__)

DEFAULT_STREAM_CHUNK_BYTES = 8192
_UNRESOLVED_FAMILY = "unresolved"


class AudioSink(Protocol):
    def start(self, sample_rate: int, channel_count: int) -> None:
        ...

    def audio_available(self, data: bytes) -> None:
        ...

    def done(self) -> None:
        ...

    def error(self, reason: str) -> None:
        ...


def stream_to_sink(
    result: SynthesisResult,
    sink: AudioSink,
    chunk_size: int = DEFAULT_STREAM_CHUNK_BYTES,
) -> int:
    """Feed PCM16 bytes to the sink in pieces of at most chunk_size bytes."""
    if chunk_size < 2:
        raise ValueError("chunk_size must be at least 2 bytes.")
    # Keep whole 16-bit samples in every piece.
    chunk_size -= chunk_size % 2
    pcm = result.to_pcm16()
    sink.start(result.sample_rate, 1)
    for offset in range(0, len(pcm), chunk_size):
        sink.audio_available(pcm[offset : offset + chunk_size])
    sink.done()
    return len(pcm)


@dataclass
class SynthesisJob:
    request: SynthesisRequest
    future: "Future[SynthesisOutcome]"
    cancel_token: CancellationToken

    def cancel(self) -> None:
        self.cancel_token.cancel()
        self.future.cancel()

    def result(self, timeout: Optional[float] = None) -> SynthesisOutcome:
        return self.future.result(timeout=timeout)

    def done(self) -> bool:
        return self.future.done()


class SynthesisService:
    """Runs requests on a bounded thread pool with per-family pending limits."""

    def __init__(
        self,
        context: PipelineContext,
        *,
        workers: int = 2,
        max_pending: int = 4,
        request_timeout_seconds: float = 30.0,
        stream_chunk_bytes: int = DEFAULT_STREAM_CHUNK_BYTES,
    ) -> None:
        self.context = context
        self.orchestrator = SynthesisOrchestrator(context)
        self.max_pending = max_pending
        self.request_timeout_seconds = request_timeout_seconds
        self.stream_chunk_bytes = stream_chunk_bytes
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="nekotts")
        self._pending: Dict[str, int] = {}
        self._pending_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SynthesisService":
        settings = settings or Settings.from_env()
        return cls(
            build_context(settings),
            workers=settings.workers,
            max_pending=settings.max_pending,
            request_timeout_seconds=settings.request_timeout_seconds,
            stream_chunk_bytes=settings.stream_chunk_bytes,
        )

    def _family_key(self, request: SynthesisRequest) -> str:
        store = self.context.voice_store
        if request.voice_id:
            voice = store.get(request.voice_id)
        else:
            voice = store.default_voice(request.language) or store.default_voice()
        return voice.engine_family.value if voice is not None else _UNRESOLVED_FAMILY

    def pending(self, family: str) -> int:
        with self._pending_lock:
            return self._pending.get(family, 0)

    def submit(
        self,
        request: SynthesisRequest,
        *,
        progress: Optional[ProgressChannel] = None,
    ) -> SynthesisJob:
        """Queue a request; raises ServiceBusy when its engine family is saturated."""
        family = self._family_key(request)
        with self._pending_lock:
            pending = self._pending.get(family, 0)
            if pending >= self.max_pending:
                logger.warning(
                    "service_busy request_id=%s family=%s pending=%s",
                    request.request_id,
                    family,
                    pending,
                )
                raise ServiceBusy(f"Too many pending requests for engine family {family}.")
            self._pending[family] = pending + 1
        token = CancellationToken()
        try:
            future = self._executor.submit(self.orchestrator.synthesize, request, token, progress)
        except RuntimeError:
            self._release(family)
            raise
        future.add_done_callback(lambda _f: self._release(family))
        logger.debug("job_submitted request_id=%s family=%s", request.request_id, family)
        return SynthesisJob(request=request, future=future, cancel_token=token)

    def _release(self, family: str) -> None:
        with self._pending_lock:
            self._pending[family] = max(self._pending.get(family, 0) - 1, 0)

    def synthesize(self, request: SynthesisRequest, timeout: Optional[float] = None) -> SynthesisOutcome:
        return self.submit(request).result(timeout=timeout)

    async def synthesize_async(
        self,
        request: SynthesisRequest,
        *,
        progress: Optional[ProgressChannel] = None,
    ) -> SynthesisOutcome:
        job = self.submit(request, progress=progress)
        return await asyncio.wrap_future(job.future)

    def speak(self, request: SynthesisRequest, sink: AudioSink, timeout: Optional[float] = None) -> bool:
        """Synthesize and stream to the sink; failures reach the sink as error(reason)."""
        timeout = self.request_timeout_seconds if timeout is None else timeout
        try:
            job = self.submit(request)
        except ServiceBusy as exc:
            sink.error(exc.message)
            return False
        try:
            outcome = job.result(timeout=timeout)
        except FutureTimeoutError:
            job.cancel()
            logger.warning("speak_timeout request_id=%s timeout=%s", request.request_id, timeout)
            sink.error("Synthesis timed out.")
            return False
        if not outcome.ok:
            reason = outcome.error.message if outcome.error is not None else "Synthesis failed."
            sink.error(reason)
            return False
        stream_to_sink(outcome.result, sink, self.stream_chunk_bytes)
        return True

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "SynthesisService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
