import asyncio
import time
from typing import Protocol

from pollswarm.client import HTTPStream
from pollswarm.decoding import ChunkDecoder, RawChunkDecoder
from pollswarm.errors import ConnectError, DecodeError, StreamReadError
from pollswarm.logging import Logger, LoggerStream
from pollswarm.logging.pollswarm_logging_models import (
    WorkerDebug,
    WorkerError,
    WorkerInfo,
    WorkerWarning,
)
from pollswarm.models import ChangeEvent

from .retry_policy import RetryPolicy
from .worker_phase import WorkerPhase
from .worker_state import WorkerState


class StreamClient(Protocol):
    async def open_stream(
        self,
        path: str,
        body: bytes | str,
    ) -> HTTPStream:
        ...


class ConnectionWorker:
    """
    Owns one streaming connection from the first connect attempt to its
    terminal phase.

    The worker first connects, retrying failed attempts with a fixed delay
    until the retry policy is exhausted. Once a stream is open it reads
    notification lines until the server ends the body, a read fails, or
    the swarm is cancelled. Every successfully decoded line is emitted as
    a `ChangeEvent` whose step is one more than the previous.
    """

    def __init__(
        self,
        worker_id: int,
        client: StreamClient,
        path: str,
        body: bytes | str,
        cancel: asyncio.Event,
        decoder: ChunkDecoder | None = None,
        retry_policy: RetryPolicy | None = None,
        logs_path: str | None = None,
    ) -> None:
        if decoder is None:
            decoder = RawChunkDecoder()

        if retry_policy is None:
            retry_policy = RetryPolicy()

        self.state = WorkerState(id=worker_id)
        self._client = client
        self._path = path
        self._body = body
        self._cancel = cancel
        self._decoder = decoder
        self._retry_policy = retry_policy
        self._logs_path = logs_path
        self._logger = Logger()
        self._step = 0

    @property
    def worker_id(self):
        return self.state.id

    @property
    def step(self):
        return self._step

    async def run(
        self,
        events: asyncio.Queue[ChangeEvent | None],
    ) -> WorkerState:
        async with self._logger.context(
            name=f"worker_{self.worker_id}",
            path=self._logs_path,
        ) as ctx:
            stream: HTTPStream | None = None

            try:
                stream = await self._connect(ctx)

                if stream is not None:
                    await self._stream(ctx, stream, events)

            except asyncio.CancelledError:
                self.state.abort()

                await ctx.log(
                    WorkerDebug(
                        message=f"Worker {self.worker_id} aborted at step {self._step}",
                        worker_id=self.worker_id,
                        phase=self.state.phase.value,
                    )
                )

                raise

            except Exception as err:
                self.state.fail(err)

                await ctx.log(
                    WorkerError(
                        message=f"Worker {self.worker_id} stopped unexpectedly at step {self._step}",
                        worker_id=self.worker_id,
                        phase=self.state.phase.value,
                        error=str(err),
                    )
                )

            finally:
                if stream is not None:
                    await stream.close()

        return self.state

    async def _connect(self, ctx: LoggerStream) -> HTTPStream | None:
        self.state.transition(WorkerPhase.CONNECTING)

        connect_error: ConnectError | None = None

        for attempt in range(1, self._retry_policy.max_attempts + 1):
            if self._cancel.is_set():
                await self._abort(ctx)
                return None

            try:
                stream = await self._client.open_stream(
                    self._path,
                    self._body,
                )

                self.state.transition(WorkerPhase.STREAMING)
                return stream

            except ConnectError as err:
                connect_error = err
                self.state.retry_count = attempt
                self.state.last_error = err

                await ctx.log(
                    WorkerWarning(
                        message=f"Worker {self.worker_id} can not send request (attempt {attempt}/{self._retry_policy.max_attempts}): {err}",
                        worker_id=self.worker_id,
                        phase=self.state.phase.value,
                        attempt=attempt,
                    )
                )

            if attempt < self._retry_policy.max_attempts and await self._wait_for_retry():
                await self._abort(ctx)
                return None

        self.state.transition(
            WorkerPhase.FAILED,
            error=connect_error,
        )

        await ctx.log(
            WorkerError(
                message=f"Worker {self.worker_id} gave up after {self.state.retry_count} failed connect attempts",
                worker_id=self.worker_id,
                phase=self.state.phase.value,
                error=str(connect_error),
            )
        )

        return None

    async def _wait_for_retry(self) -> bool:
        try:
            await asyncio.wait_for(
                self._cancel.wait(),
                timeout=self._retry_policy.interval,
            )

            return True

        except asyncio.TimeoutError:
            return self._cancel.is_set()

    async def _stream(
        self,
        ctx: LoggerStream,
        stream: HTTPStream,
        events: asyncio.Queue[ChangeEvent | None],
    ):
        try:
            async for chunk in stream.lines():
                try:
                    self._decoder.decode(chunk)

                except DecodeError as err:
                    await ctx.log(
                        WorkerWarning(
                            message=f"Worker {self.worker_id} dropped malformed chunk after step {self._step}: {err}",
                            worker_id=self.worker_id,
                            phase=self.state.phase.value,
                        )
                    )

                    continue

                self._step += 1

                await events.put(
                    ChangeEvent(
                        worker_id=self.worker_id,
                        step=self._step,
                        timestamp=time.monotonic(),
                    )
                )

        except StreamReadError as err:
            self.state.transition(
                WorkerPhase.FAILED,
                error=err,
            )

            await ctx.log(
                WorkerError(
                    message=f"Worker {self.worker_id} can not read body after step {self._step}",
                    worker_id=self.worker_id,
                    phase=self.state.phase.value,
                    error=str(err),
                )
            )

            return

        self.state.transition(WorkerPhase.CLOSED)

        await ctx.log(
            WorkerInfo(
                message=f"Worker {self.worker_id} stream closed by server after step {self._step}",
                worker_id=self.worker_id,
                phase=self.state.phase.value,
            )
        )

    async def _abort(self, ctx: LoggerStream):
        self.state.abort()

        await ctx.log(
            WorkerDebug(
                message=f"Worker {self.worker_id} aborted while connecting after {self.state.retry_count} failed attempts",
                worker_id=self.worker_id,
                phase=self.state.phase.value,
            )
        )
