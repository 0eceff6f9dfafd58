"""
Tests for ConnectionWorker lifecycle.

Covers:
- Step numbering from 1 with no gaps
- Bounded connect retry ending in FAILED with zero events
- No reconnect after streaming has started
- Malformed chunks dropped without ending the stream
- Cancellation during retry waits and mid-read
- Connection release on every exit path
"""

import asyncio
from typing import List

import pytest

from pollswarm.decoding import JSONChunkDecoder
from pollswarm.errors import ConnectError, StreamReadError
from pollswarm.models import ChangeEvent
from pollswarm.swarm import ConnectionWorker, RetryPolicy, WorkerPhase
from tests.conftest import FakeStreamClient, StreamPlan


def drain(events: asyncio.Queue) -> List[ChangeEvent]:
    drained: List[ChangeEvent] = []
    while events.empty() is False:
        drained.append(events.get_nowait())

    return drained


def create_worker(
    client: FakeStreamClient,
    cancel: asyncio.Event | None = None,
    max_attempts: int = 3,
    interval: float = 0.001,
    decoder=None,
) -> ConnectionWorker:
    return ConnectionWorker(
        1,
        client,
        "/system/autoupdate",
        "[]",
        cancel if cancel is not None else asyncio.Event(),
        decoder=decoder,
        retry_policy=RetryPolicy(
            max_attempts=max_attempts,
            interval=interval,
        ),
    )


class TestConnectionWorkerStreaming:
    @pytest.mark.asyncio
    async def test_emits_sequential_steps_and_closes(self) -> None:
        client = FakeStreamClient([StreamPlan(chunks=[b"x", b"y", b"z"])])
        worker = create_worker(client)
        events: asyncio.Queue = asyncio.Queue()

        state = await worker.run(events)

        emitted = drain(events)
        assert [event.step for event in emitted] == [1, 2, 3]
        assert all(event.worker_id == 1 for event in emitted)
        assert state.phase == WorkerPhase.CLOSED
        assert state.history == [
            WorkerPhase.IDLE,
            WorkerPhase.CONNECTING,
            WorkerPhase.STREAMING,
            WorkerPhase.CLOSED,
        ]
        assert client.streams[0].closed is True

    @pytest.mark.asyncio
    async def test_timestamps_do_not_decrease(self) -> None:
        client = FakeStreamClient([StreamPlan(chunks=[b"a", b"b", b"c", b"d"])])
        worker = create_worker(client)
        events: asyncio.Queue = asyncio.Queue()

        await worker.run(events)

        timestamps = [event.timestamp for event in drain(events)]
        assert timestamps == sorted(timestamps)

    @pytest.mark.asyncio
    async def test_malformed_chunk_is_dropped(self) -> None:
        client = FakeStreamClient([
            StreamPlan(chunks=[b'{"a": 1}', b"not json", b'{"b": 2}']),
        ])
        worker = create_worker(client, decoder=JSONChunkDecoder())
        events: asyncio.Queue = asyncio.Queue()

        state = await worker.run(events)

        assert [event.step for event in drain(events)] == [1, 2]
        assert state.phase == WorkerPhase.CLOSED
        assert worker.step == 2

    @pytest.mark.asyncio
    async def test_empty_line_is_dropped_by_default_decoder(self) -> None:
        client = FakeStreamClient([StreamPlan(chunks=[b"x", b"", b"y"])])
        worker = create_worker(client)
        events: asyncio.Queue = asyncio.Queue()

        await worker.run(events)

        assert [event.step for event in drain(events)] == [1, 2]


class TestConnectionWorkerRetry:
    @pytest.mark.asyncio
    async def test_fails_after_exactly_max_attempts(self) -> None:
        client = FakeStreamClient([StreamPlan(connect_failures=1000)])
        worker = create_worker(client, max_attempts=4)
        events: asyncio.Queue = asyncio.Queue()

        state = await worker.run(events)

        assert client.calls == 4
        assert state.retry_count == 4
        assert state.phase == WorkerPhase.FAILED
        assert isinstance(state.last_error, ConnectError)
        assert events.empty()
        assert WorkerPhase.STREAMING not in state.history

    @pytest.mark.asyncio
    async def test_connects_after_transient_failures(self) -> None:
        client = FakeStreamClient([
            StreamPlan(connect_failures=2, chunks=[b"x"]),
        ])
        worker = create_worker(client, max_attempts=5)
        events: asyncio.Queue = asyncio.Queue()

        state = await worker.run(events)

        assert client.calls == 3
        assert state.retry_count == 2
        assert state.phase == WorkerPhase.CLOSED
        assert [event.step for event in drain(events)] == [1]

    @pytest.mark.asyncio
    async def test_read_error_is_terminal_without_reconnect(self) -> None:
        client = FakeStreamClient([
            StreamPlan(
                chunks=[b"x"],
                error=StreamReadError("Err. - connection reset by peer"),
            ),
        ])
        worker = create_worker(client, max_attempts=10)
        events: asyncio.Queue = asyncio.Queue()

        state = await worker.run(events)

        assert client.calls == 1
        assert state.phase == WorkerPhase.FAILED
        assert isinstance(state.last_error, StreamReadError)
        assert [event.step for event in drain(events)] == [1]

        streaming_at = state.history.index(WorkerPhase.STREAMING)
        assert WorkerPhase.CONNECTING not in state.history[streaming_at:]
        assert client.streams[0].closed is True

    @pytest.mark.asyncio
    async def test_unexpected_error_fails_worker(self) -> None:
        client = FakeStreamClient([
            StreamPlan(chunks=[b"x"], error=RuntimeError("boom")),
        ])
        worker = create_worker(client)
        events: asyncio.Queue = asyncio.Queue()

        state = await worker.run(events)

        assert state.phase == WorkerPhase.FAILED
        assert isinstance(state.last_error, RuntimeError)
        assert client.streams[0].closed is True


class TestConnectionWorkerCancellation:
    @pytest.mark.asyncio
    async def test_cancel_before_start_makes_no_attempt(self) -> None:
        client = FakeStreamClient([StreamPlan(chunks=[b"x"])])
        cancel = asyncio.Event()
        cancel.set()
        worker = create_worker(client, cancel=cancel)
        events: asyncio.Queue = asyncio.Queue()

        state = await worker.run(events)

        assert client.calls == 0
        assert state.phase == WorkerPhase.ABORTED
        assert events.empty()

    @pytest.mark.asyncio
    async def test_cancel_during_retry_wait_aborts_immediately(self) -> None:
        client = FakeStreamClient([StreamPlan(connect_failures=1000)])
        cancel = asyncio.Event()
        worker = create_worker(
            client,
            cancel=cancel,
            max_attempts=100,
            interval=30,
        )
        events: asyncio.Queue = asyncio.Queue()

        task = asyncio.create_task(worker.run(events))

        while client.calls < 1:
            await asyncio.sleep(0.001)

        cancel.set()
        state = await asyncio.wait_for(task, timeout=5)

        assert client.calls == 1
        assert state.phase == WorkerPhase.ABORTED
        assert state.retry_count == 1
        assert events.empty()

    @pytest.mark.asyncio
    async def test_task_cancel_mid_read_aborts_and_releases(self) -> None:
        client = FakeStreamClient([StreamPlan(chunks=[b"x"], block=True)])
        worker = create_worker(client)
        events: asyncio.Queue = asyncio.Queue()

        task = asyncio.create_task(worker.run(events))

        while len(client.streams) < 1 or client.streams[0].reading.is_set() is False:
            await asyncio.sleep(0.001)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert worker.state.phase == WorkerPhase.ABORTED
        assert worker.state.last_error is None
        assert client.streams[0].closed is True
        assert [event.step for event in drain(events)] == [1]
