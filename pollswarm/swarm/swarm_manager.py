import asyncio
from typing import Callable, List, Protocol

from pollswarm.aggregation import ChangeAggregator
from pollswarm.client import Credential
from pollswarm.decoding import ChunkDecoder
from pollswarm.env.env import DEFAULT_AUTOUPDATE_BODY
from pollswarm.logging import Logger, LoggerStream
from pollswarm.logging.pollswarm_logging_models import SwarmDebug, SwarmInfo
from pollswarm.models import ChangeEvent

from .connection_worker import ConnectionWorker, StreamClient
from .retry_policy import RetryPolicy
from .swarm_result import SwarmResult


class CredentialProvider(Protocol):
    async def login(self) -> Credential:
        ...


class SwarmManager:
    """
    Runs N independent connection workers against one shared credential
    and feeds their change events into a single aggregator.

    Setting the cancel event (or calling `cancel()`) aborts every worker
    and the aggregation loop; `start()` returns only once every worker has
    reached a terminal phase.
    """

    def __init__(
        self,
        session: CredentialProvider,
        client_factory: Callable[[Credential], StreamClient],
        path: str,
        decoder: ChunkDecoder | None = None,
        retry_policy: RetryPolicy | None = None,
        cancel: asyncio.Event | None = None,
        aggregator: ChangeAggregator | None = None,
        logs_path: str | None = None,
    ) -> None:
        if cancel is None:
            cancel = asyncio.Event()

        if aggregator is None:
            aggregator = ChangeAggregator(logs_path=logs_path)

        self._session = session
        self._client_factory = client_factory
        self._path = path
        self._decoder = decoder
        self._retry_policy = retry_policy
        self._cancel = cancel
        self._logs_path = logs_path
        self._logger = Logger()

        self.aggregator = aggregator
        self.credential: Credential | None = None
        self.workers: List[ConnectionWorker] = []

    @property
    def cancelled(self):
        return self._cancel.is_set()

    def cancel(self):
        self._cancel.set()

    async def start(
        self,
        workers: int = 10,
        body: bytes | str = DEFAULT_AUTOUPDATE_BODY,
    ) -> SwarmResult:
        if workers < 1:
            raise ValueError("Err. - swarm needs at least one worker")

        self.credential = await self._session.login()
        client = self._client_factory(self.credential)

        async with self._logger.context(
            name="swarm",
            path=self._logs_path,
        ) as ctx:
            self.aggregator.reset(total=workers)
            self.workers = [
                ConnectionWorker(
                    worker_id,
                    client,
                    self._path,
                    body,
                    self._cancel,
                    decoder=self._decoder,
                    retry_policy=self._retry_policy,
                    logs_path=self._logs_path,
                )
                for worker_id in range(1, workers + 1)
            ]

            await ctx.log(
                SwarmInfo(
                    message=f"Opening {workers} connections to {self._path} as user {self.credential.user_id}",
                    workers=workers,
                )
            )

            events: asyncio.Queue[ChangeEvent | None] = asyncio.Queue()

            aggregator_task = asyncio.create_task(
                self.aggregator.run(events),
            )

            worker_tasks = [
                asyncio.create_task(
                    worker.run(events),
                )
                for worker in self.workers
            ]

            watcher = asyncio.create_task(
                self._watch_cancel(ctx, worker_tasks, aggregator_task),
            )

            try:
                await asyncio.gather(*worker_tasks, return_exceptions=True)

                events.put_nowait(None)
                await asyncio.gather(aggregator_task, return_exceptions=True)

            finally:
                await self._shutdown(
                    [
                        *worker_tasks,
                        aggregator_task,
                        watcher,
                    ]
                )

            result = SwarmResult(
                states=[worker.state for worker in self.workers],
                counts=self.aggregator.snapshot(),
            )

            await ctx.log(
                SwarmInfo(
                    message=f"Swarm finished - {result.closed} closed, {result.failed} failed, {result.aborted} aborted",
                    workers=workers,
                )
            )

            return result

    async def _watch_cancel(
        self,
        ctx: LoggerStream,
        worker_tasks: List[asyncio.Task],
        aggregator_task: asyncio.Task,
    ):
        await self._cancel.wait()

        for task in [*worker_tasks, aggregator_task]:
            if task.done() is False:
                task.cancel()

        await ctx.log(
            SwarmDebug(
                message="Received cancel signal, aborted all connections",
                workers=len(worker_tasks),
            )
        )

    async def _shutdown(self, tasks: List[asyncio.Task]):
        pending = [task for task in tasks if task.done() is False]

        for task in pending:
            task.cancel()

        await asyncio.gather(*pending, return_exceptions=True)
