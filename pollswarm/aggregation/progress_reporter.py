import contextlib

from pollswarm.logging import Logger, LoggerStream
from pollswarm.logging.pollswarm_logging_models import StepInfo

from .change_aggregator import ChangeAggregator
from .step_update import StepUpdate


class ProgressReporter:
    def __init__(
        self,
        logs_path: str | None = None,
    ) -> None:
        self._logs_path = logs_path
        self._logger = Logger()
        self._exit_stack = contextlib.AsyncExitStack()
        self._aggregator: ChangeAggregator | None = None
        self.stream: LoggerStream | None = None

    async def attach(self, aggregator: ChangeAggregator):
        self.stream = await self._exit_stack.enter_async_context(
            self._logger.context(
                name="progress",
                template="{timestamp} - {message}",
                path=self._logs_path,
            )
        )

        self._aggregator = aggregator
        aggregator.subscribe(self.update)

    async def update(self, update: StepUpdate):
        if self.stream is None:
            return

        if update.is_new is False and update.complete is False:
            return

        if update.complete:
            message = f"Change {update.step} {update.count}/{update.total} in {update.elapsed:.3f}s"

        else:
            message = f"Change {update.step} {update.count}/{update.total}"

        await self.stream.log(
            StepInfo(
                message=message,
                step=update.step,
                count=update.count,
                total=update.total,
                elapsed=update.elapsed,
            )
        )

    async def close(self):
        if self._aggregator is not None:
            self._aggregator.unsubscribe(self.update)
            self._aggregator = None

        self.stream = None
        await self._exit_stack.aclose()
