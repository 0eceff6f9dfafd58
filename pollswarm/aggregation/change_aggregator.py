import asyncio
import inspect
from typing import Awaitable, Callable, Dict, List

from pollswarm.logging import Logger
from pollswarm.logging.pollswarm_logging_models import SwarmDebug, SwarmError
from pollswarm.models import ChangeEvent

from .aggregate_state import AggregateState
from .step_update import StepUpdate

Subscriber = Callable[[StepUpdate], Awaitable[None] | None]


class ChangeAggregator:
    def __init__(
        self,
        total: int = 0,
        logs_path: str | None = None,
    ) -> None:
        self.state = AggregateState(total=total)
        self._subscribers: List[Subscriber] = []
        self._logs_path = logs_path
        self._logger = Logger()
        self.processed = 0

    @property
    def total(self):
        return self.state.total

    def reset(self, total: int):
        self.state = AggregateState(total=total)
        self.processed = 0

    def subscribe(self, subscriber: Subscriber):
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber):
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def snapshot(self) -> Dict[int, int]:
        return self.state.counts()

    async def run(
        self,
        events: asyncio.Queue[ChangeEvent | None],
    ):
        async with self._logger.context(
            name="aggregator",
            path=self._logs_path,
        ) as ctx:
            while True:
                event = await events.get()

                if event is None:
                    break

                update = self.state.apply(event)
                self.processed += 1

                for subscriber in list(self._subscribers):
                    try:
                        result = subscriber(update)
                        if inspect.isawaitable(result):
                            await result

                    except Exception as err:
                        await ctx.log(
                            SwarmError(
                                message=f"Subscriber failed handling step {update.step}: {err}",
                                workers=self.total,
                            )
                        )

            await ctx.log(
                SwarmDebug(
                    message=f"Event stream closed after {self.processed} events over {len(self.state)} steps",
                    workers=self.total,
                )
            )

        return self.snapshot()
