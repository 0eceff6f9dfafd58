from typing import Dict

from pollswarm.models import ChangeEvent

from .step_update import StepUpdate


class AggregateState:
    """
    Number of workers that reached each step, in the order the steps were
    first seen. Counts only ever increase.
    """

    def __init__(self, total: int = 0) -> None:
        self.total = total
        self._counts: Dict[int, int] = {}
        self._first_seen: Dict[int, float] = {}

    def __len__(self):
        return len(self._counts)

    def __contains__(self, step: int):
        return step in self._counts

    def count(self, step: int) -> int:
        return self._counts.get(step, 0)

    def counts(self) -> Dict[int, int]:
        return dict(self._counts)

    def steps(self):
        return list(self._counts)

    def apply(self, event: ChangeEvent) -> StepUpdate:
        is_new = event.step not in self._counts

        if is_new:
            self._counts[event.step] = 0
            self._first_seen[event.step] = event.timestamp

        self._counts[event.step] += 1

        return StepUpdate(
            step=event.step,
            count=self._counts[event.step],
            total=self.total,
            is_new=is_new,
            elapsed=max(event.timestamp - self._first_seen[event.step], 0.0),
        )
