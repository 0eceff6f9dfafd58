from dataclasses import dataclass, field
from typing import Dict, List

from .worker_phase import WorkerPhase
from .worker_state import WorkerState


@dataclass
class SwarmResult:
    states: List[WorkerState] = field(default_factory=list)
    counts: Dict[int, int] = field(default_factory=dict)

    def _count_phase(self, phase: WorkerPhase):
        return len([state for state in self.states if state.phase == phase])

    @property
    def closed(self):
        return self._count_phase(WorkerPhase.CLOSED)

    @property
    def failed(self):
        return self._count_phase(WorkerPhase.FAILED)

    @property
    def aborted(self):
        return self._count_phase(WorkerPhase.ABORTED)
