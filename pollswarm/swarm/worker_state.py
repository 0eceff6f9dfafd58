from dataclasses import dataclass, field

from pollswarm.errors import InvalidTransitionError

from .worker_phase import TERMINAL_PHASES, VALID_TRANSITIONS, WorkerPhase


@dataclass
class WorkerState:
    id: int
    phase: WorkerPhase = WorkerPhase.IDLE
    retry_count: int = 0
    last_error: Exception | None = None
    history: list[WorkerPhase] = field(
        default_factory=lambda: [WorkerPhase.IDLE],
    )

    @property
    def terminal(self):
        return self.phase in TERMINAL_PHASES

    def can_transition(self, to_phase: WorkerPhase) -> bool:
        return to_phase in VALID_TRANSITIONS[self.phase]

    def transition(
        self,
        to_phase: WorkerPhase,
        error: Exception | None = None,
    ):
        if self.can_transition(to_phase) is False:
            raise InvalidTransitionError(
                f"Err. - worker {self.id} cannot move from {self.phase.value} to {to_phase.value}"
            )

        self.phase = to_phase
        self.history.append(to_phase)

        if error is not None:
            self.last_error = error

    def abort(self):
        if self.terminal is False:
            self.transition(WorkerPhase.ABORTED)

    def fail(self, error: Exception):
        if self.terminal is False:
            self.transition(
                WorkerPhase.FAILED,
                error=error,
            )
