from enum import Enum


class WorkerPhase(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED = "closed"
    FAILED = "failed"
    ABORTED = "aborted"


TERMINAL_PHASES: frozenset[WorkerPhase] = frozenset({
    WorkerPhase.CLOSED,
    WorkerPhase.FAILED,
    WorkerPhase.ABORTED,
})


# Reconnection is only reachable from IDLE, so a worker that has started
# streaming can never return to CONNECTING.
VALID_TRANSITIONS: dict[WorkerPhase, set[WorkerPhase]] = {
    WorkerPhase.IDLE: {
        WorkerPhase.CONNECTING,
        WorkerPhase.ABORTED,
    },
    WorkerPhase.CONNECTING: {
        WorkerPhase.STREAMING,
        WorkerPhase.FAILED,
        WorkerPhase.ABORTED,
    },
    WorkerPhase.STREAMING: {
        WorkerPhase.CLOSED,
        WorkerPhase.FAILED,
        WorkerPhase.ABORTED,
    },
    WorkerPhase.CLOSED: set(),
    WorkerPhase.FAILED: set(),
    WorkerPhase.ABORTED: set(),
}
