from .connection_worker import (
    ConnectionWorker as ConnectionWorker,
    StreamClient as StreamClient,
)
from .retry_policy import RetryPolicy as RetryPolicy
from .swarm_manager import SwarmManager as SwarmManager
from .swarm_result import SwarmResult as SwarmResult
from .worker_phase import WorkerPhase as WorkerPhase
from .worker_state import WorkerState as WorkerState
