from .aggregation import (
    ChangeAggregator as ChangeAggregator,
    ProgressReporter as ProgressReporter,
    StepUpdate as StepUpdate,
)
from .client import (
    Credential as Credential,
    SessionProvider as SessionProvider,
    SwarmClient as SwarmClient,
)
from .env import Env as Env
from .errors import (
    AuthError as AuthError,
    ConnectError as ConnectError,
    DecodeError as DecodeError,
    StreamReadError as StreamReadError,
)
from .models import ChangeEvent as ChangeEvent
from .swarm import (
    ConnectionWorker as ConnectionWorker,
    RetryPolicy as RetryPolicy,
    SwarmManager as SwarmManager,
    SwarmResult as SwarmResult,
    WorkerPhase as WorkerPhase,
    WorkerState as WorkerState,
)
