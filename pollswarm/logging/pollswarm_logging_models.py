from .models import Entry, LogLevel


class SessionInfo(Entry, kw_only=True):
    address: str
    username: str
    level: LogLevel = LogLevel.INFO

class SessionFatal(Entry, kw_only=True):
    address: str
    username: str
    level: LogLevel = LogLevel.FATAL

class SwarmDebug(Entry, kw_only=True):
    workers: int
    level: LogLevel = LogLevel.DEBUG

class SwarmInfo(Entry, kw_only=True):
    workers: int
    level: LogLevel = LogLevel.INFO

class SwarmError(Entry, kw_only=True):
    workers: int
    level: LogLevel = LogLevel.ERROR

class WorkerDebug(Entry, kw_only=True):
    worker_id: int
    phase: str
    level: LogLevel = LogLevel.DEBUG

class WorkerInfo(Entry, kw_only=True):
    worker_id: int
    phase: str
    level: LogLevel = LogLevel.INFO

class WorkerWarning(Entry, kw_only=True):
    worker_id: int
    phase: str
    attempt: int = 0
    level: LogLevel = LogLevel.WARN

class WorkerError(Entry, kw_only=True):
    worker_id: int
    phase: str
    error: str
    level: LogLevel = LogLevel.ERROR

class StepInfo(Entry, kw_only=True):
    step: int
    count: int
    total: int
    elapsed: float
    level: LogLevel = LogLevel.INFO
