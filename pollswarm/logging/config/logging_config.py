import contextvars
from typing import Literal

from pollswarm.logging.models import LogLevel, LogLevelName

from .stream_type import StreamType

LogOutput = Literal["stdout", "stderr"]

_global_log_level: contextvars.ContextVar[LogLevel] = contextvars.ContextVar(
    "_global_log_level",
    default=LogLevel.INFO,
)
_global_log_output_type: contextvars.ContextVar[StreamType] = contextvars.ContextVar(
    "_global_log_output_type",
    default=StreamType.STDERR,
)


class LoggingConfig:
    """
    Process wide logging settings. Every instance reads and writes the same
    context variables, so a level set once at startup applies to every
    logger created afterwards, including those inside worker tasks.
    """

    def update(
        self,
        log_level: LogLevelName | None = None,
        log_output: LogOutput | None = None,
    ):
        if log_level:
            _global_log_level.set(LogLevel.to_level(log_level))

        if log_output:
            _global_log_output_type.set(StreamType(log_output))

    def enabled(self, log_level: LogLevel) -> bool:
        return log_level.severity >= _global_log_level.get().severity

    @property
    def level(self) -> LogLevel:
        return _global_log_level.get()

    @property
    def output(self) -> StreamType:
        return _global_log_output_type.get()
