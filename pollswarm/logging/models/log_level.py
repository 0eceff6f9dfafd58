from __future__ import annotations

from enum import Enum
from typing import Literal

LogLevelName = Literal[
    "trace",
    "debug",
    "info",
    "warn",
    "error",
    "critical",
    "fatal",
]


class LogLevel(Enum):
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    FATAL = "FATAL"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def to_level(cls, level_name: LogLevelName | str) -> LogLevel:
        name = level_name.strip().upper()
        if name == "WARNING":
            name = "WARN"

        try:
            return cls(name)

        except ValueError as err:
            raise ValueError(
                f"Err. - unknown log level {level_name!r}, expected one of "
                f"{', '.join(level.value.lower() for level in cls)}"
            ) from err


_SEVERITY = {
    level: severity
    for severity, level in enumerate(LogLevel)
}
