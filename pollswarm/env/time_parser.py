import re
from datetime import timedelta

DURATION_PATTERN = re.compile(
    r"(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>ms|[smhdw])?",
    flags=re.I,
)


class TimeParser:
    """
    Converts durations such as `1s`, `0.5s`, `250ms`, `2m` or `1h30m` into
    float seconds. A bare number is taken as seconds.
    """

    def __init__(self) -> None:
        self._units = {
            "ms": "milliseconds",
            "s": "seconds",
            "m": "minutes",
            "h": "hours",
            "d": "days",
            "w": "weeks",
        }

    def parse(self, time_amount: str | int | float) -> float:
        if isinstance(time_amount, (int, float)):
            return float(time_amount)

        amounts: dict[str, float] = {}
        for match in DURATION_PATTERN.finditer(time_amount):
            unit = self._units[(match.group("unit") or "s").lower()]
            amounts[unit] = amounts.get(unit, 0.0) + float(match.group("value"))

        if len(amounts) == 0:
            raise ValueError(f"Err. - can not parse duration {time_amount!r}")

        return timedelta(**amounts).total_seconds()
