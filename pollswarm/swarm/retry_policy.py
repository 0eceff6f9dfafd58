import msgspec


class RetryPolicy(msgspec.Struct, frozen=True, kw_only=True):
    max_attempts: int = 100
    interval: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("Err. - max_attempts must be at least 1")

        if self.interval < 0:
            raise ValueError("Err. - interval must not be negative")
