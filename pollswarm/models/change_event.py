import msgspec


class ChangeEvent(msgspec.Struct, frozen=True, kw_only=True):
    worker_id: int
    step: int
    timestamp: float
