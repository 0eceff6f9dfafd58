import msgspec


class StepUpdate(msgspec.Struct, frozen=True, kw_only=True):
    step: int
    count: int
    total: int
    is_new: bool
    elapsed: float

    @property
    def complete(self):
        return self.total > 0 and self.count >= self.total
