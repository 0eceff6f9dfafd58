import pytest

from pollswarm.swarm import RetryPolicy


class TestRetryPolicy:
    def test_defaults(self) -> None:
        policy = RetryPolicy()

        assert policy.max_attempts == 100
        assert policy.interval == 1.0

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_rejects_negative_interval(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(interval=-1)
