import pytest

from src.platform.exception.exceptions import PermanentJobError
from src.service.worker.app.retry_policy import RetryPolicy


def _flaky(failures: list[Exception], result: str = 'ok'):
    calls: list[int] = []

    async def operation() -> str:
        calls.append(1)
        if failures:
            raise failures.pop(0)
        return result

    return operation, calls


@pytest.mark.unit
class TestRetryPolicy:
    def test_delays_double_from_base(self):
        policy = RetryPolicy(attempts=4, base_delay_seconds=1.0)

        assert [policy.delay_before(n) for n in range(1, 5)] == [0.0, 1.0, 2.0, 4.0]

    def test_requires_at_least_one_attempt(self):
        with pytest.raises(ValueError):
            RetryPolicy(attempts=0)

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self, retry_policy, sleeps):
        operation, calls = _flaky([ConnectionError('reset'), TimeoutError('slow')])

        result = await retry_policy.run(operation, description='roster upsert')

        assert result == 'ok'
        assert len(calls) == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_reraises_last_error_when_attempts_run_out(self, retry_policy, sleeps):
        operation, calls = _flaky(
            [ConnectionError('first'), ConnectionError('second'), ConnectionError('third')]
        )

        with pytest.raises(ConnectionError, match='third'):
            await retry_policy.run(operation)

        assert len(calls) == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_permanent_error_is_not_retried(self, retry_policy, sleeps):
        operation, calls = _flaky([PermanentJobError('spreadsheet deleted')])

        with pytest.raises(PermanentJobError):
            await retry_policy.run(operation)

        assert len(calls) == 1
        assert sleeps == []
