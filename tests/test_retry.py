"""
Tests for bounded retry with exponential backoff (utils/retry.py).
"""

from unittest.mock import AsyncMock

import pytest

from utils.retry import backoff_delay, retry_async, retry_with_backoff


class TestBackoffDelay:
    def test_doubles_each_attempt_without_jitter(self):
        assert [backoff_delay(n, 1.0, jitter=0) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]

    def test_jitter_is_bounded(self):
        for _ in range(50):
            assert 0.5 <= backoff_delay(1, 0.5, jitter=1.0) <= 1.5


class TestRetryAsync:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = AsyncMock(side_effect=[OSError("boom"), "ok"])
        sleep = AsyncMock()
        result = await retry_async(func, "x", attempts=3, base_delay=1.0, jitter=0, sleep=sleep)
        assert result == "ok"
        assert func.await_count == 2
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self):
        func = AsyncMock(side_effect=OSError("down"))
        sleep = AsyncMock()
        with pytest.raises(OSError):
            await retry_async(func, attempts=3, base_delay=1.0, jitter=0, sleep=sleep)
        assert func.await_count == 3
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_unlisted_errors_are_not_retried(self):
        func = AsyncMock(side_effect=KeyError("nope"))
        sleep = AsyncMock()
        with pytest.raises(KeyError):
            await retry_async(func, attempts=3, retry_on=(OSError,), sleep=sleep)
        assert func.await_count == 1
        sleep.assert_not_awaited()


class TestDecorator:
    @pytest.mark.asyncio
    async def test_decorated_coroutine_retries(self, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr("utils.retry.asyncio.sleep", sleep)
        calls = []

        @retry_with_backoff(attempts=2, base_delay=0.1, jitter=0, retry_on=(ConnectionError,))
        async def flaky(value):
            calls.append(value)
            if len(calls) == 1:
                raise ConnectionError("reset")
            return value * 2

        assert await flaky(21) == 42
        assert calls == [21, 21]
        sleep.assert_awaited_once()
