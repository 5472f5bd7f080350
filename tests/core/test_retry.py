from __future__ import annotations

import pytest

from assist_bot.core.exceptions import PermanentError, TransientError
from assist_bot.core.retry import retry_transient


@pytest.mark.anyio
async def test_retry_transient_retries_until_success() -> None:
    attempts = {"count": 0}

    @retry_transient(max_attempts=3, base_wait=0.001, max_wait=0.01)
    async def flaky() -> str:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise TransientError("try again")
        return "ok"

    assert await flaky() == "ok"
    assert attempts["count"] == 3


@pytest.mark.anyio
async def test_retry_transient_reraises_after_exhaustion() -> None:
    attempts = {"count": 0}

    @retry_transient(max_attempts=2, base_wait=0.001, max_wait=0.01)
    async def always_down() -> None:
        attempts["count"] += 1
        raise TransientError("still down")

    with pytest.raises(TransientError):
        await always_down()
    assert attempts["count"] == 2


@pytest.mark.anyio
async def test_retry_transient_does_not_retry_permanent_errors() -> None:
    attempts = {"count": 0}

    @retry_transient(max_attempts=3, base_wait=0.001, max_wait=0.01)
    async def forbidden() -> None:
        attempts["count"] += 1
        raise PermanentError("forbidden")

    with pytest.raises(PermanentError):
        await forbidden()
    assert attempts["count"] == 1
