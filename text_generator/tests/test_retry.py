from __future__ import annotations

import pytest

from text_generator.rag.errors import MalformedReplyError, RemoteCallError
from text_generator.rag.retry import retry_remote

pytestmark = pytest.mark.anyio


class Flaky:
    def __init__(self, errors: list[Exception]) -> None:
        self.errors = errors
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


async def test_retries_remote_failures_until_success() -> None:
    operation = Flaky([RemoteCallError("down"), RemoteCallError("down")])

    result = await retry_remote(operation, attempts=3, backoff=0, stage="embed")

    assert result == "ok"
    assert operation.calls == 3


async def test_gives_up_after_bounded_attempts() -> None:
    operation = Flaky([RemoteCallError("down")] * 5)

    with pytest.raises(RemoteCallError):
        await retry_remote(operation, attempts=2, backoff=0, stage="search")

    assert operation.calls == 2


async def test_malformed_replies_are_not_retried() -> None:
    operation = Flaky([MalformedReplyError("bad shape")])

    with pytest.raises(MalformedReplyError):
        await retry_remote(operation, attempts=3, backoff=0, stage="embed")

    assert operation.calls == 1


async def test_last_attempt_error_is_raised() -> None:
    first, last = RemoteCallError("first"), RemoteCallError("last")
    operation = Flaky([first, last])

    with pytest.raises(RemoteCallError) as excinfo:
        await retry_remote(operation, attempts=2, backoff=0, stage="embed")

    assert excinfo.value is last


async def test_single_attempt_is_not_retried() -> None:
    operation = Flaky([RemoteCallError("down")])

    with pytest.raises(RemoteCallError):
        await retry_remote(operation, attempts=1, backoff=0, stage="search")

    assert operation.calls == 1
