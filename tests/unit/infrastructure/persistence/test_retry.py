"""Tests for the database lock retry decorator."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from talebox.infrastructure.persistence.retry import is_lock_error, with_db_retry


def locked() -> OperationalError:
    return OperationalError("UPDATE listening_progress", {}, Exception("database is locked"))


def retried(outcomes: list, **retry_kwargs):
    """Decorated coroutine that raises/returns outcomes in order, plus its call mock."""
    calls = AsyncMock(side_effect=outcomes)

    @with_db_retry(**retry_kwargs)
    async def save_checkpoint() -> str:
        return await calls()

    return save_checkpoint, calls


@pytest.fixture
def sleep(mocker) -> AsyncMock:
    return mocker.patch("talebox.infrastructure.persistence.retry.asyncio.sleep", new=AsyncMock())


@pytest.mark.parametrize(
    ("message", "expected"),
    [("database is locked", True), ("database table is busy", True), ("no such table: books", False)],
)
def test_is_lock_error(message, expected):
    assert is_lock_error(OperationalError("SELECT 1", {}, Exception(message))) is expected


async def test_retries_lock_errors_with_backoff(sleep):
    save, calls = retried([locked(), locked(), "saved"], max_attempts=3, initial_delay=0.1)

    assert await save() == "saved"
    assert calls.await_count == 3
    assert [call.args[0] for call in sleep.await_args_list] == [0.1, 0.2]


async def test_gives_up_after_max_attempts(sleep):
    save, calls = retried([locked(), locked()], max_attempts=2)

    with pytest.raises(OperationalError):
        await save()

    assert calls.await_count == 2


async def test_other_operational_errors_are_not_retried(sleep):
    save, calls = retried([OperationalError("SELECT", {}, Exception("no such table: books"))], max_attempts=5)

    with pytest.raises(OperationalError):
        await save()

    assert calls.await_count == 1
    sleep.assert_not_awaited()


async def test_delay_is_capped(sleep):
    save, _ = retried([locked(), locked(), locked(), "ok"], max_attempts=4, initial_delay=1.0, max_delay=1.5)

    await save()

    assert [call.args[0] for call in sleep.await_args_list] == [1.0, 1.5, 1.5]


def test_wrapper_keeps_the_function_name():
    save, _ = retried(["ok"])
    assert save.__name__ == "save_checkpoint"
