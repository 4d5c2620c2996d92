"""Tests for the configure retry policy."""
import pytest
from unittest.mock import AsyncMock

from publisher.errors import ConfigureFailed, InvalidInput, TransferFailed
from publisher.services.retry import configure_with_retries, is_transient


def test_is_transient_matches_substring():
    assert is_transient(ConfigureFailed("Transcode timeout"))
    assert is_transient(ConfigureFailed("Error: Transcode timeout (code 12)"))
    assert not is_transient(ConfigureFailed("transcode timeout"))
    assert not is_transient(ConfigureFailed("Media not found"))


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures():
    configure = AsyncMock(side_effect=[
        ConfigureFailed("Transcode timeout"),
        ConfigureFailed("Transcode timeout"),
        {"status": "ok", "media": {"code": "abc"}},
    ])
    sleep = AsyncMock()

    body = await configure_with_retries(configure, max_attempts=3, delay=1.0, sleep=sleep)

    assert body["media"]["code"] == "abc"
    assert configure.await_count == 3
    assert sleep.await_count == 2
    sleep.assert_awaited_with(1.0)


@pytest.mark.asyncio
async def test_other_failures_are_not_retried():
    configure = AsyncMock(side_effect=ConfigureFailed("Media not found"))
    sleep = AsyncMock()

    with pytest.raises(ConfigureFailed, match="Media not found"):
        await configure_with_retries(configure, max_attempts=5, sleep=sleep)

    assert configure.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_transfer_errors_propagate():
    configure = AsyncMock(side_effect=TransferFailed("connection reset"))
    sleep = AsyncMock()

    with pytest.raises(TransferFailed):
        await configure_with_retries(configure, sleep=sleep)
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_last_transient_error_propagates():
    configure = AsyncMock(side_effect=ConfigureFailed("Transcode timeout"))
    sleep = AsyncMock()

    with pytest.raises(ConfigureFailed, match="Transcode timeout"):
        await configure_with_retries(configure, max_attempts=3, delay=0.5, sleep=sleep)

    assert configure.await_count == 3
    assert sleep.await_count == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("attempts", [0, -1])
async def test_invalid_attempts(attempts):
    configure = AsyncMock()
    with pytest.raises(InvalidInput, match="maxAttempts"):
        await configure_with_retries(configure, max_attempts=attempts)
    configure.assert_not_awaited()
