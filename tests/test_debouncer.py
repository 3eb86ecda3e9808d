"""Tests for the search input debouncer."""

import asyncio

import pytest

from discovery.session import Debouncer


@pytest.mark.asyncio
async def test_fires_once_after_quiet_period():
    calls = []
    debouncer = Debouncer(0.05, lambda: calls.append("fired"))

    for _ in range(5):
        debouncer.trigger()
        await asyncio.sleep(0.01)

    assert calls == []
    assert debouncer.pending

    await debouncer.wait()

    assert calls == ["fired"]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_cancel_prevents_firing():
    calls = []
    debouncer = Debouncer(0.02, lambda: calls.append("fired"))

    debouncer.trigger()
    debouncer.cancel()
    await asyncio.sleep(0.05)

    assert calls == []
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_wait_without_pending_returns():
    debouncer = Debouncer(10, lambda: None)
    await debouncer.wait()
