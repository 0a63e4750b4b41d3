"""
Unit tests for the readiness detector.

Uses a fake page whose ready flag flips after a configurable number of polls.
"""

import asyncio

import pytest

from render_engine.exceptions import ReadyFlagTimeoutError
from render_engine.readiness import SETTLE_DELAY_MS, wait_for_render_ready


class FakePage:
    """Page stub answering the font and ready flag scripts."""

    def __init__(self, ready_after: int | None = 0):
        # Number of flag checks that return False before True; None = never
        self.ready_after = ready_after
        self.flag_checks = 0
        self.fonts_awaited = False
        self.waits = []

    async def evaluate(self, script):
        if "document.fonts.ready" in script:
            self.fonts_awaited = True
            return True
        assert "__RENDER_READY__" in script
        self.flag_checks += 1
        return self.ready_after is not None and self.flag_checks > self.ready_after

    async def wait_for_timeout(self, timeout_ms):
        self.waits.append(timeout_ms)


@pytest.mark.asyncio
async def test_returns_when_flag_already_set():
    page = FakePage(ready_after=0)

    await wait_for_render_ready(page, "job-1", timeout_ms=1000)

    assert page.fonts_awaited is True
    assert page.flag_checks == 1


@pytest.mark.asyncio
async def test_applies_settle_delay_after_ready():
    page = FakePage(ready_after=0)

    await wait_for_render_ready(page, "job-1", timeout_ms=1000)

    assert page.waits == [SETTLE_DELAY_MS]
    assert SETTLE_DELAY_MS == 150


@pytest.mark.asyncio
async def test_polls_until_flag_is_set():
    page = FakePage(ready_after=3)

    await wait_for_render_ready(page, "job-1", timeout_ms=2000, poll_interval_ms=1)

    assert page.flag_checks == 4


@pytest.mark.asyncio
async def test_raises_ready_flag_timeout_when_never_set():
    page = FakePage(ready_after=None)

    with pytest.raises(ReadyFlagTimeoutError) as exc_info:
        await wait_for_render_ready(page, "job-1", timeout_ms=50, poll_interval_ms=5)

    assert exc_info.value.error_code == "READY_FLAG_TIMEOUT"
    assert exc_info.value.timeout_ms == 50
    assert "50ms" in str(exc_info.value)
    # No settle delay on failure
    assert page.waits == []


@pytest.mark.asyncio
async def test_polling_stops_after_timeout():
    page = FakePage(ready_after=None)

    with pytest.raises(ReadyFlagTimeoutError):
        await wait_for_render_ready(page, "job-1", timeout_ms=30, poll_interval_ms=5)

    checks_at_timeout = page.flag_checks
    await asyncio.sleep(0.05)
    assert page.flag_checks == checks_at_timeout


@pytest.mark.asyncio
async def test_fonts_are_awaited_before_polling():
    order = []

    class OrderedPage(FakePage):
        async def evaluate(self, script):
            order.append("fonts" if "fonts" in script else "flag")
            return await super().evaluate(script)

    await wait_for_render_ready(OrderedPage(ready_after=1), "job-1", poll_interval_ms=1)

    assert order[0] == "fonts"
    assert order[1:] == ["flag", "flag"]
