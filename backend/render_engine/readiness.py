"""
Readiness detection for rendered pages.

The rendered application sets ``window.__RENDER_READY__ = true`` once its
content is worth capturing. Capture must not start before that flag is seen.
"""

import asyncio
import logging

from .exceptions import ReadyFlagTimeoutError
from .job_logger import get_job_logger

logger = logging.getLogger(__name__)

READY_FLAG = "__RENDER_READY__"

# Fixed poll cadence and post-ready settle delay (milliseconds)
POLL_INTERVAL_MS = 100
SETTLE_DELAY_MS = 150

DEFAULT_READY_TIMEOUT_MS = 10000

_FONTS_READY_SCRIPT = "() => document.fonts.ready.then(() => true)"
_READY_FLAG_SCRIPT = f"() => Boolean(window.{READY_FLAG})"


async def _poll_ready_flag(page, interval_ms: int) -> None:
    """Return once the page reports the ready flag as true."""
    while not await page.evaluate(_READY_FLAG_SCRIPT):
        await asyncio.sleep(interval_ms / 1000)


async def wait_for_render_ready(
    page,
    job_id: str,
    timeout_ms: int = DEFAULT_READY_TIMEOUT_MS,
    poll_interval_ms: int = POLL_INTERVAL_MS,
    settle_delay_ms: int = SETTLE_DELAY_MS,
) -> None:
    """
    Block until the page signals it is ready for capture.

    Font loading is awaited without a bound: capturing before web fonts
    resolve produces wrong output. The ready flag poll is bounded by
    ``timeout_ms`` and is cancelled by ``asyncio.wait_for`` on expiry.

    Args:
        page: Playwright page that has finished navigation
        job_id: Job identifier for log context
        timeout_ms: Time limit for the ready flag to appear
        poll_interval_ms: Delay between flag checks
        settle_delay_ms: Fixed delay after the flag for final CSS transitions

    Raises:
        ReadyFlagTimeoutError: If the flag is not set within ``timeout_ms``
    """
    job_logger = get_job_logger(__name__, job_id)

    job_logger.debug("Waiting for fonts to be ready...")
    await page.evaluate(_FONTS_READY_SCRIPT)
    job_logger.debug("Fonts ready")

    job_logger.debug(f"Waiting for {READY_FLAG} flag (timeout={timeout_ms}ms)...")
    try:
        await asyncio.wait_for(
            _poll_ready_flag(page, poll_interval_ms),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        job_logger.warning(f"{READY_FLAG} flag not set within {timeout_ms}ms")
        raise ReadyFlagTimeoutError(timeout_ms)

    job_logger.debug(f"{READY_FLAG} flag detected")

    await page.wait_for_timeout(settle_delay_ms)
