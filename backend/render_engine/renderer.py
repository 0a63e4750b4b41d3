"""
Page renderer: navigate, wait for readiness, capture.

Drives one isolated browser page per job and returns the captured PDF or
screenshot bytes. Playwright failures are converted here into the engine's
tagged exceptions so callers never see raw driver errors.
"""

import time
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .browser import BrowserManager
from .exceptions import NavigationTimeoutError, RenderEngineError, RenderFailedError
from .job_logger import get_job_logger
from .readiness import DEFAULT_READY_TIMEOUT_MS, wait_for_render_ready

RENDER_TOKEN_PARAM = "_renderToken"

DEFAULT_NAVIGATION_TIMEOUT_MS = 15000

# PDF pages are laid out by the print engine; the viewport only affects
# media queries evaluated before printing.
PDF_VIEWPORT = {"width": 1200, "height": 800}


def _default_margins() -> dict[str, str]:
    return {"top": "20mm", "bottom": "20mm", "left": "15mm", "right": "15mm"}


@dataclass
class PdfOptions:
    """Print settings for a PDF capture."""

    paper_size: str = "A4"
    landscape: bool = False
    print_background: bool = True
    margins: dict[str, str] = field(default_factory=_default_margins)


@dataclass
class ImageOptions:
    """Viewport and encoding settings for a screenshot capture."""

    format: str = "png"
    quality: int = 90
    width: int = 1080
    height: int = 1080
    scale: float = 1


@dataclass
class RenderResult:
    """Captured bytes plus render metadata."""

    data: bytes
    format: str
    render_time_ms: int
    page_count: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.data)


def build_render_url(base_url: str, path: str, auth_token: Optional[str] = None) -> str:
    """
    Resolve ``path`` against the rendered application's base URL.

    Example:
        >>> build_render_url("https://app.example.com/", "render/a4/inv-1", "tok")
        'https://app.example.com/render/a4/inv-1?_renderToken=tok'
    """
    base = base_url.rstrip("/") + "/"
    target = urljoin(base, path if path.startswith("/") else f"/{path}")

    if auth_token:
        parts = urlsplit(target)
        query = [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key != RENDER_TOKEN_PARAM
        ]
        query.append((RENDER_TOKEN_PARAM, auth_token))
        target = urlunsplit(parts._replace(query=urlencode(query)))

    return target


def screenshot_type(image_format: str) -> str:
    """Map a requested image format to the Playwright screenshot type."""
    # WebP is not a Playwright screenshot type; those requests get PNG bytes.
    return "jpeg" if image_format == "jpeg" else "png"


class PageRenderer:
    """Render pages of the configured application to PDF or images."""

    def __init__(
        self,
        browser: BrowserManager,
        base_url: str,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        ready_timeout_ms: int = DEFAULT_READY_TIMEOUT_MS,
    ):
        self.browser = browser
        self.base_url = base_url
        self.navigation_timeout_ms = navigation_timeout_ms
        self.ready_timeout_ms = ready_timeout_ms

    async def render_pdf(
        self,
        path: str,
        options: PdfOptions,
        job_id: str,
        auth_token: Optional[str] = None,
    ) -> RenderResult:
        """
        Render ``path`` to PDF bytes.

        Raises:
            NavigationTimeoutError: Page did not reach network idle in time
            ReadyFlagTimeoutError: Page never signalled readiness
            RenderFailedError: Any other browser failure
            BrowserNotInitializedError: Browser was never launched
        """
        job_logger = get_job_logger(__name__, job_id)
        started = time.monotonic()

        try:
            async with self.browser.isolated_page(
                PDF_VIEWPORT["width"], PDF_VIEWPORT["height"], device_scale_factor=1
            ) as page:
                await self._load(page, path, auth_token, job_id)

                job_logger.info("Generating PDF...")
                pdf_bytes = await page.pdf(
                    format=options.paper_size,
                    landscape=options.landscape,
                    print_background=options.print_background,
                    margin=dict(options.margins),
                )
        except RenderEngineError:
            raise
        except PlaywrightError as e:
            job_logger.error(f"PDF render failed: {e}")
            raise RenderFailedError(f"PDF render failed: {e}") from e

        job_logger.info(f"PDF generated successfully ({len(pdf_bytes)} bytes)")
        return RenderResult(
            data=pdf_bytes,
            format="pdf",
            render_time_ms=_elapsed_ms(started),
        )

    async def render_image(
        self,
        path: str,
        options: ImageOptions,
        job_id: str,
        auth_token: Optional[str] = None,
    ) -> RenderResult:
        """
        Render ``path`` to a viewport screenshot.

        Raises the same conditions as :meth:`render_pdf`.
        """
        job_logger = get_job_logger(__name__, job_id)
        started = time.monotonic()

        try:
            async with self.browser.isolated_page(
                options.width, options.height, device_scale_factor=options.scale
            ) as page:
                # Deterministic screenshots regardless of transition timing
                await page.emulate_media(reduced_motion="reduce")

                await self._load(page, path, auth_token, job_id)

                job_logger.info(f"Generating {options.format.upper()} screenshot...")
                capture_type = screenshot_type(options.format)
                screenshot_kwargs = {"type": capture_type, "full_page": False}
                if capture_type == "jpeg":
                    screenshot_kwargs["quality"] = options.quality
                image_bytes = await page.screenshot(**screenshot_kwargs)
        except RenderEngineError:
            raise
        except PlaywrightError as e:
            job_logger.error(f"Screenshot render failed: {e}")
            raise RenderFailedError(f"Screenshot render failed: {e}") from e

        job_logger.info(f"Screenshot generated successfully ({len(image_bytes)} bytes)")
        return RenderResult(
            data=image_bytes,
            format=options.format,
            render_time_ms=_elapsed_ms(started),
            width=options.width,
            height=options.height,
        )

    async def _load(self, page, path: str, auth_token: Optional[str], job_id: str) -> None:
        """Navigate to the target and wait for the ready flag."""
        job_logger = get_job_logger(__name__, job_id)
        url = build_render_url(self.base_url, path, auth_token)

        # Never log the auth token
        job_logger.info(f"Navigating to: {build_render_url(self.base_url, path)}")
        try:
            await page.goto(
                url,
                wait_until="networkidle",
                timeout=self.navigation_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            job_logger.error(f"Navigation timed out after {self.navigation_timeout_ms}ms")
            raise NavigationTimeoutError(path, self.navigation_timeout_ms) from e

        await wait_for_render_ready(page, job_id, timeout_ms=self.ready_timeout_ms)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
