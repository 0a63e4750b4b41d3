"""Custom exceptions for the page render engine.

Every engine failure carries its client-facing error code as a class
attribute, so the API layer can classify it without reading the message.
"""


class RenderEngineError(Exception):
    """Base exception for render engine errors."""

    error_code = "RENDER_FAILED"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NavigationTimeoutError(RenderEngineError):
    """Page did not reach network idle within the navigation timeout."""

    error_code = "NAVIGATION_TIMEOUT"

    def __init__(self, url: str, timeout_ms: int):
        super().__init__(
            f"Navigation to {url} did not reach network idle within {timeout_ms}ms",
            details={"url": url, "timeout_ms": timeout_ms},
        )


class ReadyFlagTimeoutError(RenderEngineError):
    """Page never set __RENDER_READY__ within the readiness timeout."""

    error_code = "READY_FLAG_TIMEOUT"

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(
            f"__RENDER_READY__ flag not set within {timeout_ms}ms",
            details={"timeout_ms": timeout_ms},
        )


class RenderFailedError(RenderEngineError):
    """Browser-level failure while loading or capturing a page."""


class BrowserNotInitializedError(RenderEngineError):
    """Render attempted before BrowserManager.init() was awaited."""

    def __init__(self):
        super().__init__("Browser not initialized. Call BrowserManager.init() first.")
