"""Headless-browser page rendering engine."""

from .browser import BrowserManager, browser_manager
from .exceptions import (
    BrowserNotInitializedError,
    NavigationTimeoutError,
    ReadyFlagTimeoutError,
    RenderEngineError,
    RenderFailedError,
)
from .readiness import wait_for_render_ready
from .renderer import ImageOptions, PageRenderer, PdfOptions, RenderResult, build_render_url

__all__ = [
    "BrowserManager",
    "browser_manager",
    "PageRenderer",
    "PdfOptions",
    "ImageOptions",
    "RenderResult",
    "build_render_url",
    "wait_for_render_ready",
    "RenderEngineError",
    "NavigationTimeoutError",
    "ReadyFlagTimeoutError",
    "RenderFailedError",
    "BrowserNotInitializedError",
]
