"""Page Render API: render web pages to PDF or images with headless Chromium."""

__version__ = "1.0.0"
