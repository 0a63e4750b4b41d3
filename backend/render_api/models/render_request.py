"""Pydantic models for render job requests."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from render_engine.renderer import ImageOptions, PdfOptions


class PageMargins(BaseModel):
    """CSS length margins for each side of a PDF page."""

    top: str = Field(default="20mm")
    bottom: str = Field(default="20mm")
    left: str = Field(default="15mm")
    right: str = Field(default="15mm")

    model_config = {"strict": True}


class PdfRenderRequest(BaseModel):
    """
    Request body for POST /render/pdf.

    Attributes:
        url: Path of the page to render, resolved against RENDER_APP_URL
        auth_token: Token handed to the rendered app as ``_renderToken``
        paper_size: A4, Letter or Legal
        orientation: portrait or landscape
        print_background: Print background graphics
        margins: Page margins
        filename: Output filename without extension
        upload_to_storage: Upload and return a signed URL instead of a data URL
        storage_path: Storage path prefix (e.g. org-id/documents)
    """

    url: str = Field(
        ...,
        min_length=1,
        description="URL path to render",
        examples=["/render/a4/invoice-123"],
    )
    auth_token: Optional[str] = Field(
        None,
        alias="authToken",
        description="Authentication token passed to the rendered app",
    )
    paper_size: Literal["A4", "Letter", "Legal"] = Field(
        "A4",
        alias="paperSize",
        description="Paper size",
    )
    orientation: Literal["portrait", "landscape"] = Field(
        "portrait",
        description="Page orientation",
    )
    print_background: bool = Field(
        True,
        alias="printBackground",
        description="Print background graphics",
    )
    margins: PageMargins = Field(
        default_factory=PageMargins,
        description="Page margins",
    )
    filename: Optional[str] = Field(
        None,
        description="Custom filename (without extension)",
    )
    upload_to_storage: bool = Field(
        True,
        alias="uploadToStorage",
        description="Upload to object storage and return a signed URL",
    )
    storage_path: Optional[str] = Field(
        None,
        alias="storagePath",
        description="Storage path prefix",
    )

    model_config = {
        "populate_by_name": True,
        "strict": True,
        "json_schema_extra": {
            "examples": [
                {
                    "url": "/render/a4/invoice-123",
                    "paperSize": "A4",
                    "orientation": "portrait",
                    "uploadToStorage": False,
                }
            ]
        },
    }

    def to_pdf_options(self) -> PdfOptions:
        return PdfOptions(
            paper_size=self.paper_size,
            landscape=self.orientation == "landscape",
            print_background=self.print_background,
            margins=self.margins.model_dump(),
        )


class ImageRenderRequest(BaseModel):
    """
    Request body for POST /render/image.

    Width and height are the exact viewport size; ``scale`` is the device
    scale factor, so the captured bitmap is ``width*scale`` by ``height*scale``.
    """

    url: str = Field(
        ...,
        min_length=1,
        description="URL path to render",
        examples=["/render/social/post-123?size=1080x1920"],
    )
    auth_token: Optional[str] = Field(
        None,
        alias="authToken",
        description="Authentication token passed to the rendered app",
    )
    format: Literal["png", "jpeg", "webp"] = Field(
        "png",
        description="Image format",
    )
    quality: int = Field(
        90,
        ge=1,
        le=100,
        description="Image quality (1-100, applied to jpeg)",
    )
    width: int = Field(
        1080,
        ge=1,
        le=4096,
        description="Viewport width in pixels",
    )
    height: int = Field(
        1080,
        ge=1,
        le=4096,
        description="Viewport height in pixels",
    )
    scale: float = Field(
        1,
        ge=1,
        le=3,
        description="Device scale factor",
    )
    filename: Optional[str] = Field(
        None,
        description="Custom filename (without extension)",
    )
    upload_to_storage: bool = Field(
        True,
        alias="uploadToStorage",
        description="Upload to object storage and return a signed URL",
    )
    storage_path: Optional[str] = Field(
        None,
        alias="storagePath",
        description="Storage path prefix",
    )

    model_config = {
        "populate_by_name": True,
        "strict": True,
        "json_schema_extra": {
            "examples": [
                {
                    "url": "/render/social/post-123",
                    "format": "png",
                    "width": 1080,
                    "height": 1920,
                    "scale": 2,
                }
            ]
        },
    }

    def to_image_options(self) -> ImageOptions:
        return ImageOptions(
            format=self.format,
            quality=self.quality,
            width=self.width,
            height=self.height,
            scale=self.scale,
        )
