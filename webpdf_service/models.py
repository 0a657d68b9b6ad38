"""
Pydantic models for the web PDF service API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .compression import DEFAULT_DPI, DEFAULT_JPEG_QUALITY
from .interception import InterceptRule


class CompressionSettings(BaseModel):
    """Whether and how to compress a rendered PDF."""

    enabled: bool = False
    dpi: float = Field(DEFAULT_DPI, description="Image resolution, clamped to 10-600")
    quality: float = Field(DEFAULT_JPEG_QUALITY, description="JPEG quality, clamped to 1-100")


class GenerateReportRequest(BaseModel):
    """Request body for POST /generateReport."""

    url: Optional[str] = Field(None, description="Page to render (required)")
    intercept: Optional[List[InterceptRule]] = Field(
        None, description="API calls to mock while the page loads"
    )
    cookies: Optional[List[Dict[str, Any]]] = Field(
        None, description="Cookies to install before navigation"
    )
    waitForSelector: Optional[str] = Field(None, description="CSS selector to wait for")
    compression: bool = Field(False, description="Compress the rendered PDF")
    dpi: Optional[float] = Field(None, description="Compression image resolution")
    quality: Optional[float] = Field(None, description="Compression JPEG quality")
    timeout: Optional[float] = Field(None, ge=1, description="Navigation/render timeout in ms")

    def compression_settings(self) -> CompressionSettings:
        return CompressionSettings(
            enabled=self.compression,
            dpi=DEFAULT_DPI if self.dpi is None else self.dpi,
            quality=DEFAULT_JPEG_QUALITY if self.quality is None else self.quality,
        )
