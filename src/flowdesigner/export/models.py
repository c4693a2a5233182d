"""Export data models and errors."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field


class ExportError(Exception):
    """Base class for failures of the PDF export."""


class SurfaceNotFoundError(ExportError):
    """The rendered diagram surface is not available."""


class RasterizationError(ExportError):
    """The surface could not be converted into an image."""


class DeliveryError(ExportError):
    """The finished document could not be downloaded."""


class ExportInProgressError(ExportError):
    """Another export of the same surface has not finished yet."""


class ExportState(StrEnum):
    IDLE = "idle"
    EXPORTING = "exporting"


class Orientation(StrEnum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class RasterImage(BaseModel):
    """A PNG capture of the surface."""

    data: bytes
    width: int
    height: int

    @property
    def orientation(self) -> Orientation:
        return Orientation.LANDSCAPE if self.width > self.height else Orientation.PORTRAIT


class ImageBox(BaseModel):
    """Placement of the diagram image on the page, in millimetres."""

    x: float
    y: float
    width: float
    height: float


class ExportArtifact(BaseModel):
    """A finished PDF ready for delivery."""

    filename: str
    content: bytes
    orientation: Orientation
    page_width: float
    page_height: float
    image_box: ImageBox
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    media_type: str = "application/pdf"


def export_filename(name: str, default: str = "flow_diagram") -> str:
    """Derive the download name: whitespace and path separator runs become underscores."""
    if not name.strip():
        return f"{default}.pdf"
    return re.sub(r"[\s/\\]+", "_", name.strip()) + ".pdf"
