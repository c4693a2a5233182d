"""Application configuration loaded from environment and config files."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class DesignerConfig(BaseSettings):
    """Interactive designer configuration."""

    model_config = {"env_prefix": "FLOWDESIGNER_DESIGNER_"}

    debounce_ms: int = 100
    click_delay_ms: int = 50
    surface_width: int = 1200
    surface_height: int = 800
    palette_path: str | None = None

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    @property
    def click_delay_seconds(self) -> float:
        return self.click_delay_ms / 1000


class ExportConfig(BaseSettings):
    """PDF export configuration.

    Page measurements are in millimetres on an A4 page.
    """

    model_config = {"env_prefix": "FLOWDESIGNER_EXPORT_"}

    pixel_ratio: int = 3
    page_format: str = "A4"
    margin_mm: float = 15.0
    header_height_mm: float = 25.0
    image_top_mm: float = 30.0
    reserved_height_mm: float = 40.0
    default_filename: str = "flow_diagram"
    download_dir: str = "exports"


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "FLOWDESIGNER_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    designer: DesignerConfig = Field(default_factory=DesignerConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
