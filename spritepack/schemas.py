from datetime import datetime
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LayoutPolicy = Literal["vertical", "horizontal", "diagonal", "shelf", "packed"]
CompositorName = Literal["pillow", "numpy"]
StylesheetFormat = Literal["css", "prefixed-css", "less", "sass", "scss", "stylus"]


class LayoutOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    policy: LayoutPolicy = "vertical"
    padding: int = Field(default=0, ge=0)
    max_width: int | None = Field(default=None, gt=0)
    scaling: float = Field(default=1.0, gt=0)


class CompositorOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: CompositorName = "pillow"
    compression_level: int = Field(default=6, ge=0, le=9)


class StylesheetOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    format: StylesheetFormat = "css"
    template: str | None = None
    prefix: str = ""
    sprite_url: str | None = None
    pixel_ratio: int = Field(default=1, ge=1)


class SpriteBuildRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    sources: list[str] = Field(min_length=1)
    sprite_path: str
    stylesheet_path: str
    layout: LayoutOptions = LayoutOptions()
    compositor: CompositorOptions = CompositorOptions()
    stylesheet: StylesheetOptions = StylesheetOptions()

    @field_validator("sources")
    @classmethod
    def _normalize_sources(cls, value: list[str]) -> list[str]:
        return [str(Path(p).resolve()) for p in value]

    @field_validator("sprite_path", "stylesheet_path")
    @classmethod
    def _normalize_output(cls, value: str) -> str:
        return str(Path(value).resolve())

    @property
    def output_key(self) -> tuple[str, str]:
        return (self.sprite_path, self.stylesheet_path)

    def fingerprint_payload(self) -> dict[str, Any]:
        """Options that change pixels or stylesheet text, in a fixed shape."""
        return {
            "sprite_path": self.sprite_path,
            "stylesheet_path": self.stylesheet_path,
            "layout": self.layout.model_dump(),
            "compositor": self.compositor.model_dump(),
            "stylesheet": self.stylesheet.model_dump(),
        }


class BuildRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sprite_path: str
    stylesheet_path: str
    fingerprint: str
    succeeded_at: datetime
