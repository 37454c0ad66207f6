import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

from spritepack.schemas import CompositorName, LayoutPolicy, StylesheetFormat


class Settings(BaseSettings):
    log_level: str = "INFO"

    database_url: str = "sqlite:///./.spritepack.db"

    default_compositor: CompositorName = "pillow"
    default_layout: LayoutPolicy = "vertical"
    default_stylesheet: StylesheetFormat = "css"
    png_compression_level: int = 6
    metadata_concurrency: int = 8

    model_config = SettingsConfigDict(
        env_prefix="SPRITEPACK_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


settings = Settings()
