"""Library configuration from environment variables."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    log_level: str = "info"

    # Tile store defaults
    buffer: float = 0.0625  # 64 units of a 1024 extent tile
    tolerance: float = 3.0  # in 4096ths of a tile
    minzoom: int = 0
    maxzoom: int = 16
    index_maxzoom: int = 4
    build_bbox: bool = False

    model_config = {"env_prefix": "S2TILES_", "env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Set up root logging for scripts and test sessions using the library."""
    load_dotenv()
    name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
