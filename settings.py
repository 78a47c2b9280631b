"""
Process-level settings.

Values can be overridden through the environment or a `.env` file, e.g.:

    ASSETS_DIR="/srv/potions/assets"
    NIGHT_SECONDS=45
"""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Irish Potions"

    # ingredients/ and heroes/ image folders; the built-in catalog is used when absent
    ASSETS_DIR: Optional[Path] = Path(__file__).resolve().parent / "assets"

    MAX_PLAYERS: int = 10
    TICK_SECONDS: float = 1.0

    # defaults for new rooms
    NIGHT_SECONDS: int = 30
    DAY_SECONDS: int = 15
    HAND_SIZE: int = 3

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
