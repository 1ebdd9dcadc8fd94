from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    nominatim_base_url: str = "https://nominatim.openstreetmap.org/"
    nominatim_user_agent: str = "nearby-places/0.1"
    nominatim_email: Optional[str] = None
    nominatim_min_interval: float = 1.25  # seconds slept before every request
    nominatim_timeout: float = 10.0
    nominatim_max_attempts: int = 1  # 1 means no retries
    catalog_path: Optional[Path] = None
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="NEARBY_PLACES_",
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
