from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    tick_interval_seconds: float = 0.25
    alarm_repeat_seconds: float = 0.9
    vibration_pattern: List[int] = [400, 200, 400, 200, 400, 600]
    notification_title: str = "Timer Complete!"
    sound_enabled: bool = True
    notifications_enabled: bool = True
    storage_path: str = ".stepchef/storage.json"
    storage_key: str = "cooking-storage"
    library_storage_key: str = "recipe-library"
    preferences_storage_key: str = "preferences"
    sample_rate: int = 24_000

    model_config = {
        "env_file": ".env",
        "env_prefix": "STEPCHEF_",
        "extra": "ignore",
    }

@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
