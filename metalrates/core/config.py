from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules with a METALRATES_ prefix
    (e.g., METALRATES_DEBUG, METALRATES_DATA_DIR, METALRATES_MAX_DAILY_REQUESTS).
    """

    model_config = SettingsConfigDict(
        env_prefix="METALRATES_", env_file=".env", case_sensitive=False
    )

    # Basic app metadata
    app_name: str = "Metal Rates Service"
    debug: bool = True
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "metalrates.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided
    # Allowed: 'sqlite' (durable metadata table), 'memory' (process-local dict)
    storage_backend: str = "sqlite"

    # Scheduling: two one-hour windows, local wall-clock time
    timezone: str = "Asia/Kolkata"
    morning_hour: int = 8
    evening_hour: int = 15
    window_hours: int = 1
    max_daily_requests: int = 2

    # Cache
    cache_ttl_seconds: int = 12 * 60 * 60
    domestic_gold_floor: float = 10000.0

    # Live sources, tried in order when the gate allows a call
    live_rate_providers: List[str] = ["delhi-simulated"]
    exchange_api_url: str = "https://api.exchangerate-api.com/v4/latest/USD"
    metals_api_url: str = "https://metals-api.com/api/latest"
    metals_api_key: Optional[str] = None
    gold_api_url: str = "https://api.goldapi.io/api"
    gold_api_key: Optional[str] = None
    http_timeout_seconds: float = 5.0
    http_retries: int = 2

    # Admin-posted shop rate
    enable_store_rate_admin: bool = True

    def init_post_load(self) -> None:
        """Finalize derived fields, validate and ensure directories exist."""
        from metalrates.services.rates.providers import PROVIDER_NAMES

        if self.storage_backend not in {"sqlite", "memory"}:
            raise ValueError(
                f"Unsupported storage_backend '{self.storage_backend}'. Allowed: sqlite, memory"
            )
        if self.storage_backend == "sqlite":
            if self.db_path is None:
                self.db_path = self.data_dir / self.db_filename
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        unknown = [p for p in self.live_rate_providers if p not in PROVIDER_NAMES]
        if unknown:
            raise ValueError(
                f"Unsupported live_rate_providers {unknown}. Allowed: {sorted(PROVIDER_NAMES)}"
            )
        for name in ("morning_hour", "evening_hour"):
            hour = getattr(self, name)
            if not 0 <= hour <= 23:
                raise ValueError(f"{name} must be within 0..23, got {hour}")
        if self.morning_hour >= self.evening_hour:
            raise ValueError("morning_hour must be earlier than evening_hour")
        if self.window_hours < 1 or self.morning_hour + self.window_hours > self.evening_hour:
            raise ValueError("window_hours must be >= 1 and windows must not overlap")
        if self.max_daily_requests < 0:
            raise ValueError("max_daily_requests must be >= 0")
        if self.cache_ttl_seconds <= 0:
            raise ValueError("cache_ttl_seconds must be positive")
        try:
            ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError as e:
            raise ValueError(f"Unknown timezone '{self.timezone}'") from e


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
