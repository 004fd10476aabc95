from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )
    # App
    environment: str = "development"
    log_level: str = "INFO"
    # PageSpeed Insights (optional — estimated scores are used without a key)
    pagespeed_api_key: Optional[str] = None
    pagespeed_timeout_seconds: int = 30
    pagespeed_include_seo: bool = False
    # Probes
    request_timeout_seconds: int = 15
    probe_deadline_seconds: float = 45.0
    user_agent: str = "WebMetrics/1.0 (Website Monitoring Bot)"
    # Rate limiting (dashboard polls every 5s, keep well above 12/min)
    rate_limit_per_minute: int = 60


@lru_cache()
def get_settings() -> Settings:
    return Settings()
