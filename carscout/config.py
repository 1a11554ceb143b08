"""Application configuration settings."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Database
    database_url: str = "postgresql://localhost:5432/carscout"
    
    # Redis (Celery broker + result backend)
    redis_url: str = "redis://localhost:6379/0"
    
    # External pricing API (KBB/NADA-style). Empty = retention model is authoritative.
    pricing_api_url: str = ""
    pricing_api_key: str = ""

    # Generative resellability fallback (OpenRouter, OpenAI-compatible)
    openrouter_api_key: str = ""
    openrouter_model: str = "google/gemini-flash-1.5"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    # Timeout for every outbound network call (seconds)
    external_timeout_seconds: float = 10.0
    
    # Environment
    environment: str = "development"

    # Valuation cache TTL
    valuation_ttl_days: int = 7

    # Calibration data file (anchors, retention curve, multipliers).
    # Empty = bundled carscout/valuation/calibration.json
    calibration_path: str = ""

    # Listing lifecycle
    sold_threshold_hours: int = 48
    sold_retention_days: int = 90

    # Comparable-sales bands (closed intervals)
    comps_year_band: int = 2
    comps_mileage_band: int = 30000
    comps_batch_limit: int = 50
    comps_min_count: int = 3
    
    # Task scheduling intervals (seconds)
    job_queue_interval_seconds: int = 10
    sold_sweep_interval_seconds: int = 3600  # 1 hour
    purge_interval_seconds: int = 86400  # 24 hours
    job_queue_batch_size: int = 10
    # Run flags outlive a task by at most the Celery hard time limit
    task_lock_timeout_seconds: int = 300
    scheduler_enabled: bool = True
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
