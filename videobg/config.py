"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # Provider
    unscreen_api_url: str = "https://api.unscreen.com/v1.0"
    unscreen_api_key: str = ""
    provider_timeout_seconds: float = 60.0

    # Push notifications: publicly reachable base address of this service.
    # Empty means the provider cannot call us back and jobs are polled.
    webhook_host: str = ""

    # Completion detection
    poll_interval_seconds: float = 3.0
    wait_timeout_seconds: float = 300.0

    # Job records (JSON lines); None keeps records in memory only
    job_records_path: Optional[str] = None

    # Service
    port: int = 8001
    log_level: str = "INFO"
    allowed_origins: List[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
