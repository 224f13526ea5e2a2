"""NUDGE — Central Configuration via Pydantic Settings."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── DynamoDB (lock registry) ──
    dynamodb_table_name: str = "locks"
    aws_region: str = "us-east-1"
    dynamodb_endpoint_url: Optional[str] = None

    # ── Firebase Cloud Messaging ──
    fcm_project_id: str = ""
    fcm_access_token: str = ""
    fcm_base_url: str = "https://fcm.googleapis.com"

    # ── Tracking ──
    click_tracking_base_url: str = "http://localhost:8000"
    deep_link_scheme: str = "your-app-scheme://"

    # ── Campaign ──
    campaign_type: str = "battery_reminder"
    notification_threshold_days: int = 30
    batch_size: int = 100
    recipient_chunk_size: int = 1000  # Keeps IN (...) under driver parameter limits
    batch_delay_seconds: float = 1.0

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    campaign_hour: int = 10  # Daily run at 10 AM UTC

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        return "sqlite:///./nudge.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
