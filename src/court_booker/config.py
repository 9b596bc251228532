"""Configuration objects for the court booker."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, HttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    portal_url: HttpUrl = Field(
        "https://app.courtreserve.com/Online/Portal/Index/6765",
        alias="COURTRESERVE_PORTAL_URL",
    )
    username: str = Field(..., alias="COURTRESERVE_USERNAME")
    password: SecretStr = Field(..., alias="COURTRESERVE_PASSWORD")
    headless: bool = Field(True, alias="HEADLESS")
    timeout_seconds: int = Field(15, alias="TIMEOUT_SECONDS")
    navigation_timeout_seconds: int = Field(30, alias="NAVIGATION_TIMEOUT_SECONDS")
    navigation_strategy: Literal["blind", "directed"] = Field("directed", alias="NAVIGATION_STRATEGY")
    max_navigation_attempts: int = Field(90, alias="MAX_NAVIGATION_ATTEMPTS")
    strict_navigation: bool = Field(False, alias="STRICT_NAVIGATION")
    max_attempts: int = Field(2, alias="MAX_ATTEMPTS")
    step_pause_seconds: float = Field(0.25, alias="STEP_PAUSE_SECONDS")
    settle_seconds: float = Field(2.0, alias="SETTLE_SECONDS")
    diagnostics_dir: str = Field("diagnostics", alias="DIAGNOSTICS_DIR")
    telegram_bot_token: Optional[SecretStr] = Field(None, alias="TELEGRAM_BOT_TOKEN")
    telegram_chat_id: Optional[str] = Field(None, alias="TELEGRAM_CHAT_ID")
    admin_ids: str = Field("", alias="ADMIN_IDS")
    player_threshold: int = Field(10, alias="PLAYER_THRESHOLD")
    environment: str = Field("production", alias="ENVIRONMENT")

    model_config = SettingsConfigDict(
        env_prefix="COURT_BOOKER_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def admin_id_list(self) -> list[str]:
        """Comma-separated ``ADMIN_IDS`` as a list; empty means everyone is an admin."""
        return [item.strip() for item in self.admin_ids.split(",") if item.strip()]

    @property
    def telegram_api_endpoint(self) -> str:
        """Base Telegram Bot API endpoint."""
        if not self.telegram_bot_token:
            raise ValueError("TELEGRAM_BOT_TOKEN must be set to use Telegram")
        return f"https://api.telegram.org/bot{self.telegram_bot_token.get_secret_value()}"
