"""
Application settings and configuration.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .database import DatabaseConfig
from .external_apis import ExternalAPIConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Harmony Booking"
    app_version: str = "1.0.0"
    clinic_name: str = "Harmony Medical Services"
    support_phone: str = "+91 80 4000 1234"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8001

    # Storage
    store_backend: str = "sqlite"
    store_db_path: str = "harmony_store.db"
    store_timeout: float = 30.0

    # Scheduling
    timezone: str = "Asia/Kolkata"
    slot_granularity_minutes: int = 15
    business_start: str = "09:00"
    business_end: str = "17:00"
    booking_horizon_days: int = 14
    max_offered_dates: int = 7
    max_offered_times: int = 10
    max_offered_doctors: int = 10
    block_duplicate_bookings: bool = False

    # Conversation
    session_ttl_seconds: int = 1800
    booking_triggers: List[str] = [
        "book",
        "book appointment",
        "schedule",
        "schedule appointment",
    ]
    recheckup_triggers: List[str] = [
        "recheckup",
        "re-checkup",
        "follow up",
        "follow-up",
    ]

    # Meta WhatsApp Cloud API
    meta_verify_token: Optional[str] = None
    meta_app_secret: Optional[str] = None
    meta_access_token: Optional[str] = None
    meta_phone_number_id: Optional[str] = None
    meta_api_version: str = "v19.0"

    # Twilio WhatsApp
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_number: Optional[str] = None
    twilio_validate_signature: bool = False
    twilio_webhook_url: Optional[str] = None

    # Outbound messaging
    wa_max_message_length: int = 4096
    outbound_timeout: float = 10.0
    outbound_retries: int = 3

    # Logging
    log_level: str = "INFO"

    def database(self) -> DatabaseConfig:
        """Build the storage configuration view."""
        return DatabaseConfig(
            backend=self.store_backend,
            db_path=self.store_db_path,
            connection_timeout=self.store_timeout,
        )

    def external_apis(self) -> ExternalAPIConfig:
        """Build the messaging provider configuration view."""
        return ExternalAPIConfig(
            meta_access_token=self.meta_access_token,
            meta_phone_number_id=self.meta_phone_number_id,
            meta_api_version=self.meta_api_version,
            meta_app_secret=self.meta_app_secret,
            twilio_account_sid=self.twilio_account_sid,
            twilio_auth_token=self.twilio_auth_token,
            twilio_whatsapp_number=self.twilio_whatsapp_number,
            timeout=self.outbound_timeout,
            max_retries=self.outbound_retries,
            max_message_length=self.wa_max_message_length,
        )


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
