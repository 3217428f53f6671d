"""
Messaging provider configuration.
"""

from typing import Optional
from pydantic import BaseModel


class ExternalAPIConfig(BaseModel):
    """Outbound messaging provider settings."""

    # Meta WhatsApp Cloud API
    meta_graph_base_url: str = "https://graph.facebook.com"
    meta_api_version: str = "v19.0"
    meta_access_token: Optional[str] = None
    meta_phone_number_id: Optional[str] = None
    meta_app_secret: Optional[str] = None

    # Twilio
    twilio_base_url: str = "https://api.twilio.com/2010-04-01"
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_number: Optional[str] = None

    timeout: float = 10.0
    max_retries: int = 3
    max_message_length: int = 4096

    def get_meta_messages_url(self) -> Optional[str]:
        """Get the Graph API messages endpoint if configured."""
        if self.meta_phone_number_id:
            return (
                f"{self.meta_graph_base_url}/{self.meta_api_version}"
                f"/{self.meta_phone_number_id}/messages"
            )
        return None

    def get_twilio_messages_url(self) -> Optional[str]:
        """Get the Twilio Messages endpoint if configured."""
        if self.twilio_account_sid:
            return f"{self.twilio_base_url}/Accounts/{self.twilio_account_sid}/Messages.json"
        return None

    def is_meta_configured(self) -> bool:
        """Check if the Meta Cloud API is properly configured."""
        return bool(self.meta_access_token and self.meta_phone_number_id)

    def is_twilio_configured(self) -> bool:
        """Check if Twilio is properly configured."""
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_whatsapp_number
        )
