"""
External API-related exceptions.
"""


class ExternalAPIError(Exception):
    """Base exception for external API errors."""
    pass


class NotificationError(ExternalAPIError):
    """Exception raised when a chat message cannot be delivered."""
    pass
