"""
Main application entry point.
"""

import uvicorn

from .api.app import create_app
from .config import get_settings

app = create_app()


def main():
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "harmony_booking.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
