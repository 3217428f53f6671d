"""
Harmony Booking - appointment scheduling and WhatsApp booking service.
"""

__version__ = "1.0.0"
