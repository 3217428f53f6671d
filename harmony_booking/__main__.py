"""
Module entry point for running the booking service.
"""

from .main import main

if __name__ == "__main__":
    main()
