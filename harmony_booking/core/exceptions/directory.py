"""
Doctor and patient directory exceptions.
"""


class DirectoryError(Exception):
    """Base exception for directory lookups."""
    pass


class DoctorNotFoundError(DirectoryError):
    """Exception raised when a doctor is missing or not schedulable."""
    pass


class PatientNotFoundError(DirectoryError):
    """Exception raised when no patient is registered for an identity."""
    pass
