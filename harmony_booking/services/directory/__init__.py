"""
Doctor and patient directories.
"""

from .doctors import DoctorDirectory
from .patients import PatientDirectory

__all__ = ["DoctorDirectory", "PatientDirectory"]
