"""
Core domain types for the booking service.
"""
