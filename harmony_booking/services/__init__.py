"""
Business services for the booking service.
"""
