"""
Document store collection names.
"""

DOCTORS = "doctors"
PATIENTS = "patients"
APPOINTMENTS = "appointments"
APPOINTMENT_SLOTS = "appointmentSlots"
BOOKING_SESSIONS = "whatsappBookingSessions"
RECHECKUP_REQUESTS = "recheckup_requests"
INBOUND_MESSAGES = "inboundMessages"
