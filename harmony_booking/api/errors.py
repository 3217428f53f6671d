"""
Mapping of domain errors to HTTP responses.
"""

import re

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..core.exceptions import (
    AppointmentAccessError,
    AppointmentNotFoundError,
    BookingFlowError,
    DirectoryError,
    DuplicateBookingError,
    DoctorNotFoundError,
    InvalidAppointmentStateError,
    InvalidSelectionError,
    InvalidTimeFormatError,
    NoAvailableSlotsError,
    PatientNotFoundError,
    SessionExpiredError,
    SlotAlreadyBookedError,
    StorageError,
)
from ..core.logging import get_logger

logger = get_logger("harmony.http")

# Checked in order; subclasses before their bases.
ERROR_STATUS = (
    (SlotAlreadyBookedError, status.HTTP_409_CONFLICT),
    (InvalidAppointmentStateError, status.HTTP_409_CONFLICT),
    (NoAvailableSlotsError, status.HTTP_409_CONFLICT),
    (DuplicateBookingError, status.HTTP_409_CONFLICT),
    (SessionExpiredError, status.HTTP_409_CONFLICT),
    (AppointmentAccessError, status.HTTP_403_FORBIDDEN),
    (AppointmentNotFoundError, status.HTTP_404_NOT_FOUND),
    (DoctorNotFoundError, status.HTTP_404_NOT_FOUND),
    (PatientNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidTimeFormatError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidSelectionError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def error_code(exc: Exception) -> str:
    """``SlotAlreadyBookedError`` -> ``"SLOT_ALREADY_BOOKED"``."""
    name = type(exc).__name__
    if name.endswith("Error"):
        name = name[: -len("Error")]
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).upper()


def status_for(exc: Exception) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = {"error": error_code(exc), "detail": str(exc)}
    slot_key = getattr(exc, "slot_key", None)
    if slot_key:
        body["slotKey"] = slot_key
    return JSONResponse(status_code=code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    for base in (BookingFlowError, DirectoryError, StorageError):
        app.add_exception_handler(base, domain_error_handler)
