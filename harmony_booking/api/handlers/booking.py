"""
Web booking API handler.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from ...core.exceptions import InvalidSelectionError
from ...core.models import Appointment, BookingDetails, DayAvailability
from ...services.scheduling import normalize_time
from ...utils.date import DateParser
from ...utils.validation import ValidationUtils
from ..container import ServiceContainer
from ..schemas import (
    AppointmentCreated,
    AppointmentRequest,
    CancelRequest,
    DateOption,
    DoctorSummary,
    RescheduleRequest,
    SlotCheck,
)


def _parse_date(value: str):
    ok, error = ValidationUtils.validate_iso_date(value)
    if not ok:
        raise InvalidSelectionError(error)
    return DateParser.parse_iso(value)


class BookingHandler:
    """Routes used by the web booking form and staff dashboards."""

    def __init__(self, container: ServiceContainer):
        self.container = container
        self.date_parser = DateParser(container.clock)
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Setup booking routes."""
        c = self.container

        @self.router.get("/doctors", response_model=List[DoctorSummary])
        async def list_doctors():
            """Active doctors and the weekdays they work."""
            return [
                DoctorSummary(
                    id=d.id,
                    name=d.display_name,
                    specialization=d.specialization,
                    consultation_fee=d.consultation_fee,
                    availability_days=c.calendar.availability_days(d),
                )
                for d in await c.doctors.list_active()
            ]

        @self.router.get("/doctors/{doctor_id}/availability", response_model=DayAvailability)
        async def doctor_availability(
            doctor_id: str,
            date: str = Query(...),
            patient_id: Optional[str] = Query(default=None),
        ):
            """Booked, past and available slots of a doctor on one date."""
            doctor = await c.doctors.get_active(doctor_id)
            return await c.resolver.resolve(doctor, _parse_date(date), patient_id=patient_id)

        @self.router.get("/doctors/{doctor_id}/dates", response_model=List[DateOption])
        async def doctor_dates(
            doctor_id: str,
            days: Optional[int] = Query(default=None, ge=1, le=60),
            limit: Optional[int] = Query(default=None, ge=1, le=60),
        ):
            """Upcoming dates that still have open slots."""
            doctor = await c.doctors.get_active(doctor_id)
            dates = await c.resolver.next_available_dates(
                doctor,
                horizon_days=days or c.settings.booking_horizon_days,
                limit=limit or c.settings.max_offered_dates,
            )
            return [DateOption(date=d.isoformat(), label=self.date_parser.label_for(d)) for d in dates]

        @self.router.get("/appointments/check-slot", response_model=SlotCheck)
        async def check_slot(
            doctor_id: str = Query(...),
            date: str = Query(...),
            time: str = Query(...),
        ):
            """Advisory check whether a slot key is still free."""
            iso_day = _parse_date(date).isoformat()
            key = c.transactions.slot_key(doctor_id, iso_day, time)
            free = await c.transactions.is_slot_free(doctor_id, iso_day, time)
            result = SlotCheck(available=free, slot_key=key)
            if not free:
                return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=result.model_dump())
            return result

        @self.router.post(
            "/appointments",
            response_model=AppointmentCreated,
            status_code=status.HTTP_201_CREATED,
        )
        async def create_appointment(request: AppointmentRequest):
            """Reserve a slot and create a confirmed appointment."""
            for label, value in (("doctor_id", request.doctor_id), ("patient_id", request.patient_id)):
                ok, error = ValidationUtils.validate_identifier(value, label)
                if not ok:
                    raise InvalidSelectionError(error)
            day = _parse_date(request.date)
            iso_day = day.isoformat()
            canonical_time = normalize_time(request.time)

            doctor = await c.doctors.get_active(request.doctor_id)
            availability = await c.resolver.check_bookable(
                doctor,
                day,
                canonical_time,
                patient_id=request.patient_id,
                block_duplicates=c.settings.block_duplicate_bookings,
            )

            appointment = await c.transactions.reserve(
                request.doctor_id,
                iso_day,
                canonical_time,
                request.patient_id,
                details=BookingDetails(
                    chief_complaint=ValidationUtils.sanitize_free_text(request.chief_complaint),
                    medical_history=ValidationUtils.sanitize_free_text(request.medical_history, 2000),
                    payment_amount=request.payment_amount,
                    payment_method=request.payment_method,
                ),
                created_by=request.created_by,
            )
            return AppointmentCreated(
                id=appointment.id,
                slot_key=c.transactions.slot_key(appointment.doctor_id, iso_day, canonical_time),
                appointment_date=appointment.appointment_date,
                appointment_time=appointment.appointment_time,
                duplicate_time=availability.duplicate_time,
            )

        @self.router.post("/appointments/{appointment_id}/reschedule", response_model=Appointment)
        async def reschedule_appointment(appointment_id: str, request: RescheduleRequest):
            """Move an appointment to another free slot."""
            return await c.transactions.reschedule(
                appointment_id, request.date, request.time, patient_id=request.patient_id
            )

        @self.router.post("/appointments/{appointment_id}/cancel", response_model=Appointment)
        async def cancel_appointment(appointment_id: str, request: Optional[CancelRequest] = None):
            """Cancel an appointment and free its slot."""
            patient_id = request.patient_id if request else None
            return await c.transactions.cancel(appointment_id, patient_id=patient_id)

        @self.router.post("/appointments/{appointment_id}/complete", response_model=Appointment)
        async def complete_appointment(appointment_id: str):
            """Mark an appointment completed and free its slot."""
            return await c.transactions.complete(appointment_id)

        @self.router.get("/patients/{patient_id}/appointments", response_model=List[Appointment])
        async def patient_appointments(patient_id: str):
            """Upcoming confirmed appointments of a patient."""
            await c.patients.get(patient_id)
            return await c.appointments.upcoming_for_patient(patient_id, c.clock.today())
