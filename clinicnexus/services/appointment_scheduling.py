# clinicnexus/services/appointment_scheduling.py
import logging
from datetime import date, time
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..config import Settings, get_settings
from ..database import transaction_scope
from ..exceptions import WorkflowError
from .notifications import AuditLogger, NotificationSender, audit_logger, notification_sender

logger = logging.getLogger(__name__)

APPOINTMENT_FEES = {
    models.VisitType.check_up.value: Decimal("500.00"),
    models.VisitType.procedure.value: Decimal("1500.00"),
    models.VisitType.emergency.value: Decimal("2000.00"),
}
DEFAULT_APPOINTMENT_FEE = Decimal("500.00")

# Half-hour slots, lunch break 12:00-13:00
STANDARD_SLOTS = [
    time(9, 0), time(9, 30), time(10, 0), time(10, 30), time(11, 0), time(11, 30),
    time(13, 0), time(13, 30), time(14, 0), time(14, 30), time(15, 0), time(15, 30),
    time(16, 0), time(16, 30),
]


def calculate_appointment_fee(visit_type: Optional[str]) -> Decimal:
    return APPOINTMENT_FEES.get(visit_type, DEFAULT_APPOINTMENT_FEE)


class AppointmentTransactionService:
    """
    Books appointments as one unit of work: availability and validity
    checks, the appointment row, its initial bill, the calendar entry and the
    patient notification all commit together or not at all.

    The slot check is a read followed by an insert with no unique index on
    (doctor_id, date, time). Two concurrent requests for the same slot can
    both pass the check and both book it.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        audit: Optional[AuditLogger] = None,
        notifier: Optional[NotificationSender] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.audit = audit or audit_logger
        self.notifier = notifier or notification_sender
        self.settings = settings or get_settings()

    def schedule_appointment(self, appointment: schemas.AppointmentCreate) -> schemas.AppointmentResult:
        try:
            with transaction_scope(self.session_factory) as db:
                appointment_id = self.schedule_in_session(db, appointment)
        except WorkflowError as e:
            logger.warning(f"Appointment rejected: {e.message}")
            return schemas.AppointmentResult(success=False, appointment_id=-1, message=e.message)
        except SQLAlchemyError as e:
            logger.error(f"Error scheduling appointment: {str(e)}")
            return schemas.AppointmentResult(success=False, appointment_id=-1, message=str(e))
        except Exception as e:
            logger.error(f"Unexpected error scheduling appointment: {str(e)}")
            return schemas.AppointmentResult(success=False, appointment_id=-1, message=str(e))

        logger.info(f"Scheduled appointment {appointment_id} for doctor {appointment.doctor_id}")
        return schemas.AppointmentResult(
            success=True, appointment_id=appointment_id, message="Appointment scheduled successfully"
        )

    def schedule_in_session(self, db: Session, appointment: schemas.AppointmentCreate) -> int:
        """
        Run every booking step on a caller-owned session and return the new
        appointment id. Raises WorkflowError on a failed precondition; the
        caller decides whether to commit.
        """
        if not self.is_doctor_available(db, appointment.doctor_id, appointment.date, appointment.time):
            raise WorkflowError("Doctor is not available at the requested time")
        if not self._is_patient_valid(db, appointment.patient_id):
            raise WorkflowError("Patient does not exist or is inactive")
        if not self._get_active_doctor(db, appointment.doctor_id):
            raise WorkflowError("Doctor does not exist or is inactive")

        db_appointment = models.Appointment(
            patient_id=appointment.patient_id,
            doctor_id=appointment.doctor_id,
            date=appointment.date,
            time=appointment.time,
            duration=appointment.duration if appointment.duration and appointment.duration > 0
            else self.settings.default_appointment_duration,
            visit_type=appointment.visit_type,
            status=models.AppointmentStatus.not_done.value,
            notes=appointment.notes,
        )
        db.add(db_appointment)
        db.flush()

        db.add(models.Billing(
            appointment_id=db_appointment.id,
            amount=calculate_appointment_fee(appointment.visit_type),
            paid=False,
        ))
        db.flush()

        self.audit.log_event(
            "doctor_calendar_updated",
            "scheduling",
            details=f"Doctor {appointment.doctor_id} booked for {appointment.date} at {appointment.time}",
            doctor_id=appointment.doctor_id,
            appointment_id=db_appointment.id,
        )
        self._send_patient_notification(db, db_appointment)
        return db_appointment.id

    def is_doctor_available(self, db: Session, doctor_id: int, appointment_date: date, appointment_time: time) -> bool:
        if crud.has_appointment_conflict(db, doctor_id, appointment_date, appointment_time):
            return False
        # Any non-empty working-days value counts; the weekday itself is not checked
        doctor = self._get_active_doctor(db, doctor_id)
        return bool(doctor and doctor.working_days and doctor.working_days.strip())

    def get_available_time_slots(self, doctor_id: int, appointment_date: date) -> List[str]:
        """Standard slots (HH:MM:SS) not already held by a non-canceled booking. Empty on store failure."""
        try:
            with transaction_scope(self.session_factory) as db:
                booked = {
                    row.time for row in db.query(models.Appointment.time).filter(
                        models.Appointment.doctor_id == doctor_id,
                        models.Appointment.date == appointment_date,
                        models.Appointment.status != models.AppointmentStatus.canceled.value,
                    ).all()
                }
        except SQLAlchemyError as e:
            logger.error(f"Error getting available time slots: {str(e)}")
            return []
        return [slot.strftime("%H:%M:%S") for slot in STANDARD_SLOTS if slot not in booked]

    def _is_patient_valid(self, db: Session, patient_id: int) -> bool:
        return db.query(models.Patient).filter(
            models.Patient.id == patient_id,
            models.Patient.active_status.is_(True),
        ).count() > 0

    def _get_active_doctor(self, db: Session, doctor_id: int) -> Optional[models.Staff]:
        return db.query(models.Staff).filter(
            models.Staff.id == doctor_id,
            models.Staff.job_type == models.JobType.doctor.value,
            models.Staff.active_status.is_(True),
        ).first()

    def _send_patient_notification(self, db: Session, appointment: models.Appointment) -> None:
        patient = crud.get_patient(db, appointment.patient_id)
        if not patient:
            return
        self.notifier.notify_patient(
            patient_id=patient.id,
            name=patient.name,
            phone=patient.phone,
            email=patient.email,
            message=(
                f"Appointment ID: {appointment.id}. "
                f"Date: {appointment.date} at {appointment.time}. "
                f"Visit Type: {appointment.visit_type}"
            ),
        )
