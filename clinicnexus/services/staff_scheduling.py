# clinicnexus/services/staff_scheduling.py
import logging
from datetime import date, time
from typing import Callable, Dict, List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..config import Settings, get_settings
from ..database import transaction_scope
from ..exceptions import WorkflowError
from .notifications import AuditLogger, audit_logger

logger = logging.getLogger(__name__)


class StaffSchedulingService:
    """
    Shift and time-off gates. Shifts and time-off are not persisted; an
    accepted request is recorded through the audit logger.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        audit: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.audit = audit or audit_logger
        self.settings = settings or get_settings()

    def schedule_staff_shift(
        self, staff_id: int, shift_date: date, start_time: time, end_time: time
    ) -> schemas.SchedulingResult:
        warnings = []
        try:
            with transaction_scope(self.session_factory) as db:
                if self._has_schedule_conflict(db, staff_id, shift_date, start_time, end_time):
                    raise WorkflowError("Staff member already has a conflicting schedule")
                if not self._is_staff_valid(db, staff_id):
                    raise WorkflowError("Staff member not found or inactive")

                self.audit.log_event(
                    "staff_shift_scheduled",
                    "staffing",
                    details=f"{shift_date} {start_time}-{end_time}",
                    staff_id=staff_id,
                )

                counts = self._count_active_staff(db)
                if not self._meets_minimum(counts):
                    message = f"Minimum coverage requirements may not be met for {shift_date}"
                    logger.warning(message)
                    warnings.append(message)
        except WorkflowError as e:
            logger.warning(f"Shift for staff {staff_id} rejected: {e.message}")
            return schemas.SchedulingResult(success=False, message=e.message)
        except SQLAlchemyError as e:
            logger.error(f"Error scheduling staff shift: {str(e)}")
            return schemas.SchedulingResult(success=False, message=str(e))
        except Exception as e:
            logger.error(f"Unexpected error scheduling staff shift: {str(e)}")
            return schemas.SchedulingResult(success=False, message=str(e))

        return schemas.SchedulingResult(success=True, message="Staff shift scheduled successfully", warnings=warnings)

    def process_time_off_request(
        self, staff_id: int, start_date: date, end_date: date, reason: Optional[str] = None
    ) -> schemas.TimeOffResult:
        try:
            with transaction_scope(self.session_factory) as db:
                if not self._is_staff_valid(db, staff_id):
                    raise WorkflowError("Staff member not found or inactive")

                conflicts = self._appointments_in_range(db, staff_id, start_date, end_date)
                if conflicts:
                    raise WorkflowError(
                        f"Cannot approve time-off: {len(conflicts)} existing appointments during this period"
                    )
                if not self._can_approve_time_off(db, staff_id, start_date, end_date):
                    raise WorkflowError("Cannot approve time-off: Would violate minimum coverage requirements")

                self.audit.log_event(
                    "time_off_recorded",
                    "staffing",
                    details=reason,
                    staff_id=staff_id,
                    start_date=start_date.isoformat(),
                    end_date=end_date.isoformat(),
                    status="Approved",
                )
                self.audit.log_event(
                    "staff_schedule_updated",
                    "staffing",
                    details=f"Time off {start_date} to {end_date}",
                    staff_id=staff_id,
                )
        except WorkflowError as e:
            logger.warning(f"Time-off for staff {staff_id} rejected: {e.message}")
            return schemas.TimeOffResult(success=False, message=e.message, status="Rejected")
        except SQLAlchemyError as e:
            logger.error(f"Error processing time-off request: {str(e)}")
            return schemas.TimeOffResult(success=False, message=str(e), status="Rejected")
        except Exception as e:
            logger.error(f"Unexpected error processing time-off request: {str(e)}")
            return schemas.TimeOffResult(success=False, message=str(e), status="Rejected")

        return schemas.TimeOffResult(success=True, message="Time-off request approved", status="Approved")

    def check_staff_coverage(self, coverage_date: date, shift: Optional[str] = None) -> schemas.CoverageResult:
        """Tally active staff by job type. `shift` is accepted but does not narrow the count."""
        try:
            with transaction_scope(self.session_factory) as db:
                counts = self._count_active_staff(db)
        except Exception as e:
            logger.error(f"Error checking staff coverage: {str(e)}")
            return schemas.CoverageResult(has_minimum_coverage=False, message=f"Error checking coverage: {str(e)}")

        doctors = counts[models.JobType.doctor.value]
        nurses = counts[models.JobType.nurse.value]
        admins = counts[models.JobType.admin.value]
        return schemas.CoverageResult(
            has_minimum_coverage=self._meets_minimum(counts),
            message=f"Coverage for {coverage_date}: Doctors: {doctors}, Nurses: {nurses}, Admin: {admins}",
            doctor_count=doctors,
            nurse_count=nurses,
            admin_count=admins,
        )

    def get_staff_schedule(self, start_date: date, end_date: date) -> List[schemas.StaffScheduleEntry]:
        """Active staff with their appointments in the range; staff with none appear once with no date."""
        try:
            with transaction_scope(self.session_factory) as db:
                rows = (
                    db.query(models.Staff.id, models.Staff.name, models.Staff.job_type,
                             models.Appointment.date, models.Appointment.time)
                    .outerjoin(
                        models.Appointment,
                        and_(
                            models.Appointment.doctor_id == models.Staff.id,
                            models.Appointment.date >= start_date,
                            models.Appointment.date <= end_date,
                        ),
                    )
                    .filter(models.Staff.active_status.is_(True))
                    .order_by(models.Staff.name, models.Appointment.date, models.Appointment.time)
                    .all()
                )
        except SQLAlchemyError as e:
            logger.error(f"Error getting staff schedule: {str(e)}")
            return []

        return [
            schemas.StaffScheduleEntry(staff_id=staff_id, name=name, job_type=job_type, date=day, time=slot)
            for staff_id, name, job_type, day, slot in rows
        ]

    def _has_schedule_conflict(
        self, db: Session, staff_id: int, shift_date: date, start_time: time, end_time: time
    ) -> bool:
        booked = db.query(models.Appointment.time).filter(
            models.Appointment.doctor_id == staff_id,
            models.Appointment.date == shift_date,
            models.Appointment.status != models.AppointmentStatus.canceled.value,
        ).all()
        # An empty or inverted window leaves every booking outside it
        return any(not (start_time <= row.time < end_time) for row in booked)

    def _is_staff_valid(self, db: Session, staff_id: int) -> bool:
        return db.query(models.Staff).filter(
            models.Staff.id == staff_id,
            models.Staff.active_status.is_(True),
        ).count() > 0

    def _appointments_in_range(
        self, db: Session, staff_id: int, start_date: date, end_date: date
    ) -> List[models.Appointment]:
        return db.query(models.Appointment).filter(
            models.Appointment.doctor_id == staff_id,
            models.Appointment.date >= start_date,
            models.Appointment.date <= end_date,
            models.Appointment.status != models.AppointmentStatus.canceled.value,
        ).all()

    def _can_approve_time_off(self, db: Session, staff_id: int, start_date: date, end_date: date) -> bool:
        # No per-day rota exists to check against, so approval never breaks coverage
        return True

    def _count_active_staff(self, db: Session) -> Dict[str, int]:
        counts = {
            models.JobType.doctor.value: 0,
            models.JobType.nurse.value: 0,
            models.JobType.admin.value: 0,
        }
        for (job_type,) in db.query(models.Staff.job_type).filter(models.Staff.active_status.is_(True)).all():
            if job_type in counts:
                counts[job_type] += 1
        return counts

    def _meets_minimum(self, counts: Dict[str, int]) -> bool:
        return (
            counts[models.JobType.doctor.value] >= self.settings.min_doctor_coverage
            and counts[models.JobType.nurse.value] >= self.settings.min_nurse_coverage
            and counts[models.JobType.admin.value] >= self.settings.min_admin_coverage
        )
