# clinicnexus/services/visit_processing.py
import logging
from decimal import Decimal
from typing import Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..database import transaction_scope
from ..exceptions import WorkflowError
from .appointment_scheduling import AppointmentTransactionService

logger = logging.getLogger(__name__)


def format_vital_signs(vital_signs: Dict[str, str]) -> str:
    return ", ".join(f"{name}: {value}" for name, value in vital_signs.items())


class VisitProcessingService:
    """Closes out a visit: status, clinical notes, consumed stock, the bill and an optional follow-up."""

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        appointment_service: Optional[AppointmentTransactionService] = None,
    ):
        self.session_factory = session_factory
        self.appointment_service = appointment_service or AppointmentTransactionService(session_factory=session_factory)

    def process_patient_visit(self, data: schemas.VisitProcessingData) -> schemas.VisitResult:
        try:
            with transaction_scope(self.session_factory) as db:
                appointment = crud.get_appointment(db, data.appointment_id)
                if not appointment:
                    raise WorkflowError("Appointment not found or could not be updated")
                appointment.status = models.AppointmentStatus.done.value

                self._record_clinical_notes(appointment, data)
                if data.inventory_usage:
                    self._consume_inventory(db, appointment.id, data.inventory_usage)
                self._generate_bill(db, data)
                db.flush()

                if data.schedule_follow_up:
                    self._schedule_follow_up(db, appointment, data)
        except WorkflowError as e:
            logger.warning(f"Visit processing for appointment {data.appointment_id} failed: {e.message}")
            return schemas.VisitResult(success=False, message=e.message)
        except SQLAlchemyError as e:
            logger.error(f"Error processing visit for appointment {data.appointment_id}: {str(e)}")
            return schemas.VisitResult(success=False, message=str(e))
        except Exception as e:
            logger.error(f"Unexpected error processing visit for appointment {data.appointment_id}: {str(e)}")
            return schemas.VisitResult(success=False, message=str(e))

        logger.info(f"Processed visit for appointment {data.appointment_id}")
        return schemas.VisitResult(success=True, message="Patient visit processed successfully")

    def _record_clinical_notes(self, appointment: models.Appointment, data: schemas.VisitProcessingData) -> None:
        notes = appointment.notes or ""
        notes += "\n\nVital Signs: " + format_vital_signs(data.vital_signs)
        notes += f"\n\nDiagnosis: {data.diagnosis or ''}\nTreatment: {data.treatment or ''}"
        appointment.notes = notes

    def _consume_inventory(self, db: Session, appointment_id: int, usage: Dict[int, int]) -> None:
        # Every line is checked before any stock moves
        items = {}
        for item_id, quantity in usage.items():
            item = db.query(models.Inventory).filter(
                models.Inventory.id == item_id,
                models.Inventory.active_status.is_(True),
            ).first()
            if not item or item.stock_quantity < quantity:
                raise WorkflowError(f"Insufficient inventory for item ID: {item_id}")
            items[item_id] = item

        for item_id, quantity in usage.items():
            crud.record_inventory_usage(db, appointment_id, item_id, quantity)
            items[item_id].stock_quantity -= quantity

    def _generate_bill(self, db: Session, data: schemas.VisitProcessingData) -> Decimal:
        total = Decimal(data.base_amount)
        for item_id, quantity in data.inventory_usage.items():
            item = crud.get_inventory_item(db, item_id)
            if item:
                total += Decimal(item.unit_price) * quantity

        billing = crud.get_billing_by_appointment(db, data.appointment_id)
        if billing:
            billing.amount = total
        else:
            db.add(models.Billing(appointment_id=data.appointment_id, amount=total, paid=False))
        return total

    def _schedule_follow_up(self, db: Session, appointment: models.Appointment, data: schemas.VisitProcessingData) -> None:
        if data.follow_up_date is None or data.follow_up_time is None:
            raise WorkflowError("Failed to schedule follow-up appointment: Follow-up date and time are required")

        follow_up = schemas.AppointmentCreate(
            patient_id=appointment.patient_id,
            doctor_id=appointment.doctor_id,
            date=data.follow_up_date,
            time=data.follow_up_time,
            duration=30,
            visit_type=models.VisitType.check_up.value,
            status=models.AppointmentStatus.not_done.value,
            notes=f"Follow-up for appointment #{data.appointment_id}",
        )
        try:
            self.appointment_service.schedule_in_session(db, follow_up)
        except WorkflowError as e:
            raise WorkflowError(f"Failed to schedule follow-up appointment: {e.message}")
