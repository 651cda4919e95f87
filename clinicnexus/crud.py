# clinicnexus/crud.py
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from datetime import date, time
from typing import Optional, List, Dict, Any
import logging

from . import models, schemas

logger = logging.getLogger(__name__)


class CRUDError(Exception):
    pass


def _commit(db: Session, action: str) -> None:
    """Commit the session, rolling back and wrapping store failures."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error during {action}: {str(e)}")
        raise CRUDError(f"Database error: {str(e)}")


def _apply_update(db_obj, update: schemas.BaseSchema) -> None:
    for key, value in update.model_dump(exclude_unset=True).items():
        setattr(db_obj, key, value)


# ==================== PATIENT CRUD OPERATIONS ====================

def get_patient(db: Session, patient_id: int) -> Optional[models.Patient]:
    """Get a single patient by ID."""
    return db.query(models.Patient).filter(models.Patient.id == patient_id).first()


def get_patients(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    name: str = None,
    insurance_info: str = None,
    active_status: bool = None,
) -> List[models.Patient]:
    """Get patients with optional filters. Name and insurance match as substrings."""
    try:
        query = db.query(models.Patient)
        if name:
            query = query.filter(models.Patient.name.ilike(f"%{name}%"))
        if insurance_info:
            query = query.filter(models.Patient.insurance_info.ilike(f"%{insurance_info}%"))
        if active_status is not None:
            query = query.filter(models.Patient.active_status == active_status)
        return query.order_by(models.Patient.id).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching patients: {str(e)}")
        raise CRUDError(f"Database error: {str(e)}")


def search_patients_by_name(db: Session, name: str) -> List[models.Patient]:
    return (
        db.query(models.Patient)
        .filter(models.Patient.name.ilike(f"%{name}%"))
        .order_by(models.Patient.name)
        .all()
    )


def get_patient_id_by_name(db: Session, name: str) -> Optional[int]:
    """Exact-name lookup; None when no patient carries that name."""
    patient = db.query(models.Patient.id).filter(models.Patient.name == name).first()
    return patient.id if patient else None


def get_patient_with_appointments(db: Session, patient_id: int) -> Optional[models.Patient]:
    return (
        db.query(models.Patient)
        .options(joinedload(models.Patient.appointments))
        .filter(models.Patient.id == patient_id)
        .first()
    )


def create_patient(db: Session, patient: schemas.PatientCreate) -> models.Patient:
    if patient.primary_doctor_id is not None and not get_staff(db, patient.primary_doctor_id):
        raise CRUDError(f"Primary doctor {patient.primary_doctor_id} does not exist")

    db_patient = models.Patient(**patient.model_dump())
    db.add(db_patient)
    _commit(db, "patient creation")
    db.refresh(db_patient)
    logger.info(f"Created patient {db_patient.id}")
    return db_patient


def update_patient(db: Session, patient_id: int, patient_update: schemas.PatientUpdate) -> Optional[models.Patient]:
    db_patient = get_patient(db, patient_id)
    if not db_patient:
        return None

    _apply_update(db_patient, patient_update)
    _commit(db, f"patient {patient_id} update")
    db.refresh(db_patient)
    return db_patient


def deactivate_patient(db: Session, patient_id: int) -> bool:
    db_patient = get_patient(db, patient_id)
    if not db_patient:
        return False
    db_patient.active_status = False
    _commit(db, f"patient {patient_id} deactivation")
    return True


def delete_patient(db: Session, patient_id: int) -> bool:
    """
    Hard-delete a patient together with everything that references them:
    their feedback, and for each of their appointments the inventory usage,
    bill and feedback, then the appointments themselves.
    """
    try:
        db_patient = get_patient(db, patient_id)
        if not db_patient:
            db.rollback()
            return False

        appointment_ids = [
            row.id for row in
            db.query(models.Appointment.id).filter(models.Appointment.patient_id == patient_id).all()
        ]
        db.query(models.Feedback).filter(models.Feedback.patient_id == patient_id).delete()
        _delete_appointment_dependents(db, appointment_ids)
        db.query(models.Appointment).filter(models.Appointment.patient_id == patient_id).delete()
        db.query(models.Patient).filter(models.Patient.id == patient_id).delete()
        db.commit()
        logger.info(f"Deleted patient {patient_id} and {len(appointment_ids)} appointments")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting patient {patient_id}: {str(e)}")
        raise CRUDError(f"Database error: {str(e)}")


# ==================== STAFF CRUD OPERATIONS ====================

def get_staff(db: Session, staff_id: int) -> Optional[models.Staff]:
    return db.query(models.Staff).filter(models.Staff.id == staff_id).first()


def get_staff_list(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    job_type: str = None,
    specialization: str = None,
    active_status: bool = None,
) -> List[models.Staff]:
    """Get staff with optional filters."""
    try:
        query = db.query(models.Staff)
        if job_type:
            query = query.filter(models.Staff.job_type == job_type)
        if specialization:
            query = query.filter(models.Staff.specialization.ilike(f"%{specialization}%"))
        if active_status is not None:
            query = query.filter(models.Staff.active_status == active_status)
        return query.order_by(models.Staff.id).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching staff: {str(e)}")
        raise CRUDError(f"Database error: {str(e)}")


def get_doctors(db: Session) -> List[models.Staff]:
    """Active doctors, ordered by name."""
    return (
        db.query(models.Staff)
        .filter(models.Staff.job_type == models.JobType.doctor.value, models.Staff.active_status.is_(True))
        .order_by(models.Staff.name)
        .all()
    )


def get_active_staff(db: Session) -> List[models.Staff]:
    return db.query(models.Staff).filter(models.Staff.active_status.is_(True)).order_by(models.Staff.name).all()


def search_staff_by_name(db: Session, name: str) -> List[models.Staff]:
    return (
        db.query(models.Staff)
        .filter(models.Staff.name.ilike(f"%{name}%"))
        .order_by(models.Staff.name)
        .all()
    )


def get_staff_id_by_name(db: Session, name: str) -> Optional[int]:
    staff = db.query(models.Staff.id).filter(models.Staff.name == name).first()
    return staff.id if staff else None


def get_staff_with_appointments(db: Session, staff_id: int) -> Optional[models.Staff]:
    return (
        db.query(models.Staff)
        .options(joinedload(models.Staff.appointments))
        .filter(models.Staff.id == staff_id)
        .first()
    )


def create_staff(db: Session, staff: schemas.StaffCreate) -> models.Staff:
    db_staff = models.Staff(**staff.model_dump())
    db.add(db_staff)
    _commit(db, "staff creation")
    db.refresh(db_staff)
    logger.info(f"Created staff member {db_staff.id} ({db_staff.job_type})")
    return db_staff


def update_staff(db: Session, staff_id: int, staff_update: schemas.StaffUpdate) -> Optional[models.Staff]:
    db_staff = get_staff(db, staff_id)
    if not db_staff:
        return None

    _apply_update(db_staff, staff_update)
    _commit(db, f"staff {staff_id} update")
    db.refresh(db_staff)
    return db_staff


def delete_staff(db: Session, staff_id: int) -> bool:
    """
    Hard-delete a staff member. Feedback addressed to them and every
    appointment they hold (with its usage, bill and feedback) goes too;
    patients who had them as primary doctor are kept but unassigned.
    """
    try:
        db_staff = get_staff(db, staff_id)
        if not db_staff:
            db.rollback()
            return False

        appointment_ids = [
            row.id for row in
            db.query(models.Appointment.id).filter(models.Appointment.doctor_id == staff_id).all()
        ]
        db.query(models.Feedback).filter(models.Feedback.doctor_id == staff_id).delete()
        _delete_appointment_dependents(db, appointment_ids)
        db.query(models.Appointment).filter(models.Appointment.doctor_id == staff_id).delete()
        db.query(models.Patient).filter(models.Patient.primary_doctor_id == staff_id).update(
            {models.Patient.primary_doctor_id: None}
        )
        db.query(models.Staff).filter(models.Staff.id == staff_id).delete()
        db.commit()
        logger.info(f"Deleted staff {staff_id} and {len(appointment_ids)} appointments")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting staff {staff_id}: {str(e)}")
        raise CRUDError(f"Database error: {str(e)}")


# ==================== APPOINTMENT CRUD OPERATIONS ====================

def _delete_appointment_dependents(db: Session, appointment_ids: List[int]) -> None:
    if not appointment_ids:
        return
    db.query(models.AppointmentInventory).filter(
        models.AppointmentInventory.appointment_id.in_(appointment_ids)
    ).delete()
    db.query(models.Billing).filter(
        models.Billing.appointment_id.in_(appointment_ids)
    ).delete()
    db.query(models.Feedback).filter(
        models.Feedback.appointment_id.in_(appointment_ids)
    ).delete()


def get_appointment(db: Session, appointment_id: int) -> Optional[models.Appointment]:
    return db.query(models.Appointment).filter(models.Appointment.id == appointment_id).first()


def get_appointments(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    appointment_date: date = None,
    doctor_id: int = None,
    patient_id: int = None,
    status: str = None,
    visit_type: str = None,
) -> List[models.Appointment]:
    """Get appointments with optional filters, ordered by date and time."""
    try:
        query = db.query(models.Appointment)
        if appointment_date:
            query = query.filter(models.Appointment.date == appointment_date)
        if doctor_id is not None:
            query = query.filter(models.Appointment.doctor_id == doctor_id)
        if patient_id is not None:
            query = query.filter(models.Appointment.patient_id == patient_id)
        if status:
            query = query.filter(models.Appointment.status == status)
        if visit_type:
            query = query.filter(models.Appointment.visit_type == visit_type)
        return (
            query.order_by(models.Appointment.date, models.Appointment.time)
            .offset(skip)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Error fetching appointments: {str(e)}")
        raise CRUDError(f"Database error: {str(e)}")


def get_appointments_by_date_range(
    db: Session, start_date: date, end_date: date, doctor_id: Optional[int] = None
) -> List[models.Appointment]:
    query = db.query(models.Appointment).filter(
        models.Appointment.date >= start_date,
        models.Appointment.date <= end_date,
    )
    if doctor_id is not None:
        query = query.filter(models.Appointment.doctor_id == doctor_id)
    return query.order_by(models.Appointment.date, models.Appointment.time).all()


def get_appointment_with_related_records(db: Session, appointment_id: int) -> Optional[models.Appointment]:
    """Load an appointment with its patient, doctor, bill and inventory usage."""
    return (
        db.query(models.Appointment)
        .options(
            joinedload(models.Appointment.patient),
            joinedload(models.Appointment.doctor),
            joinedload(models.Appointment.billing),
            joinedload(models.Appointment.inventory_usage),
        )
        .filter(models.Appointment.id == appointment_id)
        .first()
    )


def get_appointments_with_names(db: Session, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
    rows = (
        db.query(models.Appointment, models.Patient.name, models.Staff.name)
        .join(models.Patient, models.Appointment.patient_id == models.Patient.id)
        .join(models.Staff, models.Appointment.doctor_id == models.Staff.id)
        .order_by(models.Appointment.date, models.Appointment.time)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return [
        {
            "id": appt.id,
            "patient_name": patient_name,
            "doctor_name": doctor_name,
            "date": appt.date,
            "time": appt.time,
            "duration": appt.duration,
            "visit_type": appt.visit_type,
            "status": appt.status,
            "notes": appt.notes,
        }
        for appt, patient_name, doctor_name in rows
    ]


def has_appointment_conflict(
    db: Session,
    doctor_id: int,
    appointment_date: date,
    appointment_time: time,
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    """True when the doctor already holds a non-canceled booking at that exact slot."""
    query = db.query(models.Appointment).filter(
        models.Appointment.doctor_id == doctor_id,
        models.Appointment.date == appointment_date,
        models.Appointment.time == appointment_time,
        models.Appointment.status != models.AppointmentStatus.canceled.value,
    )
    if exclude_appointment_id is not None:
        query = query.filter(models.Appointment.id != exclude_appointment_id)
    return db.query(query.exists()).scalar()


def create_appointment(db: Session, appointment: schemas.AppointmentCreate) -> models.Appointment:
    """Insert an appointment row as given. Booking rules live in the scheduling workflow."""
    data = appointment.model_dump()
    if not data.get("status"):
        data["status"] = models.AppointmentStatus.not_done.value
    if not data.get("duration") or data["duration"] <= 0:
        data["duration"] = 30

    db_appointment = models.Appointment(**data)
    db.add(db_appointment)
    _commit(db, "appointment creation")
    db.refresh(db_appointment)
    return db_appointment


def create_appointment_with_names(db: Session, appointment: schemas.AppointmentWithNamesCreate) -> models.Appointment:
    patient_id = get_patient_id_by_name(db, appointment.patient_name)
    if patient_id is None:
        raise CRUDError(f"Patient not found: {appointment.patient_name}")
    doctor_id = get_staff_id_by_name(db, appointment.doctor_name)
    if doctor_id is None:
        raise CRUDError(f"Doctor not found: {appointment.doctor_name}")

    return create_appointment(
        db,
        schemas.AppointmentCreate(
            patient_id=patient_id,
            doctor_id=doctor_id,
            date=appointment.date,
            time=appointment.time,
            duration=appointment.duration or 30,
            visit_type=appointment.visit_type,
            status=appointment.status,
            notes=appointment.notes,
        ),
    )


def update_appointment(
    db: Session, appointment_id: int, appointment_update: schemas.AppointmentUpdate
) -> Optional[models.Appointment]:
    db_appointment = get_appointment(db, appointment_id)
    if not db_appointment:
        return None

    _apply_update(db_appointment, appointment_update)
    _commit(db, f"appointment {appointment_id} update")
    db.refresh(db_appointment)
    return db_appointment


def update_appointment_status(db: Session, appointment_id: int, status: str) -> Optional[models.Appointment]:
    db_appointment = get_appointment(db, appointment_id)
    if not db_appointment:
        return None
    db_appointment.status = status
    _commit(db, f"appointment {appointment_id} status update")
    db.refresh(db_appointment)
    return db_appointment


def delete_appointment(db: Session, appointment_id: int) -> bool:
    try:
        db_appointment = get_appointment(db, appointment_id)
        if not db_appointment:
            db.rollback()
            return False
        _delete_appointment_dependents(db, [appointment_id])
        db.query(models.Appointment).filter(models.Appointment.id == appointment_id).delete()
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting appointment {appointment_id}: {str(e)}")
        raise CRUDError(f"Database error: {str(e)}")


# ==================== BILLING CRUD OPERATIONS ====================

def get_billing(db: Session, billing_id: int) -> Optional[models.Billing]:
    return db.query(models.Billing).filter(models.Billing.id == billing_id).first()


def get_billing_by_appointment(db: Session, appointment_id: int) -> Optional[models.Billing]:
    return db.query(models.Billing).filter(models.Billing.appointment_id == appointment_id).first()


def get_billings(
    db: Session, skip: int = 0, limit: int = 100, appointment_id: int = None, paid: bool = None
) -> List[models.Billing]:
    query = db.query(models.Billing)
    if appointment_id is not None:
        query = query.filter(models.Billing.appointment_id == appointment_id)
    if paid is not None:
        query = query.filter(models.Billing.paid == paid)
    return query.order_by(models.Billing.id).offset(skip).limit(limit).all()


def create_billing(db: Session, billing: schemas.BillingCreate) -> models.Billing:
    if billing.amount < 0:
        raise CRUDError("Billing amount cannot be negative")
    if not get_appointment(db, billing.appointment_id):
        raise CRUDError(f"Appointment {billing.appointment_id} does not exist")

    db_billing = models.Billing(**billing.model_dump())
    db.add(db_billing)
    _commit(db, "billing creation")
    db.refresh(db_billing)
    return db_billing


def update_billing(db: Session, billing_id: int, billing_update: schemas.BillingUpdate) -> Optional[models.Billing]:
    db_billing = get_billing(db, billing_id)
    if not db_billing:
        return None

    _apply_update(db_billing, billing_update)
    _commit(db, f"billing {billing_id} update")
    db.refresh(db_billing)
    return db_billing


def delete_billing(db: Session, billing_id: int) -> bool:
    db_billing = get_billing(db, billing_id)
    if not db_billing:
        return False
    db.delete(db_billing)
    _commit(db, f"billing {billing_id} deletion")
    return True


# ==================== INVENTORY CRUD OPERATIONS ====================

def get_inventory_item(db: Session, item_id: int) -> Optional[models.Inventory]:
    return db.query(models.Inventory).filter(models.Inventory.id == item_id).first()


def get_inventory_items(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    name: str = None,
    item_type: str = None,
    active_status: bool = None,
) -> List[models.Inventory]:
    try:
        query = db.query(models.Inventory)
        if name:
            query = query.filter(models.Inventory.name.ilike(f"%{name}%"))
        if item_type:
            query = query.filter(models.Inventory.type == item_type)
        if active_status is not None:
            query = query.filter(models.Inventory.active_status == active_status)
        return query.order_by(models.Inventory.id).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching inventory: {str(e)}")
        raise CRUDError(f"Database error: {str(e)}")


def get_inventory_with_usage(db: Session, item_id: int) -> Optional[models.Inventory]:
    return (
        db.query(models.Inventory)
        .options(joinedload(models.Inventory.usage))
        .filter(models.Inventory.id == item_id)
        .first()
    )


def get_items_needing_reorder(db: Session) -> List[models.Inventory]:
    """Active items at or below their reorder threshold, most depleted first."""
    return (
        db.query(models.Inventory)
        .filter(
            models.Inventory.active_status.is_(True),
            models.Inventory.stock_quantity <= models.Inventory.reorder_threshold,
        )
        .order_by(models.Inventory.stock_quantity - models.Inventory.reorder_threshold)
        .all()
    )


def get_expired_items(db: Session, as_of: date = None) -> List[models.Inventory]:
    as_of = as_of or date.today()
    return (
        db.query(models.Inventory)
        .filter(
            models.Inventory.active_status.is_(True),
            models.Inventory.expiry_date.isnot(None),
            models.Inventory.expiry_date < as_of,
        )
        .order_by(models.Inventory.expiry_date)
        .all()
    )


def create_inventory_item(db: Session, item: schemas.InventoryCreate) -> models.Inventory:
    db_item = models.Inventory(**item.model_dump())
    db.add(db_item)
    _commit(db, "inventory creation")
    db.refresh(db_item)
    return db_item


def update_inventory_item(db: Session, item_id: int, item_update: schemas.InventoryUpdate) -> Optional[models.Inventory]:
    db_item = get_inventory_item(db, item_id)
    if not db_item:
        return None

    _apply_update(db_item, item_update)
    _commit(db, f"inventory {item_id} update")
    db.refresh(db_item)
    return db_item


def update_stock_quantity(db: Session, item_id: int, new_quantity: int) -> Optional[models.Inventory]:
    if new_quantity < 0:
        raise CRUDError("Stock quantity cannot be negative")
    db_item = get_inventory_item(db, item_id)
    if not db_item:
        return None
    db_item.stock_quantity = new_quantity
    _commit(db, f"inventory {item_id} stock update")
    db.refresh(db_item)
    return db_item


def delete_inventory_item(db: Session, item_id: int) -> bool:
    try:
        db_item = get_inventory_item(db, item_id)
        if not db_item:
            return False
        db.query(models.AppointmentInventory).filter(
            models.AppointmentInventory.item_id == item_id
        ).delete()
        db.delete(db_item)
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting inventory item {item_id}: {str(e)}")
        raise CRUDError(f"Database error: {str(e)}")


# ==================== APPOINTMENT INVENTORY OPERATIONS ====================

def get_inventory_usage(db: Session, appointment_id: int, item_id: int) -> Optional[models.AppointmentInventory]:
    return (
        db.query(models.AppointmentInventory)
        .filter(
            and_(
                models.AppointmentInventory.appointment_id == appointment_id,
                models.AppointmentInventory.item_id == item_id,
            )
        )
        .first()
    )


def get_inventory_usage_by_appointment(db: Session, appointment_id: int) -> List[models.AppointmentInventory]:
    return (
        db.query(models.AppointmentInventory)
        .filter(models.AppointmentInventory.appointment_id == appointment_id)
        .order_by(models.AppointmentInventory.item_id)
        .all()
    )


def get_inventory_usages(
    db: Session, appointment_id: int = None, item_id: int = None
) -> List[models.AppointmentInventory]:
    query = db.query(models.AppointmentInventory)
    if appointment_id is not None:
        query = query.filter(models.AppointmentInventory.appointment_id == appointment_id)
    if item_id is not None:
        query = query.filter(models.AppointmentInventory.item_id == item_id)
    return query.order_by(models.AppointmentInventory.appointment_id, models.AppointmentInventory.item_id).all()


def record_inventory_usage(db: Session, appointment_id: int, item_id: int, quantity: int) -> models.AppointmentInventory:
    """
    Add `quantity` to the usage row for (appointment, item), creating it if
    absent. Flushes but does not commit, so callers can fold it into a
    larger unit of work.
    """
    usage = get_inventory_usage(db, appointment_id, item_id)
    if usage:
        usage.quantity_used += quantity
    else:
        usage = models.AppointmentInventory(
            appointment_id=appointment_id, item_id=item_id, quantity_used=quantity
        )
        db.add(usage)
    db.flush()
    return usage


def create_inventory_usage(db: Session, usage: schemas.AppointmentInventoryCreate) -> models.AppointmentInventory:
    if not get_appointment(db, usage.appointment_id):
        raise CRUDError(f"Appointment {usage.appointment_id} does not exist")
    if not get_inventory_item(db, usage.item_id):
        raise CRUDError(f"Inventory item {usage.item_id} does not exist")

    db_usage = record_inventory_usage(db, usage.appointment_id, usage.item_id, usage.quantity_used)
    _commit(db, "inventory usage creation")
    db.refresh(db_usage)
    return db_usage


def delete_inventory_usage(db: Session, appointment_id: int, item_id: int) -> bool:
    db_usage = get_inventory_usage(db, appointment_id, item_id)
    if not db_usage:
        return False
    db.delete(db_usage)
    _commit(db, "inventory usage deletion")
    return True


# ==================== FEEDBACK ====================

def create_feedback(
    db: Session,
    patient_id: int,
    doctor_id: int,
    appointment_id: Optional[int] = None,
    rating: Optional[int] = None,
    comments: Optional[str] = None,
) -> models.Feedback:
    db_feedback = models.Feedback(
        patient_id=patient_id,
        doctor_id=doctor_id,
        appointment_id=appointment_id,
        rating=rating,
        comments=comments,
    )
    db.add(db_feedback)
    _commit(db, "feedback creation")
    db.refresh(db_feedback)
    return db_feedback


def get_feedback_for_doctor(db: Session, doctor_id: int) -> List[models.Feedback]:
    return db.query(models.Feedback).filter(models.Feedback.doctor_id == doctor_id).all()


def get_dashboard_stats(db: Session, on_date: date = None) -> Dict[str, Any]:
    """Headline counts for a single day."""
    on_date = on_date or date.today()
    todays = db.query(models.Appointment).filter(models.Appointment.date == on_date)
    return {
        "date": on_date.isoformat(),
        "appointments_today": todays.count(),
        "completed_today": todays.filter(models.Appointment.status == models.AppointmentStatus.done.value).count(),
        "active_patients": db.query(models.Patient).filter(models.Patient.active_status.is_(True)).count(),
        "active_staff": db.query(models.Staff).filter(models.Staff.active_status.is_(True)).count(),
        "items_needing_reorder": len(get_items_needing_reorder(db)),
        "unpaid_bills": db.query(models.Billing).filter(
            or_(models.Billing.paid.is_(False), models.Billing.paid.is_(None))
        ).count(),
    }
