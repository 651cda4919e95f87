# clinicnexus/routers/appointments.py
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import crud, schemas
from ..database import get_db

router = APIRouter(
    tags=["Appointments"],
    responses={404: {"description": "Not found"}},
)


@router.get("/appointments", response_model=List[schemas.AppointmentResponse])
def read_appointments(
    skip: int = 0,
    limit: int = Query(100, le=500),
    appointment_date: Optional[date] = Query(None, alias="date"),
    doctor_id: Optional[int] = None,
    patient_id: Optional[int] = None,
    status: Optional[str] = None,
    visit_type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return crud.get_appointments(
        db,
        skip=skip,
        limit=limit,
        appointment_date=appointment_date,
        doctor_id=doctor_id,
        patient_id=patient_id,
        status=status,
        visit_type=visit_type,
    )


@router.get("/appointments/range", response_model=List[schemas.AppointmentResponse])
def read_appointments_in_range(
    start_date: date,
    end_date: date,
    doctor_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    return crud.get_appointments_by_date_range(db, start_date, end_date, doctor_id=doctor_id)


@router.get("/appointments/with-names", response_model=List[schemas.AppointmentWithNamesResponse])
def read_appointments_with_names(skip: int = 0, limit: int = Query(100, le=500), db: Session = Depends(get_db)):
    return crud.get_appointments_with_names(db, skip=skip, limit=limit)


@router.post("/appointments/with-names", response_model=schemas.AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment_with_names(appointment: schemas.AppointmentWithNamesCreate, db: Session = Depends(get_db)):
    """
    Record an appointment for a patient and doctor identified by exact name.
    No billing or availability rules are applied; use /transactions/appointments to book.
    """
    try:
        return crud.create_appointment_with_names(db, appointment)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/appointments", response_model=schemas.AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_new_appointment(appointment: schemas.AppointmentCreate, db: Session = Depends(get_db)):
    """
    Record an appointment row directly. Rejects a slot the doctor already holds.
    """
    if not crud.get_patient(db, appointment.patient_id):
        raise HTTPException(status_code=400, detail="Patient not found")
    if not crud.get_staff(db, appointment.doctor_id):
        raise HTTPException(status_code=400, detail="Doctor not found")
    if crud.has_appointment_conflict(db, appointment.doctor_id, appointment.date, appointment.time):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Doctor is not available at the requested time")
    try:
        return crud.create_appointment(db, appointment)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/appointments/{appointment_id}", response_model=schemas.AppointmentResponse)
def read_appointment(appointment_id: int, db: Session = Depends(get_db)):
    db_appointment = crud.get_appointment(db, appointment_id)
    if db_appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return db_appointment


@router.get("/appointments/{appointment_id}/details", response_model=schemas.AppointmentDetailResponse)
def read_appointment_details(appointment_id: int, db: Session = Depends(get_db)):
    db_appointment = crud.get_appointment_with_related_records(db, appointment_id)
    if db_appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return db_appointment


@router.put("/appointments/{appointment_id}", response_model=schemas.AppointmentResponse)
def update_existing_appointment(
    appointment_id: int, appointment_update: schemas.AppointmentUpdate, db: Session = Depends(get_db)
):
    existing = crud.get_appointment(db, appointment_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Appointment not found")

    # Moving the appointment must not land on a slot the doctor already holds
    changes = appointment_update.model_dump(exclude_unset=True)
    if {"doctor_id", "date", "time"} & changes.keys():
        if crud.has_appointment_conflict(
            db,
            changes.get("doctor_id", existing.doctor_id),
            changes.get("date", existing.date),
            changes.get("time", existing.time),
            exclude_appointment_id=appointment_id,
        ):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Doctor is not available at the requested time")

    try:
        return crud.update_appointment(db, appointment_id, appointment_update)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/appointments/{appointment_id}/status", response_model=schemas.AppointmentResponse)
def update_appointment_status(
    appointment_id: int, status_update: schemas.AppointmentStatusUpdate, db: Session = Depends(get_db)
):
    updated = crud.update_appointment_status(db, appointment_id, status_update.status)
    if updated is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return updated


@router.delete("/appointments/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_existing_appointment(appointment_id: int, db: Session = Depends(get_db)):
    try:
        deleted = crud.delete_appointment(db, appointment_id)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Appointment not found")
