# clinicnexus/routers/patients.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import crud, schemas
from ..database import get_db

router = APIRouter(
    tags=["Patients"],
    responses={404: {"description": "Not found"}},
)


@router.post("/patients", response_model=schemas.PatientResponse, status_code=status.HTTP_201_CREATED)
def create_new_patient(patient: schemas.PatientCreate, db: Session = Depends(get_db)):
    """
    Register a patient. A primary doctor, when given, must already exist.
    """
    try:
        return crud.create_patient(db=db, patient=patient)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/patients", response_model=List[schemas.PatientResponse])
def read_all_patients(
    skip: int = 0,
    limit: int = Query(100, le=500),
    name: Optional[str] = None,
    insurance_info: Optional[str] = None,
    active_status: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    return crud.get_patients(
        db, skip=skip, limit=limit, name=name, insurance_info=insurance_info, active_status=active_status
    )


@router.get("/patients/search", response_model=List[schemas.PatientResponse])
def search_patients(name: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return crud.search_patients_by_name(db, name)


@router.get("/patients/id/{name}")
def read_patient_id_by_name(name: str, db: Session = Depends(get_db)):
    """Exact-name lookup."""
    patient_id = crud.get_patient_id_by_name(db, name)
    if patient_id is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return {"id": patient_id}


@router.get("/patients/{patient_id}", response_model=schemas.PatientResponse)
def read_patient(patient_id: int, db: Session = Depends(get_db)):
    db_patient = crud.get_patient(db, patient_id)
    if db_patient is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return db_patient


@router.get("/patients/{patient_id}/appointments", response_model=List[schemas.AppointmentResponse])
def read_patient_appointments(patient_id: int, db: Session = Depends(get_db)):
    db_patient = crud.get_patient_with_appointments(db, patient_id)
    if db_patient is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return sorted(db_patient.appointments, key=lambda a: (a.date, a.time))


@router.put("/patients/{patient_id}", response_model=schemas.PatientResponse)
def update_existing_patient(patient_id: int, patient_update: schemas.PatientUpdate, db: Session = Depends(get_db)):
    try:
        updated = crud.update_patient(db, patient_id, patient_update)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return updated


@router.post("/patients/{patient_id}/deactivate", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_existing_patient(patient_id: int, db: Session = Depends(get_db)):
    if not crud.deactivate_patient(db, patient_id):
        raise HTTPException(status_code=404, detail="Patient not found")


@router.delete("/patients/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_existing_patient(patient_id: int, db: Session = Depends(get_db)):
    """
    Hard delete. Removes the patient's appointments, bills, stock usage and feedback with them.
    """
    try:
        deleted = crud.delete_patient(db, patient_id)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Patient not found")
