# clinicnexus/routers/staff.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import crud, schemas
from ..database import get_db

router = APIRouter(
    tags=["Staff"],
    responses={404: {"description": "Not found"}},
)


@router.post("/staff", response_model=schemas.StaffResponse, status_code=status.HTTP_201_CREATED)
def create_new_staff(staff: schemas.StaffCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_staff(db=db, staff=staff)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/staff", response_model=List[schemas.StaffResponse])
def read_all_staff(
    skip: int = 0,
    limit: int = Query(100, le=500),
    job_type: Optional[str] = None,
    specialization: Optional[str] = None,
    active_status: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    return crud.get_staff_list(
        db, skip=skip, limit=limit, job_type=job_type, specialization=specialization, active_status=active_status
    )


@router.get("/staff/doctors", response_model=List[schemas.StaffResponse])
def read_doctors(db: Session = Depends(get_db)):
    """Active doctors only."""
    return crud.get_doctors(db)


@router.get("/staff/search", response_model=List[schemas.StaffResponse])
def search_staff(name: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return crud.search_staff_by_name(db, name)


@router.get("/staff/id/{name}")
def read_staff_id_by_name(name: str, db: Session = Depends(get_db)):
    staff_id = crud.get_staff_id_by_name(db, name)
    if staff_id is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return {"id": staff_id}


@router.get("/staff/{staff_id}", response_model=schemas.StaffResponse)
def read_staff(staff_id: int, db: Session = Depends(get_db)):
    db_staff = crud.get_staff(db, staff_id)
    if db_staff is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return db_staff


@router.get("/staff/{staff_id}/appointments", response_model=List[schemas.AppointmentResponse])
def read_staff_appointments(staff_id: int, db: Session = Depends(get_db)):
    db_staff = crud.get_staff_with_appointments(db, staff_id)
    if db_staff is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return sorted(db_staff.appointments, key=lambda a: (a.date, a.time))


@router.put("/staff/{staff_id}", response_model=schemas.StaffResponse)
def update_existing_staff(staff_id: int, staff_update: schemas.StaffUpdate, db: Session = Depends(get_db)):
    try:
        updated = crud.update_staff(db, staff_id, staff_update)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return updated


@router.delete("/staff/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_existing_staff(staff_id: int, db: Session = Depends(get_db)):
    """
    Hard delete. The member's appointments go with them and their patients lose their primary doctor.
    """
    try:
        deleted = crud.delete_staff(db, staff_id)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Staff member not found")
