# clinicnexus/routers/billing.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import crud, schemas
from ..database import get_db

router = APIRouter(
    tags=["Billing"],
    responses={404: {"description": "Not found"}},
)


@router.get("/billing", response_model=List[schemas.BillingResponse])
def read_billings(
    skip: int = 0,
    limit: int = Query(100, le=500),
    appointment_id: Optional[int] = None,
    paid: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    return crud.get_billings(db, skip=skip, limit=limit, appointment_id=appointment_id, paid=paid)


@router.get("/billing/appointment/{appointment_id}", response_model=schemas.BillingResponse)
def read_billing_for_appointment(appointment_id: int, db: Session = Depends(get_db)):
    db_billing = crud.get_billing_by_appointment(db, appointment_id)
    if db_billing is None:
        raise HTTPException(status_code=404, detail="Billing record not found")
    return db_billing


@router.get("/billing/{billing_id}", response_model=schemas.BillingResponse)
def read_billing(billing_id: int, db: Session = Depends(get_db)):
    db_billing = crud.get_billing(db, billing_id)
    if db_billing is None:
        raise HTTPException(status_code=404, detail="Billing record not found")
    return db_billing


@router.post("/billing", response_model=schemas.BillingResponse, status_code=status.HTTP_201_CREATED)
def create_new_billing(billing: schemas.BillingCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_billing(db, billing)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/billing/{billing_id}", response_model=schemas.BillingResponse)
def update_existing_billing(billing_id: int, billing_update: schemas.BillingUpdate, db: Session = Depends(get_db)):
    try:
        updated = crud.update_billing(db, billing_id, billing_update)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated is None:
        raise HTTPException(status_code=404, detail="Billing record not found")
    return updated


@router.delete("/billing/{billing_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_existing_billing(billing_id: int, db: Session = Depends(get_db)):
    if not crud.delete_billing(db, billing_id):
        raise HTTPException(status_code=404, detail="Billing record not found")
