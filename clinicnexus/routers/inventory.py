# clinicnexus/routers/inventory.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import crud, schemas
from ..database import get_db

router = APIRouter(
    tags=["Inventory"],
    responses={404: {"description": "Not found"}},
)


@router.get("/inventory", response_model=List[schemas.InventoryResponse])
def read_inventory(
    skip: int = 0,
    limit: int = Query(100, le=500),
    name: Optional[str] = None,
    item_type: Optional[str] = Query(None, alias="type"),
    active_status: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    return crud.get_inventory_items(
        db, skip=skip, limit=limit, name=name, item_type=item_type, active_status=active_status
    )


@router.get("/inventory/reorder", response_model=List[schemas.InventoryResponse])
def read_items_needing_reorder(db: Session = Depends(get_db)):
    """Active items at or below their reorder threshold."""
    return crud.get_items_needing_reorder(db)


@router.get("/inventory/expired", response_model=List[schemas.InventoryResponse])
def read_expired_items(db: Session = Depends(get_db)):
    return crud.get_expired_items(db)


@router.get("/inventory/usage", response_model=List[schemas.AppointmentInventoryResponse])
def read_inventory_usage(
    appointment_id: Optional[int] = None,
    item_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return crud.get_inventory_usages(db, appointment_id=appointment_id, item_id=item_id)


@router.post("/inventory/usage", response_model=schemas.AppointmentInventoryResponse, status_code=status.HTTP_201_CREATED)
def create_inventory_usage(usage: schemas.AppointmentInventoryCreate, db: Session = Depends(get_db)):
    """
    Record consumption without touching stock. Use /transactions/inventory/usage to consume stock.
    """
    try:
        return crud.create_inventory_usage(db, usage)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/inventory/usage/{appointment_id}/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_usage(appointment_id: int, item_id: int, db: Session = Depends(get_db)):
    if not crud.delete_inventory_usage(db, appointment_id, item_id):
        raise HTTPException(status_code=404, detail="Usage record not found")


@router.get("/inventory/{item_id}", response_model=schemas.InventoryResponse)
def read_inventory_item(item_id: int, db: Session = Depends(get_db)):
    db_item = crud.get_inventory_item(db, item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return db_item


@router.get("/inventory/{item_id}/usage", response_model=List[schemas.AppointmentInventoryResponse])
def read_item_usage(item_id: int, db: Session = Depends(get_db)):
    db_item = crud.get_inventory_with_usage(db, item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return db_item.usage


@router.post("/inventory", response_model=schemas.InventoryResponse, status_code=status.HTTP_201_CREATED)
def create_inventory_item(item: schemas.InventoryCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_inventory_item(db, item)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/inventory/{item_id}", response_model=schemas.InventoryResponse)
def update_inventory_item(item_id: int, item_update: schemas.InventoryUpdate, db: Session = Depends(get_db)):
    try:
        updated = crud.update_inventory_item(db, item_id, item_update)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if updated is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return updated


@router.delete("/inventory/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(item_id: int, db: Session = Depends(get_db)):
    try:
        deleted = crud.delete_inventory_item(db, item_id)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Inventory item not found")
