# clinicnexus/routers/health.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional

from .. import crud, schemas
from ..config import get_settings
from ..database import get_db, check_connection

router = APIRouter(
    tags=["Health Checks"],
    responses={404: {"description": "Not found"}},
)


@router.get("/health", response_model=schemas.HealthResponse)
def health_check(db: Session = Depends(get_db)):
    database_ok = check_connection(db)
    return schemas.HealthResponse(
        status="healthy" if database_ok else "degraded",
        database="connected" if database_ok else "unavailable",
        version=get_settings().app_version,
    )


@router.get("/dashboard")
def dashboard_stats(on_date: Optional[date] = None, db: Session = Depends(get_db)):
    """Headline counts for the front desk."""
    return crud.get_dashboard_stats(db, on_date=on_date)
