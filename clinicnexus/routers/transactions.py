# clinicnexus/routers/transactions.py
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import List, Optional

from .. import schemas
from ..services.appointment_scheduling import AppointmentTransactionService
from ..services.inventory_management import InventoryManagementService
from ..services.staff_scheduling import StaffSchedulingService
from ..services.visit_processing import VisitProcessingService

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"],
    responses={404: {"description": "Not found"}},
)

DOCTOR_UNAVAILABLE = "Doctor is not available at the requested time"


# Providers, overridden in tests
def get_appointment_service() -> AppointmentTransactionService:
    return AppointmentTransactionService()


def get_visit_service(
    appointment_service: AppointmentTransactionService = Depends(get_appointment_service),
) -> VisitProcessingService:
    return VisitProcessingService(
        session_factory=appointment_service.session_factory,
        appointment_service=appointment_service,
    )


def get_inventory_service() -> InventoryManagementService:
    return InventoryManagementService()


def get_staff_service() -> StaffSchedulingService:
    return StaffSchedulingService()


# ==================== Appointments ====================

@router.post("/appointments", response_model=schemas.AppointmentResult, status_code=status.HTTP_201_CREATED)
def schedule_appointment(
    appointment: schemas.AppointmentCreate,
    service: AppointmentTransactionService = Depends(get_appointment_service),
):
    """
    Book an appointment with its initial bill. Rejected bookings leave no rows behind.
    """
    result = service.schedule_appointment(appointment)
    if not result.success:
        code = status.HTTP_409_CONFLICT if result.message == DOCTOR_UNAVAILABLE else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=result.message)
    return result


@router.get("/appointments/available-slots", response_model=schemas.AvailableSlotsResponse)
def read_available_slots(
    doctor_id: int,
    appointment_date: date = Query(..., alias="date"),
    service: AppointmentTransactionService = Depends(get_appointment_service),
):
    return schemas.AvailableSlotsResponse(
        doctor_id=doctor_id,
        date=appointment_date,
        available_slots=service.get_available_time_slots(doctor_id, appointment_date),
    )


# ==================== Visits ====================

@router.post("/visits", response_model=schemas.VisitResult)
def process_visit(
    data: schemas.VisitProcessingData,
    service: VisitProcessingService = Depends(get_visit_service),
):
    result = service.process_patient_visit(data)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    return result


# ==================== Inventory ====================

@router.post("/inventory/process", response_model=schemas.InventoryManagementResult)
def run_inventory_management(service: InventoryManagementService = Depends(get_inventory_service)):
    """Reorder sweep. Per-item failures are listed in `errors` without failing the request."""
    result = service.process_inventory_management()
    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.errors)
    return result


@router.post("/inventory/{item_id}/restock", response_model=schemas.RestockResult)
def restock_item(
    item_id: int,
    request: schemas.RestockRequest,
    service: InventoryManagementService = Depends(get_inventory_service),
):
    result = service.process_restocking(item_id, request.quantity_received, request.supplier_info)
    if not result.success:
        code = status.HTTP_404_NOT_FOUND if result.message == "Inventory item not found" else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=result.message)
    return result


@router.post("/inventory/usage", response_model=schemas.UsageResult)
def consume_inventory(
    request: schemas.InventoryUsageRequest,
    service: InventoryManagementService = Depends(get_inventory_service),
):
    result = service.process_inventory_usage(request.appointment_id, request.usage)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    return result


# ==================== Staff ====================

@router.post("/staff/shifts", response_model=schemas.SchedulingResult)
def schedule_shift(
    request: schemas.ShiftRequest,
    service: StaffSchedulingService = Depends(get_staff_service),
):
    result = service.schedule_staff_shift(request.staff_id, request.shift_date, request.start_time, request.end_time)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    return result


@router.post("/staff/time-off", response_model=schemas.TimeOffResult)
def request_time_off(
    request: schemas.TimeOffRequest,
    service: StaffSchedulingService = Depends(get_staff_service),
):
    result = service.process_time_off_request(request.staff_id, request.start_date, request.end_date, request.reason)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    return result


@router.get("/staff/coverage", response_model=schemas.CoverageResult)
def read_coverage(
    coverage_date: date = Query(..., alias="date"),
    shift: Optional[str] = None,
    service: StaffSchedulingService = Depends(get_staff_service),
):
    return service.check_staff_coverage(coverage_date, shift)


@router.get("/staff/schedule", response_model=List[schemas.StaffScheduleEntry])
def read_staff_schedule(
    start_date: date,
    end_date: date,
    service: StaffSchedulingService = Depends(get_staff_service),
):
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    return service.get_staff_schedule(start_date, end_date)
