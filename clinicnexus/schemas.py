# clinicnexus/schemas.py
import datetime
from datetime import date, time
from decimal import Decimal
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, EmailStr, field_validator, model_validator


# --- Base Schemas ---
class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ==================== Patient Schemas ====================

class PatientBase(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)
    birth_date: Optional[date] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    insurance_info: Optional[str] = Field(None, max_length=255)
    first_visit_date: Optional[date] = None
    primary_doctor_id: Optional[int] = None
    active_status: bool = True


class PatientCreate(PatientBase):
    pass


class PatientUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    birth_date: Optional[date] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    insurance_info: Optional[str] = Field(None, max_length=255)
    first_visit_date: Optional[date] = None
    primary_doctor_id: Optional[int] = None
    active_status: Optional[bool] = None


class PatientResponse(PatientBase):
    id: int
    email: Optional[str] = None


# ==================== Staff Schemas ====================

class StaffBase(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)
    job_type: str = Field(..., min_length=1, max_length=50, description="Doctor, Nurse, Admin, ...")
    specialization: Optional[str] = Field(None, max_length=100)
    license_number: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    hire_date: Optional[date] = None
    working_days: Optional[str] = Field(None, max_length=100, description="Free-text working days, e.g. 'Mon,Tue,Wed'")
    active_status: bool = True


class StaffCreate(StaffBase):
    pass


class StaffUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    job_type: Optional[str] = Field(None, min_length=1, max_length=50)
    specialization: Optional[str] = Field(None, max_length=100)
    license_number: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    hire_date: Optional[date] = None
    working_days: Optional[str] = Field(None, max_length=100)
    active_status: Optional[bool] = None


class StaffResponse(StaffBase):
    id: int
    email: Optional[str] = None


# ==================== Appointment Schemas ====================

class AppointmentBase(BaseSchema):
    patient_id: int
    doctor_id: int
    date: datetime.date
    time: datetime.time
    duration: int = 30
    visit_type: Optional[str] = Field(None, max_length=50)
    status: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = None


class AppointmentCreate(AppointmentBase):
    pass


class AppointmentUpdate(BaseSchema):
    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None
    date: Optional[datetime.date] = None
    time: Optional[datetime.time] = None
    duration: Optional[int] = Field(None, gt=0)
    visit_type: Optional[str] = Field(None, max_length=50)
    status: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = None


class AppointmentStatusUpdate(BaseSchema):
    status: str = Field(..., min_length=1, max_length=20)


class AppointmentResponse(AppointmentBase):
    id: int
    status: str


class AppointmentWithNamesResponse(BaseSchema):
    id: int
    patient_name: str
    doctor_name: str
    date: datetime.date
    time: datetime.time
    duration: int
    visit_type: Optional[str] = None
    status: str
    notes: Optional[str] = None


class AppointmentWithNamesCreate(BaseSchema):
    """Appointment request that identifies patient and doctor by exact name."""
    patient_name: str
    doctor_name: str
    date: datetime.date
    time: datetime.time
    duration: Optional[int] = None
    visit_type: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None


# ==================== Billing Schemas ====================

class BillingBase(BaseSchema):
    appointment_id: int
    amount: float = Field(..., ge=0)
    paid: bool = False
    payment_date: Optional[date] = None


class BillingCreate(BillingBase):
    pass


class BillingUpdate(BaseSchema):
    appointment_id: Optional[int] = None
    amount: Optional[float] = Field(None, ge=0)
    paid: Optional[bool] = None
    payment_date: Optional[date] = None


class BillingResponse(BillingBase):
    id: int
    is_overdue: bool


# ==================== Inventory Schemas ====================

class InventoryBase(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)
    type: Optional[str] = Field(None, max_length=50, description="Equipment, Supply, Medication, ...")
    purpose: Optional[str] = Field(None, max_length=255)
    stock_quantity: int = Field(0, ge=0)
    reorder_threshold: int = Field(0, ge=0)
    unit_price: float = Field(0, ge=0)
    supplier_info: Optional[str] = Field(None, max_length=255)
    expiry_date: Optional[date] = None
    active_status: bool = True


class InventoryCreate(InventoryBase):
    pass


class InventoryUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[str] = Field(None, max_length=50)
    purpose: Optional[str] = Field(None, max_length=255)
    stock_quantity: Optional[int] = Field(None, ge=0)
    reorder_threshold: Optional[int] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    supplier_info: Optional[str] = Field(None, max_length=255)
    expiry_date: Optional[date] = None
    active_status: Optional[bool] = None


class InventoryResponse(InventoryBase):
    id: int
    needs_reorder: bool
    is_expired: bool


class AppointmentInventoryBase(BaseSchema):
    appointment_id: int
    item_id: int
    quantity_used: int = Field(..., gt=0)


class AppointmentInventoryCreate(AppointmentInventoryBase):
    pass


class AppointmentInventoryResponse(AppointmentInventoryBase):
    pass


class AppointmentDetailResponse(AppointmentResponse):
    """An appointment with its patient, doctor, bill and consumed stock."""
    patient: Optional[PatientResponse] = None
    doctor: Optional[StaffResponse] = None
    billing: Optional[BillingResponse] = None
    inventory_usage: List[AppointmentInventoryResponse] = Field(default_factory=list)


# ==================== Workflow Schemas ====================

class AppointmentResult(BaseSchema):
    success: bool
    appointment_id: int = -1
    message: str


class AvailableSlotsResponse(BaseSchema):
    doctor_id: int
    date: datetime.date
    available_slots: List[str]


class VisitProcessingData(BaseSchema):
    """Everything recorded at the end of a visit."""
    appointment_id: int
    vital_signs: Dict[str, str] = Field(default_factory=dict)
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    inventory_usage: Dict[int, int] = Field(default_factory=dict, description="Item ID -> quantity consumed")
    base_amount: Decimal = Field(Decimal("0"), ge=0)
    schedule_follow_up: bool = False
    follow_up_date: Optional[date] = None
    follow_up_time: Optional[time] = None

    @field_validator("inventory_usage")
    @classmethod
    def validate_quantities(cls, v):
        for item_id, quantity in v.items():
            if quantity <= 0:
                raise ValueError(f"Quantity for item {item_id} must be positive")
        return v


class VisitResult(BaseSchema):
    success: bool
    message: str


class InventoryManagementResult(BaseSchema):
    success: bool
    processed_items: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class RestockRequest(BaseSchema):
    quantity_received: int = Field(..., gt=0)
    supplier_info: Optional[str] = Field(None, max_length=255)


class RestockResult(BaseSchema):
    success: bool
    message: str


class InventoryUsageRequest(BaseSchema):
    appointment_id: int
    usage: Dict[int, int] = Field(..., description="Item ID -> quantity used")

    @field_validator("usage")
    @classmethod
    def validate_quantities(cls, v):
        if not v:
            raise ValueError("At least one inventory item is required")
        for item_id, quantity in v.items():
            if quantity <= 0:
                raise ValueError(f"Quantity for item {item_id} must be positive")
        return v


class UsageResult(BaseSchema):
    success: bool
    message: str
    processed_items: List[str] = Field(default_factory=list)
    reorder_alerts: List[str] = Field(default_factory=list)


class ShiftRequest(BaseSchema):
    staff_id: int
    shift_date: date
    start_time: time
    end_time: time


class SchedulingResult(BaseSchema):
    success: bool
    message: str
    warnings: List[str] = Field(default_factory=list)


class TimeOffRequest(BaseSchema):
    staff_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = None

    @model_validator(mode="after")
    def validate_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TimeOffResult(BaseSchema):
    success: bool
    message: str
    status: str


class CoverageResult(BaseSchema):
    has_minimum_coverage: bool
    message: str
    doctor_count: int = 0
    nurse_count: int = 0
    admin_count: int = 0


class StaffScheduleEntry(BaseSchema):
    staff_id: int
    name: str
    job_type: str
    date: Optional[datetime.date] = None
    time: Optional[datetime.time] = None


# ==================== Health ====================

class HealthResponse(BaseSchema):
    status: str
    database: str
    version: str
    details: Optional[Dict[str, Any]] = None
