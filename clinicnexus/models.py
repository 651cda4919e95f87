# clinicnexus/models.py
from datetime import date
from sqlalchemy import (
    Column, Integer, String, Time, ForeignKey, Text, Date,
    Boolean, Numeric, Index, DateTime
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base
import enum


class JobType(str, enum.Enum):
    doctor = "Doctor"
    nurse = "Nurse"
    admin = "Admin"
    receptionist = "Receptionist"
    technician = "Technician"


class AppointmentStatus(str, enum.Enum):
    not_done = "Not Done"
    done = "Done"
    canceled = "Canceled"


class VisitType(str, enum.Enum):
    check_up = "Check-up"
    procedure = "Procedure"
    emergency = "Emergency"
    consultation = "Consultation"
    follow_up = "Follow-up"


class InventoryType(str, enum.Enum):
    equipment = "Equipment"
    supply = "Supply"
    medication = "Medication"


# ==================== People ====================

class Patient(Base):
    __tablename__ = "patients"
    __table_args__ = (
        Index('idx_patients_name', 'name'),
        Index('idx_patients_active', 'active_status'),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    birth_date = Column(Date, nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    insurance_info = Column(String(255), nullable=True)
    first_visit_date = Column(Date, nullable=True)
    primary_doctor_id = Column(Integer, ForeignKey("staff.id"), nullable=True)
    active_status = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    primary_doctor = relationship("Staff", back_populates="primary_patients")
    appointments = relationship("Appointment", back_populates="patient")


class Staff(Base):
    __tablename__ = "staff"
    __table_args__ = (
        Index('idx_staff_job_active', 'job_type', 'active_status'),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    job_type = Column(String(50), nullable=False)
    specialization = Column(String(100), nullable=True)
    license_number = Column(String(50), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    hire_date = Column(Date, nullable=True)
    # Free-text token set, e.g. "Mon,Tue,Wed"
    working_days = Column(String(100), nullable=True)
    active_status = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    primary_patients = relationship("Patient", back_populates="primary_doctor")
    appointments = relationship("Appointment", back_populates="doctor")


# ==================== Visits & Billing ====================

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Lookup index only. The one-booking-per-slot rule is enforced by a
        # pre-check in the scheduling workflow, not by the store.
        Index('idx_appointments_doctor_slot', 'doctor_id', 'date', 'time'),
        Index('idx_appointments_patient', 'patient_id'),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("staff.id"), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    duration = Column(Integer, default=30, nullable=False)
    visit_type = Column(String(50), nullable=True)
    status = Column(String(20), default=AppointmentStatus.not_done.value, nullable=False)
    notes = Column(Text, nullable=True)

    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Staff", back_populates="appointments")
    billing = relationship("Billing", back_populates="appointment", uselist=False)
    inventory_usage = relationship("AppointmentInventory", back_populates="appointment")

    @property
    def is_completed(self) -> bool:
        return self.status == AppointmentStatus.done.value

    @property
    def is_canceled(self) -> bool:
        return self.status == AppointmentStatus.canceled.value

    @property
    def is_pending(self) -> bool:
        return self.status == AppointmentStatus.not_done.value


class Billing(Base):
    __tablename__ = "billing"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False, default=0)
    paid = Column(Boolean, default=False, nullable=False)
    payment_date = Column(Date, nullable=True)

    appointment = relationship("Appointment", back_populates="billing")

    @property
    def is_overdue(self) -> bool:
        """An unpaid bill is overdue."""
        return not self.paid


# ==================== Inventory ====================

class Inventory(Base):
    __tablename__ = "inventory"
    __table_args__ = (
        Index('idx_inventory_type_active', 'type', 'active_status'),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(50), nullable=True)
    purpose = Column(String(255), nullable=True)
    stock_quantity = Column(Integer, default=0, nullable=False)
    reorder_threshold = Column(Integer, default=0, nullable=False)
    unit_price = Column(Numeric(10, 2), default=0, nullable=False)
    supplier_info = Column(String(255), nullable=True)
    expiry_date = Column(Date, nullable=True)
    active_status = Column(Boolean, default=True, nullable=False)

    usage = relationship("AppointmentInventory", back_populates="item")

    @property
    def needs_reorder(self) -> bool:
        return self.stock_quantity <= self.reorder_threshold

    @property
    def is_expired(self) -> bool:
        if self.expiry_date is None:
            return False
        return self.expiry_date < date.today()


class AppointmentInventory(Base):
    """Quantity of a stock item consumed during one appointment."""
    __tablename__ = "appointment_inventory"

    appointment_id = Column(Integer, ForeignKey("appointments.id"), primary_key=True)
    item_id = Column(Integer, ForeignKey("inventory.id"), primary_key=True)
    quantity_used = Column(Integer, nullable=False, default=0)

    appointment = relationship("Appointment", back_populates="inventory_usage")
    item = relationship("Inventory", back_populates="usage")


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=True)
    doctor_id = Column(Integer, ForeignKey("staff.id"), nullable=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    rating = Column(Integer, nullable=True)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
