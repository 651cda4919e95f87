# tests/conftest.py
from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinicnexus import crud, models, schemas
from clinicnexus.config import Settings
from clinicnexus.database import Base
from clinicnexus.services.notifications import AuditLogger, NotificationSender

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingAuditLogger(AuditLogger):
    def __init__(self):
        super().__init__(source="tests")
        self.events = []

    def log_event(self, action, category, details=None, severity="INFO", **fields):
        self.events.append({"action": action, "category": category, "details": details, **fields})

    def actions(self):
        return [event["action"] for event in self.events]


class RecordingNotifier(NotificationSender):
    def __init__(self):
        super().__init__()
        self.patient_messages = []
        self.supplier_messages = []

    def notify_patient(self, patient_id, name, phone, email, message):
        self.patient_messages.append({"patient_id": patient_id, "name": name, "email": email, "message": message})

    def notify_supplier(self, item_name, supplier_info, quantity):
        self.supplier_messages.append({"item_name": item_name, "supplier": supplier_info, "quantity": quantity})


@pytest.fixture
def session_factory():
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://")


@pytest.fixture
def audit():
    return RecordingAuditLogger()


@pytest.fixture
def notifier():
    return RecordingNotifier()


# ---- seed helpers ----

@pytest.fixture
def make_patient(db):
    def _make(name="Jane Roe", active_status=True, **kwargs):
        return crud.create_patient(db, schemas.PatientCreate(name=name, active_status=active_status, **kwargs))
    return _make


@pytest.fixture
def make_staff(db):
    def _make(name="Dr. Alan Grant", job_type="Doctor", working_days="Mon,Tue,Wed,Thu,Fri", active_status=True, **kwargs):
        return crud.create_staff(
            db,
            schemas.StaffCreate(
                name=name, job_type=job_type, working_days=working_days, active_status=active_status, **kwargs
            ),
        )
    return _make


@pytest.fixture
def make_item(db):
    def _make(name="Gauze", stock_quantity=100, reorder_threshold=10, unit_price=2.5, **kwargs):
        return crud.create_inventory_item(
            db,
            schemas.InventoryCreate(
                name=name,
                stock_quantity=stock_quantity,
                reorder_threshold=reorder_threshold,
                unit_price=unit_price,
                **kwargs,
            ),
        )
    return _make


@pytest.fixture
def make_appointment(db):
    def _make(patient_id, doctor_id, on=date(2024, 6, 1), at=time(9, 0), status="Not Done", **kwargs):
        return crud.create_appointment(
            db,
            schemas.AppointmentCreate(
                patient_id=patient_id, doctor_id=doctor_id, date=on, time=at, status=status, **kwargs
            ),
        )
    return _make


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def doctor(make_staff):
    return make_staff()


def count(db, model):
    db.expire_all()
    return db.query(model).count()


@pytest.fixture
def row_count(db):
    return lambda model: count(db, model)
