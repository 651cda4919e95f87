# tests/test_staff_scheduling.py
from datetime import date, time

import pytest

from clinicnexus.config import Settings
from clinicnexus.services.staff_scheduling import StaffSchedulingService
from clinicnexus.services.notifications import AuditLogger

SHIFT_DAY = date(2024, 6, 1)


@pytest.fixture
def service(session_factory, audit, settings):
    return StaffSchedulingService(session_factory=session_factory, audit=audit, settings=settings)


@pytest.fixture
def full_roster(make_staff):
    return [
        make_staff(name="Dr. A"),
        make_staff(name="Dr. B"),
        make_staff(name="Nurse C", job_type="Nurse"),
        make_staff(name="Admin D", job_type="Admin"),
    ]


def test_shift_inside_window_is_scheduled(service, doctor, patient, make_appointment, full_roster, audit):
    make_appointment(patient.id, doctor.id, on=SHIFT_DAY, at=time(10, 0))

    result = service.schedule_staff_shift(doctor.id, SHIFT_DAY, time(9, 0), time(17, 0))

    assert result.success is True
    assert result.message == "Staff shift scheduled successfully"
    assert result.warnings == []
    assert "staff_shift_scheduled" in audit.actions()


def test_appointment_outside_shift_conflicts(service, doctor, patient, make_appointment):
    make_appointment(patient.id, doctor.id, on=SHIFT_DAY, at=time(16, 30))

    result = service.schedule_staff_shift(doctor.id, SHIFT_DAY, time(9, 0), time(13, 0))

    assert result.success is False
    assert result.message == "Staff member already has a conflicting schedule"


def test_canceled_appointment_does_not_conflict(service, doctor, patient, make_appointment):
    make_appointment(patient.id, doctor.id, on=SHIFT_DAY, at=time(16, 30), status="Canceled")

    assert service.schedule_staff_shift(doctor.id, SHIFT_DAY, time(9, 0), time(13, 0)).success is True


def test_inverted_window_conflicts_with_any_booking(service, doctor, patient, make_appointment):
    make_appointment(patient.id, doctor.id, on=SHIFT_DAY, at=time(10, 0))

    result = service.schedule_staff_shift(doctor.id, SHIFT_DAY, time(17, 0), time(9, 0))

    assert result.success is False


def test_inactive_staff_cannot_take_shift(service, make_staff):
    gone = make_staff(name="Dr. Gone", active_status=False)

    result = service.schedule_staff_shift(gone.id, SHIFT_DAY, time(9, 0), time(17, 0))

    assert result.success is False
    assert result.message == "Staff member not found or inactive"


def test_thin_coverage_is_only_a_warning(service, doctor):
    result = service.schedule_staff_shift(doctor.id, SHIFT_DAY, time(9, 0), time(17, 0))

    assert result.success is True
    assert result.warnings == [f"Minimum coverage requirements may not be met for {SHIFT_DAY}"]


def test_time_off_approved(service, doctor, audit):
    result = service.process_time_off_request(doctor.id, date(2024, 7, 1), date(2024, 7, 5), "Vacation")

    assert result.success is True
    assert result.status == "Approved"
    assert result.message == "Time-off request approved"
    assert audit.actions() == ["time_off_recorded", "staff_schedule_updated"]


def test_time_off_rejected_over_existing_appointments(service, doctor, patient, make_appointment):
    make_appointment(patient.id, doctor.id, on=date(2024, 7, 2))
    make_appointment(patient.id, doctor.id, on=date(2024, 7, 5), at=time(11, 0))
    make_appointment(patient.id, doctor.id, on=date(2024, 7, 3), status="Canceled")

    result = service.process_time_off_request(doctor.id, date(2024, 7, 1), date(2024, 7, 5))

    assert result.success is False
    assert result.status == "Rejected"
    assert result.message == "Cannot approve time-off: 2 existing appointments during this period"


def test_time_off_for_unknown_staff(service):
    result = service.process_time_off_request(4242, date(2024, 7, 1), date(2024, 7, 2))

    assert result.success is False
    assert result.status == "Rejected"
    assert result.message == "Staff member not found or inactive"


def test_coverage_counts_active_staff(service, full_roster, make_staff):
    make_staff(name="Nurse Off", job_type="Nurse", active_status=False)
    make_staff(name="Tech E", job_type="Technician")

    result = service.check_staff_coverage(SHIFT_DAY, "morning")

    assert result.has_minimum_coverage is True
    assert (result.doctor_count, result.nurse_count, result.admin_count) == (2, 1, 1)
    assert result.message == "Coverage for 2024-06-01: Doctors: 2, Nurses: 1, Admin: 1"


def test_coverage_ignores_shift(service, full_roster):
    assert service.check_staff_coverage(SHIFT_DAY, "night") == service.check_staff_coverage(SHIFT_DAY, None)


def test_coverage_thresholds_come_from_settings(session_factory, audit, full_roster):
    strict = StaffSchedulingService(
        session_factory=session_factory, audit=audit, settings=Settings(database_url="sqlite://", min_doctor_coverage=3)
    )

    assert strict.check_staff_coverage(SHIFT_DAY).has_minimum_coverage is False


def test_staff_schedule_lists_appointments_and_idle_staff(service, make_staff, patient, make_appointment):
    busy = make_staff(name="Dr. Busy")
    make_staff(name="Dr. Free")
    make_appointment(patient.id, busy.id, on=date(2024, 6, 3), at=time(9, 0))
    make_appointment(patient.id, busy.id, on=date(2024, 6, 4), at=time(9, 0))
    make_appointment(patient.id, busy.id, on=date(2024, 8, 1), at=time(9, 0))

    schedule = service.get_staff_schedule(date(2024, 6, 1), date(2024, 6, 30))

    busy_rows = [entry for entry in schedule if entry.name == "Dr. Busy"]
    free_rows = [entry for entry in schedule if entry.name == "Dr. Free"]
    assert [entry.date for entry in busy_rows] == [date(2024, 6, 3), date(2024, 6, 4)]
    assert len(free_rows) == 1
    assert free_rows[0].date is None


class FailingAudit(AuditLogger):
    def log_event(self, action, category, details=None, severity="INFO", **fields):
        raise RuntimeError("audit sink down")


def test_audit_failure_rejects_shift_and_time_off(session_factory, settings, doctor):
    service = StaffSchedulingService(session_factory=session_factory, audit=FailingAudit(), settings=settings)

    shift = service.schedule_staff_shift(doctor.id, SHIFT_DAY, time(9, 0), time(17, 0))
    time_off = service.process_time_off_request(doctor.id, date(2024, 7, 1), date(2024, 7, 2))

    assert shift.success is False
    assert shift.message == "audit sink down"
    assert time_off.success is False
    assert time_off.status == "Rejected"
    assert time_off.message == "audit sink down"
