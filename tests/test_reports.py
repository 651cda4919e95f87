# tests/test_reports.py
import csv
import io
from datetime import date, time

import pytest

from clinicnexus import crud, schemas
from clinicnexus.services.report_service import (
    ReportService,
    export_report_to_csv,
    month_bounds,
    quarter_bounds,
    stock_status,
)


@pytest.fixture
def reports(session_factory):
    return ReportService(session_factory=session_factory)


def bill(db, appointment, amount, paid=False):
    return crud.create_billing(db, schemas.BillingCreate(appointment_id=appointment.id, amount=amount, paid=paid))


def test_period_bounds():
    assert month_bounds(2024, 12) == (date(2024, 12, 1), date(2025, 1, 1))
    assert quarter_bounds(2024, 2) == (date(2024, 4, 1), date(2024, 7, 1))
    assert quarter_bounds(2024, 4) == (date(2024, 10, 1), date(2025, 1, 1))
    with pytest.raises(ValueError):
        quarter_bounds(2024, 5)


@pytest.mark.parametrize("stock, threshold, label", [
    (10, 10, "Low Stock"),
    (20, 10, "Medium Stock"),
    (21, 10, "High Stock"),
])
def test_stock_status(stock, threshold, label):
    assert stock_status(stock, threshold) == label


def test_patient_visit_analysis_groups_by_week(reports, make_patient, doctor, make_appointment):
    patient = make_patient(name="Ann", birth_date=date(1990, 5, 5))
    make_appointment(patient.id, doctor.id, on=date(2024, 6, 3), status="Done", visit_type="Check-up")
    make_appointment(patient.id, doctor.id, on=date(2024, 6, 4), status="Done", visit_type="Procedure")
    make_appointment(patient.id, doctor.id, on=date(2024, 6, 12), status="Done", visit_type="Check-up")
    make_appointment(patient.id, doctor.id, on=date(2024, 6, 13), status="Not Done")
    make_appointment(patient.id, doctor.id, on=date(2024, 7, 1), status="Done")

    report = reports.generate_patient_visit_analysis(2024, 6)

    assert [(r["week_number"], r["visit_count"]) for r in report] == [(23, 2), (24, 1)]
    assert report[0]["visit_types"] == "Check-up,Procedure"
    assert report[0]["age"] == date.today().year - 1990


def test_doctor_performance(reports, db, make_staff, patient, make_patient, make_appointment):
    busy = make_staff(name="Dr. Busy", specialization="Cardiology")
    make_staff(name="Dr. Idle")
    other = make_patient(name="Other")
    done = make_appointment(patient.id, busy.id, on=date(2024, 4, 2), status="Done")
    second = make_appointment(other.id, busy.id, on=date(2024, 5, 2), status="Done")
    make_appointment(patient.id, busy.id, on=date(2024, 5, 3), status="Canceled")
    make_appointment(patient.id, busy.id, on=date(2024, 5, 4))
    make_appointment(patient.id, busy.id, on=date(2024, 8, 1), status="Done")
    bill(db, done, 500)
    bill(db, second, 1500)
    crud.create_feedback(db, patient.id, busy.id, done.id, rating=4)
    crud.create_feedback(db, other.id, busy.id, second.id, rating=5)
    crud.create_feedback(db, other.id, busy.id, second.id, comments="no score")

    report = reports.generate_doctor_performance_metrics(2024, 2)

    assert len(report) == 1
    row = report[0]
    assert row["doctor_name"] == "Dr. Busy"
    assert row["total_appointments"] == 4
    assert row["completed_appointments"] == 2
    assert row["canceled_appointments"] == 1
    assert row["unique_patients"] == 2
    assert row["average_rating"] == 4.5
    assert row["total_feedbacks"] == 3
    assert row["total_revenue"] == 2000.0
    assert row["success_rate"] == 50.0


def test_financial_report_per_day(reports, db, patient, doctor, make_appointment):
    first = make_appointment(patient.id, doctor.id, on=date(2024, 6, 1))
    second = make_appointment(patient.id, doctor.id, on=date(2024, 6, 1), at=time(10, 0))
    third = make_appointment(patient.id, doctor.id, on=date(2024, 6, 2))
    bill(db, first, 500, paid=True)
    bill(db, second, 1500)
    bill(db, third, 2000, paid=True)

    report = reports.generate_financial_operations_report(2024, 6)

    assert [r["report_date"] for r in report] == ["2024-06-01", "2024-06-02"]
    day = report[0]
    assert day["total_bills"] == 2
    assert day["total_revenue"] == 2000.0
    assert day["average_revenue"] == 1000.0
    assert day["paid_revenue"] == 500.0
    assert day["unpaid_revenue"] == 1500.0
    assert day["payment_rate"] == 50.0


def test_resource_utilization(reports, db, patient, doctor, make_appointment, make_item):
    first = make_appointment(patient.id, doctor.id, on=date(2024, 3, 1))
    second = make_appointment(patient.id, doctor.id, on=date(2024, 9, 1))
    last_year = make_appointment(patient.id, doctor.id, on=date(2023, 9, 1))
    gauze = make_item(name="Gauze", type="Supply", unit_price=2.5, stock_quantity=15, reorder_threshold=10)
    monitor = make_item(name="Monitor", type="Equipment", unit_price=0, stock_quantity=3, reorder_threshold=1)
    make_item(name="Unused", type="Supply", stock_quantity=5, reorder_threshold=10)
    crud.record_inventory_usage(db, first.id, gauze.id, 10)
    crud.record_inventory_usage(db, second.id, gauze.id, 14)
    crud.record_inventory_usage(db, last_year.id, gauze.id, 100)
    crud.record_inventory_usage(db, first.id, monitor.id, 1)
    db.commit()

    report = reports.generate_resource_utilization_report(2024)

    assert [r["item_name"] for r in report] == ["Gauze", "Monitor", "Unused"]
    gauze_row = report[0]
    assert gauze_row["total_used"] == 24
    assert gauze_row["appointments_used"] == 2
    assert gauze_row["total_cost"] == 60.0
    assert gauze_row["monthly_usage_rate"] == 2.0
    assert gauze_row["stock_status"] == "Medium Stock"
    assert "utilization_frequency" not in gauze_row
    assert report[1]["utilization_frequency"] == 0.02
    assert report[2]["total_used"] == 0
    assert report[2]["stock_status"] == "Low Stock"


def test_monthly_summary(reports, db, make_patient, doctor, make_appointment):
    ann = make_patient(name="Ann")
    bob = make_patient(name="Bob")
    first = make_appointment(ann.id, doctor.id, on=date(2024, 6, 1))
    make_appointment(ann.id, doctor.id, on=date(2024, 6, 8))
    make_appointment(bob.id, doctor.id, on=date(2024, 6, 9))
    make_appointment(bob.id, doctor.id, on=date(2024, 7, 9))
    bill(db, first, 750)

    summary = reports.generate_monthly_summary_report(2024, 6)

    assert summary == {
        "year": 2024,
        "month": 6,
        "total_appointments": 3,
        "total_revenue": 750.0,
        "total_patients": 2,
    }


def test_empty_month(reports):
    assert reports.generate_financial_operations_report(2024, 2) == []
    assert reports.generate_monthly_summary_report(2024, 2)["total_appointments"] == 0


def test_export_to_csv_uses_union_of_keys():
    text = export_report_to_csv([
        {"item_name": "Gauze", "total_used": 24},
        {"item_name": "Monitor", "total_used": 1, "utilization_frequency": 0.02},
    ])

    rows = list(csv.DictReader(io.StringIO(text)))
    assert list(rows[0].keys()) == ["item_name", "total_used", "utilization_frequency"]
    assert rows[0]["utilization_frequency"] == ""
    assert rows[1]["utilization_frequency"] == "0.02"


def test_export_empty_report():
    assert export_report_to_csv([]) == ""
