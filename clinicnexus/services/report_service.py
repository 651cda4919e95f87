# clinicnexus/services/report_service.py
import csv
import io
import logging
from collections import defaultdict
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..database import transaction_scope

logger = logging.getLogger(__name__)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First day of the month and first day of the next month."""
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def quarter_bounds(year: int, quarter: int) -> Tuple[date, date]:
    if quarter not in (1, 2, 3, 4):
        raise ValueError("Quarter must be between 1 and 4")
    start = date(year, (quarter - 1) * 3 + 1, 1)
    end = date(year + 1, 1, 1) if quarter == 4 else date(year, quarter * 3 + 1, 1)
    return start, end


def stock_status(current_stock: int, reorder_threshold: int) -> str:
    if current_stock <= reorder_threshold:
        return "Low Stock"
    if current_stock <= reorder_threshold * 2:
        return "Medium Stock"
    return "High Stock"


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


class ReportService:
    """Read-only analytics over appointments, billing, feedback and inventory. Failures yield empty reports."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory

    def _run(self, name: str, builder: Callable[[Session], Any], empty: Any):
        try:
            with transaction_scope(self.session_factory) as db:
                return builder(db)
        except SQLAlchemyError as e:
            logger.error(f"Error generating {name}: {str(e)}")
            return empty

    # ---- patient visits ----

    def generate_patient_visit_analysis(self, year: int, month: int) -> List[Dict[str, Any]]:
        """Completed visits per patient per ISO week of the given month."""
        start, end = month_bounds(year, month)

        def build(db: Session):
            rows = (
                db.query(models.Patient, models.Appointment)
                .join(models.Appointment, models.Appointment.patient_id == models.Patient.id)
                .filter(
                    models.Appointment.date >= start,
                    models.Appointment.date < end,
                    models.Appointment.status == models.AppointmentStatus.done.value,
                )
                .all()
            )
            groups: Dict[Tuple[int, int], Dict[str, Any]] = {}
            today = date.today()
            for patient, appointment in rows:
                week = appointment.date.isocalendar()[1]
                entry = groups.setdefault((patient.id, week), {
                    "patient_id": patient.id,
                    "patient_name": patient.name,
                    "age": today.year - patient.birth_date.year if patient.birth_date else None,
                    "week_number": week,
                    "visit_count": 0,
                    "visit_types": set(),
                })
                entry["visit_count"] += 1
                if appointment.visit_type:
                    entry["visit_types"].add(appointment.visit_type)

            report = []
            for entry in groups.values():
                entry["visit_types"] = ",".join(sorted(entry["visit_types"]))
                report.append(entry)
            return sorted(report, key=lambda r: (r["patient_name"], r["week_number"]))

        return self._run("patient visit analysis", build, [])

    # ---- doctors ----

    def generate_doctor_performance_metrics(self, year: int, quarter: int) -> List[Dict[str, Any]]:
        start, end = quarter_bounds(year, quarter)

        def build(db: Session):
            report = []
            doctors = db.query(models.Staff).filter(
                models.Staff.job_type == models.JobType.doctor.value,
                models.Staff.active_status.is_(True),
            ).all()
            for doctor in doctors:
                appointments = db.query(models.Appointment).filter(
                    models.Appointment.doctor_id == doctor.id,
                    models.Appointment.date >= start,
                    models.Appointment.date < end,
                ).all()
                if not appointments:
                    continue

                ids = [a.id for a in appointments]
                feedback = db.query(models.Feedback).filter(models.Feedback.appointment_id.in_(ids)).all()
                ratings = [f.rating for f in feedback if f.rating is not None]
                revenue = sum(
                    float(b.amount or 0)
                    for b in db.query(models.Billing).filter(models.Billing.appointment_id.in_(ids)).all()
                )
                completed = sum(1 for a in appointments if a.is_completed)
                report.append({
                    "doctor_id": doctor.id,
                    "doctor_name": doctor.name,
                    "specialization": doctor.specialization,
                    "total_appointments": len(appointments),
                    "completed_appointments": completed,
                    "canceled_appointments": sum(1 for a in appointments if a.is_canceled),
                    "unique_patients": len({a.patient_id for a in appointments}),
                    "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
                    "total_feedbacks": len(feedback),
                    "total_revenue": round(revenue, 2),
                    "success_rate": _percent(completed, len(appointments)),
                })
            return sorted(report, key=lambda r: r["total_appointments"], reverse=True)

        return self._run("doctor performance metrics", build, [])

    # ---- finance ----

    def generate_financial_operations_report(self, year: int, month: int) -> List[Dict[str, Any]]:
        """Per appointment day: bill counts, revenue, and the paid/unpaid split."""
        start, end = month_bounds(year, month)

        def build(db: Session):
            rows = (
                db.query(models.Appointment.date, models.Billing)
                .join(models.Billing, models.Billing.appointment_id == models.Appointment.id)
                .filter(models.Appointment.date >= start, models.Appointment.date < end)
                .all()
            )
            by_day = defaultdict(list)
            for day, bill in rows:
                by_day[day].append(bill)

            report = []
            for day in sorted(by_day):
                bills = by_day[day]
                amounts = [float(b.amount or 0) for b in bills]
                paid = [float(b.amount or 0) for b in bills if b.paid]
                report.append({
                    "report_date": day.isoformat(),
                    "total_bills": len(bills),
                    "total_revenue": round(sum(amounts), 2),
                    "average_revenue": round(sum(amounts) / len(amounts), 2),
                    "paid_revenue": round(sum(paid), 2),
                    "unpaid_revenue": round(sum(amounts) - sum(paid), 2),
                    "paid_bills": len(paid),
                    "unpaid_bills": len(bills) - len(paid),
                    "payment_rate": _percent(len(paid), len(bills)),
                })
            return report

        return self._run("financial operations report", build, [])

    # ---- inventory ----

    def generate_resource_utilization_report(self, year: int) -> List[Dict[str, Any]]:
        start, end = date(year, 1, 1), date(year + 1, 1, 1)

        def build(db: Session):
            usage_rows = (
                db.query(models.AppointmentInventory)
                .join(models.Appointment, models.Appointment.id == models.AppointmentInventory.appointment_id)
                .filter(models.Appointment.date >= start, models.Appointment.date < end)
                .all()
            )
            used = defaultdict(int)
            appointments = defaultdict(set)
            for row in usage_rows:
                used[row.item_id] += row.quantity_used
                appointments[row.item_id].add(row.appointment_id)

            report = []
            for item in db.query(models.Inventory).filter(models.Inventory.active_status.is_(True)).all():
                total_used = used[item.id]
                unit_price = float(item.unit_price or 0)
                entry = {
                    "item_id": item.id,
                    "item_name": item.name,
                    "item_type": item.type,
                    "purpose": item.purpose,
                    "current_stock": item.stock_quantity,
                    "reorder_threshold": item.reorder_threshold,
                    "unit_price": unit_price,
                    "total_used": total_used,
                    "appointments_used": len(appointments[item.id]),
                    "total_cost": round(total_used * unit_price, 2),
                    "monthly_usage_rate": round(total_used / 12, 2),
                    "stock_status": stock_status(item.stock_quantity, item.reorder_threshold),
                }
                if item.type == models.InventoryType.equipment.value:
                    # Average appointments per week over the year
                    entry["utilization_frequency"] = round(len(appointments[item.id]) / 52, 2)
                report.append(entry)
            return sorted(report, key=lambda r: (-r["total_used"], r["item_name"]))

        return self._run("resource utilization report", build, [])

    # ---- summary ----

    def generate_monthly_summary_report(self, year: int, month: int) -> Dict[str, Any]:
        start, end = month_bounds(year, month)
        empty = {"year": year, "month": month, "total_appointments": 0, "total_revenue": 0.0, "total_patients": 0}

        def build(db: Session):
            appointments = db.query(models.Appointment).filter(
                models.Appointment.date >= start,
                models.Appointment.date < end,
            ).all()
            ids = [a.id for a in appointments]
            revenue = 0.0
            if ids:
                revenue = sum(
                    float(b.amount or 0)
                    for b in db.query(models.Billing).filter(models.Billing.appointment_id.in_(ids)).all()
                )
            return {
                "year": year,
                "month": month,
                "total_appointments": len(appointments),
                "total_revenue": round(revenue, 2),
                "total_patients": len({a.patient_id for a in appointments}),
            }

        return self._run("monthly summary report", build, empty)


def export_report_to_csv(rows: List[Dict[str, Any]]) -> str:
    """Render report rows as CSV text; the header is the union of keys in first-seen order."""
    output = io.StringIO()
    if not rows:
        return ""
    fieldnames: List[str] = []
    for row in rows:
        for key in row:
            if key not in fieldnames:
                fieldnames.append(key)
    writer = csv.DictWriter(output, fieldnames=fieldnames)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return output.getvalue()
