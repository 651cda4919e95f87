# clinicnexus/routers/reports.py
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from typing import Any, Dict, List, Optional

from ..services.report_service import ReportService, export_report_to_csv

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    responses={404: {"description": "Not found"}},
)


def get_report_service() -> ReportService:
    return ReportService()


@router.get("/patient-visits")
def patient_visit_analysis(
    year: int,
    month: int = Query(..., ge=1, le=12),
    service: ReportService = Depends(get_report_service),
) -> List[Dict[str, Any]]:
    return service.generate_patient_visit_analysis(year, month)


@router.get("/doctor-performance")
def doctor_performance(
    year: int,
    quarter: int = Query(..., ge=1, le=4),
    service: ReportService = Depends(get_report_service),
) -> List[Dict[str, Any]]:
    return service.generate_doctor_performance_metrics(year, quarter)


@router.get("/financial")
def financial_operations(
    year: int,
    month: int = Query(..., ge=1, le=12),
    service: ReportService = Depends(get_report_service),
) -> List[Dict[str, Any]]:
    return service.generate_financial_operations_report(year, month)


@router.get("/resource-utilization")
def resource_utilization(year: int, service: ReportService = Depends(get_report_service)) -> List[Dict[str, Any]]:
    return service.generate_resource_utilization_report(year)


@router.get("/monthly-summary")
def monthly_summary(
    year: int,
    month: int = Query(..., ge=1, le=12),
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    return service.generate_monthly_summary_report(year, month)


@router.get("/export/{report_name}")
def export_report(
    report_name: str,
    year: int,
    month: Optional[int] = Query(None, ge=1, le=12),
    quarter: Optional[int] = Query(None, ge=1, le=4),
    service: ReportService = Depends(get_report_service),
):
    """Download one of the tabular reports as CSV."""
    if report_name == "resource-utilization":
        rows = service.generate_resource_utilization_report(year)
    elif report_name == "doctor-performance":
        if quarter is None:
            raise HTTPException(status_code=400, detail="quarter is required")
        rows = service.generate_doctor_performance_metrics(year, quarter)
    elif report_name in ("patient-visits", "financial"):
        if month is None:
            raise HTTPException(status_code=400, detail="month is required")
        if report_name == "patient-visits":
            rows = service.generate_patient_visit_analysis(year, month)
        else:
            rows = service.generate_financial_operations_report(year, month)
    else:
        raise HTTPException(status_code=404, detail=f"Unknown report: {report_name}")

    return StreamingResponse(
        iter([export_report_to_csv(rows)]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={report_name}-{year}.csv"},
    )
