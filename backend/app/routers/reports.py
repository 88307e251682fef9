from calendar import monthrange
from datetime import date, datetime, timezone
import csv
import io
import logging
import zipfile

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.deps import get_store
from app.schemas.patient import PatientBalanceRow
from app.schemas.reports import (
    AppointmentOverviewOut,
    DailySummaryOut,
    DashboardOut,
    DentistReportOut,
    FinancialSummaryOut,
    InventoryReportOut,
    LabelValue,
    PatientStatisticsOut,
    SupplierReportOut,
    TreatmentPerformanceOut,
)
from app.services import reports
from app.services.clinic_store import ClinicStore
from app.services.finance import IncomeBasis, clinic_today
from app.services.report_pdf import build_financial_summary_pdf
from app.services.snapshot import DentistView

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger("clinic_manager.reports")


def _period(start: date | None, end: date | None) -> tuple[date, date]:
    today = clinic_today()
    start = start or today.replace(day=1)
    end = end or today.replace(day=monthrange(today.year, today.month)[1])
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not be before start")
    return start, end


def _optional_period(start: date | None, end: date | None) -> tuple[date | None, date | None]:
    if (start is None) != (end is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="start and end must be given together"
        )
    if start is None:
        return None, None
    return _period(start, end)


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    store: ClinicStore = Depends(get_store),
    basis: IncomeBasis | None = Query(default=None),
):
    return reports.dashboard(store.snapshot(), datetime.now(timezone.utc), basis)


@router.get("/daily", response_model=DailySummaryOut)
def daily_summary(
    store: ClinicStore = Depends(get_store),
    report_date: date | None = Query(default=None, alias="date"),
):
    return reports.daily_summary(store.snapshot(), report_date or clinic_today())


@router.get("/financial-summary", response_model=FinancialSummaryOut)
def financial_summary(
    store: ClinicStore = Depends(get_store),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    basis: IncomeBasis | None = Query(default=None),
    format: str = Query(default="json", pattern="^(json|csv|pdf)$"),
):
    start, end = _period(start, end)
    summary = reports.financial_summary(store.snapshot(), start, end, basis)
    if format == "json":
        return summary

    stem = f"financial_summary_{start.isoformat()}_{end.isoformat()}"
    if format == "pdf":
        pdf_bytes = build_financial_summary_pdf(clinic_name=store.owner.clinic_name, summary=summary)
        logger.info("Financial summary PDF built for %s to %s", start, end)
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{stem}.pdf"'},
        )

    totals_rows = [["metric", "amount_pence"]]
    for key in ("total_income", "total_expenses", "net_profit", "doctor_shares", "clinic_profit"):
        totals_rows.append([key, str(summary[key])])
    category_rows = [["category", "amount_pence"]]
    category_rows.extend([row["label"], str(row["value"])] for row in summary["expenses_by_category"])
    treatment_rows = [["treatment", "amount_pence"]]
    treatment_rows.extend([row["label"], str(row["value"])] for row in summary["income_by_treatment"])

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zipf:

        def _write_csv(name: str, rows: list[list[str]]) -> None:
            csv_buffer = io.StringIO()
            writer = csv.writer(csv_buffer)
            writer.writerows(rows)
            zipf.writestr(name, csv_buffer.getvalue())

        _write_csv("totals.csv", totals_rows)
        _write_csv("expenses_by_category.csv", category_rows)
        _write_csv("income_by_treatment.csv", treatment_rows)

    logger.info("Financial summary CSV pack built for %s to %s", start, end)
    return Response(
        content=buffer.getvalue(),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{stem}.zip"'},
    )


@router.get("/treatment-performance", response_model=TreatmentPerformanceOut)
def treatment_performance(
    store: ClinicStore = Depends(get_store),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
):
    start, end = _period(start, end)
    return reports.treatment_performance(store.snapshot(), start, end)


@router.get("/appointments", response_model=AppointmentOverviewOut)
def appointment_overview(
    store: ClinicStore = Depends(get_store),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
):
    start, end = _period(start, end)
    return reports.appointment_overview(store.snapshot(), start, end)


@router.get("/patients", response_model=PatientStatisticsOut)
def patient_statistics(
    store: ClinicStore = Depends(get_store),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
):
    start, end = _period(start, end)
    return reports.patient_statistics(store.snapshot(), start, end, clinic_today())


@router.get("/inventory", response_model=InventoryReportOut)
def inventory_report(
    store: ClinicStore = Depends(get_store),
    threshold: int | None = Query(default=None, ge=0),
    expiry_days: int = Query(default=30, ge=0),
):
    return reports.inventory_report(store.snapshot(), clinic_today(), threshold, expiry_days)


@router.get("/monthly-revenue", response_model=list[LabelValue])
def monthly_revenue(
    store: ClinicStore = Depends(get_store),
    months: int = Query(default=6, ge=1, le=36),
):
    return reports.monthly_revenue(store.snapshot(), months, clinic_today())


@router.get("/doctors", response_model=list[DentistReportOut])
def dentist_reports(
    store: ClinicStore = Depends(get_store),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
):
    start, end = _optional_period(start, end)
    return reports.dentist_reports(store.snapshot(), start, end)


@router.get("/doctors/{dentist_id}", response_model=DentistReportOut)
def dentist_report(
    dentist_id: int,
    store: ClinicStore = Depends(get_store),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
):
    start, end = _optional_period(start, end)
    dentist = DentistView.model_validate(store.get_dentist(dentist_id))
    return reports.dentist_report(store.snapshot(), dentist, start, end)


@router.get("/patient-balances", response_model=list[PatientBalanceRow])
def patient_balances(store: ClinicStore = Depends(get_store)):
    return reports.patient_balances(store.snapshot())


@router.get("/suppliers", response_model=list[SupplierReportOut])
def supplier_reports(store: ClinicStore = Depends(get_store)):
    return reports.supplier_reports(store.snapshot())
