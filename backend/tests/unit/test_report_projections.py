from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.models.appointment import AppointmentStatus
from app.models.finance import ExpenseCategory, PaymentMethod
from app.models.lab_case import LabCaseStatus
from app.models.patient import Gender
from app.models.supplier import SupplierType
from app.services import reports
from app.services.report_pdf import build_financial_summary_pdf, build_patient_statement_pdf
from app.services.snapshot import (
    AppointmentView,
    ClinicSnapshot,
    DentistView,
    ExpenseView,
    InventoryItemView,
    LabCaseView,
    PatientView,
    PaymentView,
    SupplierInvoicePaymentView,
    SupplierInvoiceView,
    SupplierView,
    TreatmentDefinitionView,
    TreatmentRecordView,
)

UTC = timezone.utc
TODAY = date(2024, 5, 15)
NOW = datetime(2024, 5, 15, 10, 0, tzinfo=UTC)


def _snapshot() -> ClinicSnapshot:
    return ClinicSnapshot(
        patients=(
            PatientView(id=1, name="Mona", gender=Gender.female, phone="0100", last_visit=TODAY),
            PatientView(id=2, name="Omar", gender=Gender.male),
        ),
        dentists=(DentistView(id=1, name="Dr Amal", specialty="Ortho", color="#0af"),),
        appointments=(
            AppointmentView(
                id=1,
                patient_id=1,
                dentist_id=1,
                start_time=datetime(2024, 5, 15, 14, 0, tzinfo=UTC),
                end_time=datetime(2024, 5, 15, 14, 30, tzinfo=UTC),
                status=AppointmentStatus.confirmed,
            ),
        ),
        treatment_definitions=(
            TreatmentDefinitionView(
                id=1,
                name="Crown",
                base_price_pence=10000,
                doctor_percentage=Decimal("0.4"),
                clinic_percentage=Decimal("0.6"),
            ),
        ),
        treatment_records=(
            TreatmentRecordView(
                id=1,
                patient_id=1,
                dentist_id=1,
                treatment_definition_id=1,
                treatment_date=TODAY,
                total_treatment_cost_pence=10000,
                doctor_share_pence=4000,
                clinic_share_pence=6000,
            ),
        ),
        payments=(
            PaymentView(id=1, patient_id=1, date=TODAY, amount_pence=6000, method=PaymentMethod.card),
            PaymentView(id=2, patient_id=1, date=TODAY, amount_pence=500, method=PaymentMethod.discount),
        ),
        expenses=(
            ExpenseView(id=1, date=TODAY, amount_pence=1500, category=ExpenseCategory.supplies, supplier_id=1),
        ),
        inventory_items=(
            InventoryItemView(
                id=1, name="Gloves", supplier_id=1, current_stock=4, unit_cost_pence=250,
                expiry_date=date(2024, 6, 1),
            ),
            InventoryItemView(id=2, name="Masks", supplier_id=1, current_stock=40, unit_cost_pence=100),
        ),
        suppliers=(
            SupplierView(id=1, name="DentaSupply", type=SupplierType.material_supplier),
            SupplierView(id=2, name="Lab One", type=SupplierType.dental_lab),
        ),
        supplier_invoices=(
            SupplierInvoiceView(
                id=1,
                supplier_id=1,
                invoice_number="INV-1",
                invoice_date=date(2024, 4, 1),
                due_date=date(2024, 5, 1),
                amount_pence=5000,
                payments=(SupplierInvoicePaymentView(expense_id=1, amount_pence=1500, date=TODAY),),
            ),
        ),
        lab_cases=(
            LabCaseView(
                id=1, patient_id=1, lab_id=2, case_type="Bridge", due_date=date(2024, 5, 17),
                status=LabCaseStatus.sent_to_lab, lab_cost_pence=3000,
            ),
        ),
    )


def test_dashboard_figures():
    board = reports.dashboard(_snapshot(), NOW, tz=UTC)

    assert board["date"] == TODAY
    assert board["todays_appointments"] == 1
    assert board["todays_revenue"] == 10000
    assert board["month_revenue"] == 10000
    assert board["month_expenses"] == 1500
    assert board["month_net_profit"] == 8500
    assert board["month_clinic_profit"] == 4500
    assert board["outstanding_balance"] == 3500
    assert board["new_patients_this_month"] == 1
    assert board["upcoming_week"][0] == {"label": "2024-05-15", "value": 1}
    assert len(board["upcoming_week"]) == 7
    assert [case["patient_name"] for case in board["pending_lab_cases"]] == ["Mona"]
    assert [item["name"] for item in board["low_stock_items"]] == ["Gloves"]
    assert board["doctor_performance"][0]["percentage"] == 100.0
    assert board["overdue_supplier_invoices"][0]["outstanding_balance"] == 3500


def test_daily_summary_uses_payments_for_revenue():
    summary = reports.daily_summary(_snapshot(), TODAY, UTC)

    assert summary["revenue"] == 6000
    assert summary["expenses"] == 1500
    assert summary["doctor_shares"] == 4000
    assert summary["net_profit"] == 4500
    assert summary["clinic_profit"] == 500
    assert summary["pending_payments"] == 3500
    assert summary["payments_count"] == 1
    assert summary["unique_patients"] == 1
    assert summary["revenue_trend"][-1] == {"label": "2024-05-15", "value": 6000}
    assert summary["expense_breakdown"] == [{"label": "SUPPLIES", "value": 1500}]


def test_supplier_reports_include_lab_totals_for_labs_only():
    rows = {row["name"]: row for row in reports.supplier_reports(_snapshot())}

    material = rows["DentaSupply"]
    assert material["inventory_items"] == 2
    assert material["inventory_value"] == 4 * 250 + 40 * 100
    assert material["total_billed"] == 5000
    assert material["total_paid"] == 1500
    assert material["outstanding_balance"] == 3500
    assert material["lab_cases"] is None

    assert rows["Lab One"]["lab_cases"] == {"total": 1, "pending": 1, "total_cost": 3000}


def test_inventory_report_flags_low_and_expiring_stock():
    report = reports.inventory_report(_snapshot(), TODAY)
    assert report["total_items"] == 2
    assert report["total_stock_value"] == 5000
    assert [row["name"] for row in report["low_stock"]] == ["Gloves"]
    assert report["low_stock"][0]["supplier_name"] == "DentaSupply"
    assert [row["name"] for row in report["expiring_soon"]] == ["Gloves"]


def test_patient_statement_and_dentist_report():
    snapshot = _snapshot()
    statement = reports.patient_statement(snapshot, snapshot.patients[0])
    assert statement["balance"]["outstanding_balance"] == 3500
    assert statement["treatments"][0]["treatment_name"] == "Crown"
    assert statement["treatments"][0]["dentist_name"] == "Dr Amal"
    assert [p["method"] for p in statement["payments"]] == ["CARD", "DISCOUNT"]
    assert statement["chart_summary"]["HEALTHY"] == 32

    report = reports.dentist_report(snapshot, snapshot.dentists[0])
    assert report["total_earnings"] == 4000
    assert report["clinic_share"] == 6000
    assert report["patients_treated"] == 1
    assert report["last_treatment_date"] == TODAY

    with pytest.raises(ValueError):
        reports.dentist_report(snapshot, snapshot.dentists[0], start=TODAY)


def test_pdf_builders_return_pdf_documents():
    snapshot = _snapshot()
    summary = reports.financial_summary(snapshot, date(2024, 5, 1), date(2024, 5, 31), tz=UTC)
    pdf = build_financial_summary_pdf(clinic_name="Smile Clinic", summary=summary)
    assert pdf.startswith(b"%PDF")

    statement = reports.patient_statement(snapshot, snapshot.patients[0])
    assert build_patient_statement_pdf(clinic_name="", statement=statement).startswith(b"%PDF")
