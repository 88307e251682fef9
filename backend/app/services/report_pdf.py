from __future__ import annotations

from io import BytesIO
from typing import Any

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

LEFT = 20 * mm
BOTTOM = 20 * mm


def format_money(pence: int) -> str:
    return f"{pence / 100:,.2f}"


def _draw_header(pdf: canvas.Canvas, clinic_name: str, title: str) -> float:
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(LEFT, 280 * mm, clinic_name or "Dental clinic")
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawRightString(190 * mm, 280 * mm, title)
    return 268 * mm


class _Writer:
    def __init__(self, pdf: canvas.Canvas, clinic_name: str, title: str) -> None:
        self.pdf = pdf
        self.clinic_name = clinic_name
        self.title = title
        self.y = _draw_header(pdf, clinic_name, title)

    def line(self, text: str = "", bold: bool = False) -> None:
        if self.y < BOTTOM:
            self.pdf.showPage()
            self.y = _draw_header(self.pdf, self.clinic_name, self.title)
        self.pdf.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        self.pdf.drawString(LEFT, self.y, text)
        self.y -= 5 * mm

    def section(self, heading: str, rows: list[dict[str, Any]], money: bool = True) -> None:
        self.line()
        self.line(heading, bold=True)
        if not rows:
            self.line("None")
        for row in rows:
            value = format_money(row["value"]) if money else str(row["value"])
            self.line(f"{row['label']}: {value}")


def build_financial_summary_pdf(*, clinic_name: str, summary: dict[str, Any]) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    writer = _Writer(pdf, clinic_name, "Financial summary")

    writer.line(f"Period: {summary['start']} to {summary['end']}", bold=True)
    writer.line(f"Income basis: {summary['basis']}")
    writer.line()
    writer.line(f"Total income: {format_money(summary['total_income'])}")
    writer.line(f"Total expenses: {format_money(summary['total_expenses'])}")
    writer.line(f"Net profit: {format_money(summary['net_profit'])}")
    writer.line(f"Doctor shares: {format_money(summary['doctor_shares'])}")
    writer.line(f"Clinic profit: {format_money(summary['clinic_profit'])}", bold=True)

    writer.section("Expenses by category", summary["expenses_by_category"])
    writer.section("Income by treatment", summary["income_by_treatment"])

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def build_patient_statement_pdf(*, clinic_name: str, statement: dict[str, Any]) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    writer = _Writer(pdf, clinic_name, "Patient statement")

    writer.line(statement["patient_name"], bold=True)
    if statement.get("phone"):
        writer.line(statement["phone"])
    if statement.get("email"):
        writer.line(statement["email"])

    writer.line()
    writer.line("Treatments", bold=True)
    if not statement["treatments"]:
        writer.line("None")
    for row in statement["treatments"]:
        writer.line(
            f"{row['date'].isoformat()}  {row['treatment_name']}  ({row['dentist_name']})  "
            f"{format_money(row['total_cost'])}"
        )

    writer.line()
    writer.line("Payments", bold=True)
    if not statement["payments"]:
        writer.line("None")
    for row in statement["payments"]:
        label = row["method"].replace("_", " ").title()
        writer.line(f"{row['date'].isoformat()}  {label}  {format_money(row['amount'])}")

    balance = statement["balance"]
    writer.line()
    writer.line(f"Total charges: {format_money(balance['total_charges'])}")
    writer.line(f"Total paid: {format_money(balance['total_paid'])}")
    outstanding = balance["outstanding_balance"]
    if outstanding > 0:
        writer.line(f"Balance due: {format_money(outstanding)}", bold=True)
    elif outstanding < 0:
        writer.line(f"Overpaid: {format_money(-outstanding)}", bold=True)
    else:
        writer.line("Paid in full", bold=True)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
