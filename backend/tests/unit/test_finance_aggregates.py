from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from app.models.appointment import AppointmentStatus
from app.models.finance import ExpenseCategory, PaymentMethod
from app.models.patient import Gender
from app.services import finance
from app.services.finance import IncomeBasis
from app.services.snapshot import (
    AppointmentView,
    DentistView,
    ExpenseView,
    PatientView,
    PaymentView,
    SupplierInvoicePaymentView,
    SupplierInvoiceView,
    TreatmentDefinitionView,
    TreatmentRecordView,
)

UTC = timezone.utc


def _record(record_id, patient_id, day, total, doctor=0, dentist_id=1, definition_id=1):
    return TreatmentRecordView(
        id=record_id,
        patient_id=patient_id,
        dentist_id=dentist_id,
        treatment_definition_id=definition_id,
        treatment_date=day,
        total_treatment_cost_pence=total,
        doctor_share_pence=doctor,
        clinic_share_pence=total - doctor,
    )


def _payment(payment_id, patient_id, day, amount, method=PaymentMethod.cash):
    return PaymentView(id=payment_id, patient_id=patient_id, date=day, amount_pence=amount, method=method)


def _expense(expense_id, day, amount, category=ExpenseCategory.rent):
    return ExpenseView(id=expense_id, date=day, amount_pence=amount, category=category)


def test_period_rollup_income_minus_expenses():
    records = [
        _record(1, 1, date(2024, 1, 5), 200, doctor=80),
        _record(2, 1, date(2024, 1, 20), 300, doctor=120),
        _record(3, 1, date(2024, 2, 1), 999, doctor=100),
    ]
    expenses = [_expense(1, date(2024, 1, 10), 50)]

    rollup = finance.period_rollup("2024-01-01", "2024-01-31", records, expenses, [], tz=UTC)

    assert rollup["total_income"] == 500
    assert rollup["total_expenses"] == 50
    assert rollup["net_profit"] == 450
    assert rollup["doctor_shares"] == 200
    assert rollup["clinic_profit"] == 250
    assert rollup["basis"] == "treatments"


def test_period_rollup_on_payment_basis_ignores_discounts():
    payments = [
        _payment(1, 1, date(2024, 1, 3), 400),
        _payment(2, 1, date(2024, 1, 4), 100, PaymentMethod.discount),
        _payment(3, 1, date(2023, 12, 31), 700),
    ]
    rollup = finance.period_rollup(
        date(2024, 1, 1), date(2024, 1, 31), [], [], payments, IncomeBasis.payments, UTC
    )
    assert rollup["total_income"] == 400
    assert rollup["net_profit"] == 400


def test_date_range_covers_whole_local_days():
    tz = ZoneInfo("Africa/Cairo")
    rng = finance.date_range("2024-03-01", "2024-03-01", tz)
    assert rng.start == datetime(2024, 3, 1, 0, 0, tzinfo=tz)
    assert rng.end.hour == 23 and rng.end.minute == 59 and rng.end.microsecond == 999000
    assert finance.in_range(datetime(2024, 3, 1, 23, 59, 59, tzinfo=tz), rng)
    assert not finance.in_range(datetime(2024, 3, 2, 0, 0, tzinfo=tz), rng)


def test_date_range_rejects_bad_dates():
    with pytest.raises(ValueError):
        finance.date_range("not-a-date", "2024-01-01")


@pytest.mark.parametrize("value", ["garbage", "2024-13-45", None, 42])
def test_unparseable_dates_are_excluded(value):
    rng = finance.date_range(date(2024, 1, 1), date(2024, 12, 31), UTC)
    assert finance.in_range(value, rng) is False


def test_patient_balance_states():
    records = [_record(1, 7, date(2024, 1, 1), 1000), _record(2, 8, date(2024, 1, 1), 500)]
    payments = [
        _payment(1, 7, date(2024, 1, 2), 600),
        _payment(2, 7, date(2024, 1, 3), 100, PaymentMethod.discount),
        _payment(3, 8, date(2024, 1, 2), 700),
    ]

    owes = finance.patient_balance(7, records, payments)
    assert owes["total_charges"] == 1000
    assert owes["total_paid"] == 700
    assert owes["outstanding_balance"] == 300
    assert owes["balance_state"] == "owes"

    overpaid = finance.patient_balance(8, records, payments)
    assert overpaid["outstanding_balance"] == -200
    assert overpaid["balance_state"] == "overpaid"

    nobody = finance.patient_balance(9, records, payments)
    assert nobody["outstanding_balance"] == 0
    assert nobody["balance_state"] == "paid_in_full"

    assert finance.outstanding_total(records, payments) == 300


@pytest.mark.parametrize(
    "total, pct, doctor",
    [(1000, "0.4", 400), (333, "0.5", 167), (1, "0.5", 1), (999, "0.3333", 333), (0, "0.6", 0)],
)
def test_split_treatment_cost_always_adds_up(total, pct, doctor):
    doctor_share, clinic_share = finance.split_treatment_cost(total, Decimal(pct))
    assert doctor_share == doctor
    assert doctor_share + clinic_share == total


def test_doctor_daily_performance_percentages():
    dentists = [DentistView(id=1, name="Dr Amal", color="#f00"), DentistView(id=2, name="Dr Badr")]
    day = date(2024, 5, 6)
    records = [
        _record(1, 1, day, 1000, doctor=300, dentist_id=1),
        _record(2, 2, day, 1000, doctor=100, dentist_id=2),
        _record(3, 3, date(2024, 5, 5), 1000, doctor=900, dentist_id=2),
        _record(4, 3, day, 1000, doctor=500, dentist_id=99),
    ]
    rows = finance.daily_doctor_performance(day, records, dentists, UTC)

    assert [row["name"] for row in rows] == ["Dr Amal", "Dr Badr"]
    assert rows[0]["earnings"] == 300
    assert rows[0]["percentage"] == 75.0
    assert rows[1]["percentage"] == 25.0
    assert finance.daily_doctor_performance(date(2020, 1, 1), records, dentists, UTC) == []
    assert finance.doctor_earnings(2, records) == 1000


def test_percentage_of_zero_total_is_zero():
    assert finance.percentage_of(10, 0) == 0.0


def test_breakdowns_use_unknown_label_for_missing_definitions():
    definitions = [
        TreatmentDefinitionView(
            id=1,
            name="Scale and polish",
            base_price_pence=500,
            doctor_percentage=Decimal("0.4"),
            clinic_percentage=Decimal("0.6"),
        )
    ]
    records = [
        _record(1, 1, date(2024, 1, 2), 500, definition_id=1),
        _record(2, 1, date(2024, 1, 3), 800, definition_id=42),
        _record(3, 2, date(2024, 1, 4), 500, definition_id=1),
    ]
    income = finance.income_by_treatment(records, definitions)
    assert income == [
        {"label": "Scale and polish", "value": 1000},
        {"label": finance.UNKNOWN_TREATMENT, "value": 800},
    ]

    performance = finance.treatment_performance(records, definitions)
    assert performance["total_treatments"] == 3
    assert performance["total_revenue"] == 1800
    assert performance["most_profitable"] == {"label": "Scale and polish", "value": 1000}
    assert performance["top_by_count"][0] == {"label": "Scale and polish", "value": 2}


def test_expenses_by_category_in_range():
    expenses = [
        _expense(1, date(2024, 1, 2), 100, ExpenseCategory.rent),
        _expense(2, date(2024, 1, 3), 250, ExpenseCategory.supplies),
        _expense(3, date(2024, 1, 4), 50, ExpenseCategory.rent),
        _expense(4, date(2024, 2, 1), 999, ExpenseCategory.rent),
    ]
    rng = finance.date_range("2024-01-01", "2024-01-31", UTC)
    assert finance.expenses_by_category(expenses, rng) == [
        {"label": "SUPPLIES", "value": 250},
        {"label": "RENT", "value": 150},
    ]


@pytest.mark.parametrize(
    "dob, expected_band",
    [
        (date(2006, 6, 15), "0-18"),
        (date(2005, 6, 15), "19-35"),
        (date(2005, 6, 16), "0-18"),
        (date(1989, 6, 15), "19-35"),
        (date(1988, 6, 15), "36-55"),
        (date(1968, 6, 15), "56+"),
    ],
)
def test_age_bands_are_birthday_aware(dob, expected_band):
    today = date(2024, 6, 15)
    assert finance.age_band(finance.age_in_years(dob, today)) == expected_band


def test_age_gender_distribution_counts_visited_patients():
    today = date(2024, 6, 15)
    patients = [
        PatientView(id=1, name="A", gender=Gender.female, dob=date(2006, 6, 15), last_visit=date(2024, 6, 1)),
        PatientView(id=2, name="B", gender=Gender.male, dob=date(2005, 6, 15), last_visit=date(2024, 6, 2)),
        PatientView(id=3, name="C", gender=Gender.male, dob=None, last_visit=date(2024, 6, 3)),
        PatientView(id=4, name="D", gender=Gender.female, dob=date(1950, 1, 1), last_visit=date(2023, 1, 1)),
    ]
    rng = finance.date_range("2024-06-01", "2024-06-30", UTC)
    stats = finance.age_gender_distribution(patients, rng, today)

    assert stats["total_patients"] == 3
    assert {"label": "MALE", "value": 2} in stats["gender"]
    assert {"label": "FEMALE", "value": 1} in stats["gender"]
    assert {"label": "0-18", "value": 1} in stats["age"]
    assert {"label": "19-35", "value": 1} in stats["age"]
    assert {"label": "56+", "value": 0} in stats["age"]


def test_pending_and_overdue_charges():
    records = [
        _record(1, 1, date(2024, 1, 1), 1000),
        _record(2, 2, date(2024, 3, 1), 400),
        _record(3, 3, date(2024, 4, 1), 300),
    ]
    payments = [_payment(1, 1, date(2024, 1, 15), 200), _payment(2, 2, date(2024, 3, 2), 400)]

    assert finance.pending_payments(date(2024, 3, 1), records, payments) == 1200
    assert finance.pending_payments(date(2023, 12, 31), records, payments) == 0
    assert finance.overdue_charges(date(2024, 4, 5), records, payments) == 1000


def test_supplier_invoice_balance_and_status():
    invoice = SupplierInvoiceView(
        id=1,
        supplier_id=1,
        invoice_date=date(2024, 1, 1),
        amount_pence=1000,
        payments=(SupplierInvoicePaymentView(expense_id=1, amount_pence=600, date=date(2024, 1, 5)),),
    )
    assert finance.supplier_invoice_balance(invoice) == {
        "total_billed": 1000,
        "total_paid": 600,
        "outstanding_balance": 400,
    }
    assert finance.derive_invoice_status(invoice).value == "PARTIALLY_PAID"


def test_monthly_revenue_buckets_exclude_discounts():
    payments = [
        _payment(1, 1, date(2024, 4, 10), 500),
        _payment(2, 1, date(2024, 6, 1), 300),
        _payment(3, 1, date(2024, 6, 2), 50, PaymentMethod.discount),
        _payment(4, 1, date(2023, 1, 1), 999),
    ]
    rows = finance.monthly_revenue(payments, 3, date(2024, 6, 15))
    assert rows == [
        {"label": "2024-04", "value": 500},
        {"label": "2024-05", "value": 0},
        {"label": "2024-06", "value": 300},
    ]


def test_appointment_overview_completion_rate():
    def appt(appt_id, status, dentist_id):
        start = datetime(2024, 2, appt_id, 9, 0, tzinfo=UTC)
        return AppointmentView(
            id=appt_id,
            patient_id=1,
            dentist_id=dentist_id,
            start_time=start,
            end_time=start.replace(hour=10),
            status=status,
        )

    appointments = [
        appt(1, AppointmentStatus.completed, 1),
        appt(2, AppointmentStatus.completed, 1),
        appt(3, AppointmentStatus.cancelled, 2),
        appt(4, AppointmentStatus.scheduled, None),
    ]
    overview = finance.appointment_overview(appointments, [DentistView(id=1, name="Dr Amal")])
    assert overview["total_appointments"] == 4
    assert overview["completed"] == 2
    assert overview["cancelled"] == 1
    assert overview["completion_rate"] == 50.0
    assert {"label": finance.UNKNOWN_DENTIST, "value": 2} in overview["by_dentist"]
    assert finance.appointment_overview([], [])["completion_rate"] == 0.0


def test_new_patients_counted_by_first_treatment():
    patients = [PatientView(id=1, name="A", gender=Gender.other), PatientView(id=2, name="B", gender=Gender.other)]
    records = [
        _record(1, 1, date(2024, 1, 10), 100),
        _record(2, 2, date(2023, 12, 1), 100),
        _record(3, 2, date(2024, 1, 11), 100),
    ]
    rng = finance.date_range("2024-01-01", "2024-01-31", UTC)
    assert finance.new_patients_in_period(patients, records, rng) == 1


def test_aggregations_are_repeatable():
    records = (_record(1, 1, date(2024, 1, 5), 200, doctor=50),)
    expenses = (_expense(1, date(2024, 1, 6), 20),)
    first = finance.period_rollup("2024-01-01", "2024-01-31", records, expenses, (), tz=UTC)
    second = finance.period_rollup("2024-01-01", "2024-01-31", records, expenses, (), tz=UTC)
    assert first == second
