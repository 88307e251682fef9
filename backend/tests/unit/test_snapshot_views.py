from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from app.models.patient import Gender
from app.services.snapshot import (
    AppointmentView,
    PatientView,
    PaymentView,
    SnapshotValidationError,
    to_records,
)


def test_patient_view_normalizes_the_chart():
    row = SimpleNamespace(id=1, name="Sara", gender=Gender.female, dental_chart={"UR1": {"status": "crown"}})
    view = PatientView.model_validate(row)
    assert len(view.dental_chart) == 32
    assert view.dental_chart["UR1"]["status"] == "CROWN"


def test_naive_appointment_times_are_read_as_utc():
    row = SimpleNamespace(
        id=1,
        patient_id=1,
        start_time=datetime(2024, 1, 1, 9, 0),
        end_time=datetime(2024, 1, 1, 9, 30),
    )
    view = AppointmentView.model_validate(row)
    assert view.start_time.tzinfo == timezone.utc


def test_malformed_rows_fail_loudly():
    good = SimpleNamespace(id=1, patient_id=1, date=date(2024, 1, 1), amount_pence=100, method="CASH", notes=None)
    bad = SimpleNamespace(id=2, patient_id=1, date=date(2024, 1, 1), amount_pence=100, method="BITCOIN", notes=None)

    assert len(to_records(PaymentView, "payment", [good])) == 1
    with pytest.raises(SnapshotValidationError) as excinfo:
        to_records(PaymentView, "payment", [good, bad])
    assert excinfo.value.entity_type == "payment"
    assert excinfo.value.entity_id == 2
    assert excinfo.value.errors


def test_views_are_frozen():
    view = PatientView(id=1, name="Sara", gender=Gender.female)
    with pytest.raises(ValidationError):
        view.name = "Other"
