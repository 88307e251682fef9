import io
import zipfile

import pytest

PERIOD = {"start": "2021-07-01", "end": "2021-07-31"}


@pytest.fixture(scope="module")
def july_2021(create):
    dentist = create("/dentists", {"name": "Dr. Samy Reda", "specialty": "Prosthodontics", "color": "#3366ff"})
    patient = create("/patients", {"name": "Laila Hosny", "gender": "FEMALE", "dob": "1990-05-20"})
    definition = create(
        "/treatment-definitions",
        {
            "name": "Zirconia crown 2021",
            "base_price_pence": 10000,
            "doctor_percentage": "0.3",
            "clinic_percentage": "0.7",
        },
    )
    record = create(
        "/treatment-records",
        {
            "patient_id": patient["id"],
            "dentist_id": dentist["id"],
            "treatment_definition_id": definition["id"],
            "treatment_date": "2021-07-10",
        },
    )
    create(
        "/payments",
        {"patient_id": patient["id"], "date": "2021-07-10", "amount_pence": 4000, "method": "CARD"},
    )
    create(
        "/expenses",
        {"date": "2021-07-15", "description": "July rent", "amount_pence": 2000, "category": "RENT"},
    )
    return {"dentist": dentist, "patient": patient, "definition": definition, "record": record}


def test_financial_summary_json(api_client, auth_headers, july_2021):
    response = api_client.get("/reports/financial-summary", params=PERIOD, headers=auth_headers)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["start"] == "2021-07-01"
    assert body["end"] == "2021-07-31"
    assert body["basis"] == "treatments"
    assert body["total_income"] == 10000
    assert body["total_expenses"] == 2000
    assert body["net_profit"] == 8000
    assert body["doctor_shares"] == 3000
    assert body["clinic_profit"] == 5000
    assert body["expenses_by_category"] == [{"label": "RENT", "value": 2000}]
    assert body["income_by_treatment"] == [{"label": "Zirconia crown 2021", "value": 10000}]

    by_payments = api_client.get(
        "/reports/financial-summary", params={**PERIOD, "basis": "payments"}, headers=auth_headers
    ).json()
    assert by_payments["total_income"] == 4000
    assert by_payments["net_profit"] == 2000


def test_financial_summary_exports(api_client, auth_headers, july_2021):
    response = api_client.get(
        "/reports/financial-summary", params={**PERIOD, "format": "csv"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert 'filename="financial_summary_2021-07-01_2021-07-31.zip"' in response.headers["content-disposition"]
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert sorted(archive.namelist()) == [
            "expenses_by_category.csv",
            "income_by_treatment.csv",
            "totals.csv",
        ]
        totals = archive.read("totals.csv").decode()
    assert "clinic_profit,5000" in totals

    response = api_client.get(
        "/reports/financial-summary", params={**PERIOD, "format": "pdf"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")

    response = api_client.get(
        "/reports/financial-summary", params={**PERIOD, "format": "xml"}, headers=auth_headers
    )
    assert response.status_code == 422


def test_report_period_must_be_ordered(api_client, auth_headers):
    response = api_client.get(
        "/reports/financial-summary",
        params={"start": "2021-08-01", "end": "2021-07-01"},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_dentist_reports(api_client, auth_headers, july_2021):
    dentist_id = july_2021["dentist"]["id"]
    response = api_client.get(f"/reports/doctors/{dentist_id}", headers=auth_headers)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["name"] == "Dr. Samy Reda"
    assert body["treatment_count"] == 1
    assert body["patients_treated"] == 1
    assert body["total_revenue"] == 10000
    assert body["total_earnings"] == 3000
    assert body["clinic_share"] == 7000
    assert body["last_treatment_date"] == "2021-07-10"

    listed = api_client.get("/reports/doctors", params=PERIOD, headers=auth_headers).json()
    assert dentist_id in {row["dentist_id"] for row in listed}

    assert api_client.get("/reports/doctors/999999", headers=auth_headers).status_code == 404


def test_patient_balances_report(api_client, auth_headers, july_2021):
    rows = api_client.get("/reports/patient-balances", headers=auth_headers).json()
    row = next(r for r in rows if r["patient_id"] == july_2021["patient"]["id"])
    assert row["patient_name"] == "Laila Hosny"
    assert row["total_charges"] == 10000
    assert row["total_paid"] == 4000
    assert row["outstanding_balance"] == 6000
    balances = [r["outstanding_balance"] for r in rows]
    assert balances == sorted(balances, reverse=True)


def test_treatment_performance_and_monthly_revenue(api_client, auth_headers, july_2021):
    body = api_client.get("/reports/treatment-performance", params=PERIOD, headers=auth_headers).json()
    assert body["total_treatments"] == 1
    assert body["total_revenue"] == 10000
    assert body["top_by_count"] == [{"label": "Zirconia crown 2021", "value": 1}]

    months = api_client.get("/reports/monthly-revenue", params={"months": 3}, headers=auth_headers)
    assert months.status_code == 200
    assert len(months.json()) == 3

    assert api_client.get("/reports/monthly-revenue", params={"months": 0}, headers=auth_headers).status_code == 422


def test_dashboard_and_daily(api_client, auth_headers):
    dashboard = api_client.get("/reports/dashboard", headers=auth_headers)
    assert dashboard.status_code == 200, dashboard.text
    body = dashboard.json()
    for key in (
        "todays_appointments",
        "month_revenue",
        "outstanding_balance",
        "upcoming_week",
        "pending_lab_cases",
        "low_stock_items",
        "doctor_performance",
        "overdue_supplier_invoices",
    ):
        assert key in body
    assert len(body["upcoming_week"]) == 7

    daily = api_client.get("/reports/daily", params={"date": "2021-07-10"}, headers=auth_headers)
    assert daily.status_code == 200
    assert daily.json()["date"] == "2021-07-10"


def test_inventory_patients_and_appointment_reports(api_client, auth_headers, create):
    item = create(
        "/inventory",
        {"name": "Impression tray 2021", "current_stock": 1, "unit_cost_pence": 150, "min_stock_level": 5},
    )
    inventory = api_client.get("/reports/inventory", headers=auth_headers).json()
    assert item["id"] in {row["id"] for row in inventory["low_stock"]}
    assert inventory["total_items"] >= 1

    stats = api_client.get("/reports/patients", headers=auth_headers).json()
    assert stats["total_patients"] >= 1
    assert [row["label"] for row in stats["age"]] == ["0-18", "19-35", "36-55", "56+"]

    overview = api_client.get("/reports/appointments", params=PERIOD, headers=auth_headers)
    assert overview.status_code == 200
    assert set(overview.json()) >= {"total_appointments", "completion_rate", "by_status"}


def test_supplier_report(api_client, auth_headers, create):
    lab = create("/suppliers", {"name": "Report Lab 2021", "type": "DENTAL_LAB"})
    rows = api_client.get("/reports/suppliers", headers=auth_headers).json()
    row = next(r for r in rows if r["supplier_id"] == lab["id"])
    assert row["type"] == "DENTAL_LAB"
    assert row["outstanding_balance"] == 0
    assert row["lab_cases"] == {"total": 0, "pending": 0, "total_cost": 0}


@pytest.mark.parametrize("bounds", [{"start": "2021-07-01"}, {"end": "2021-07-31"}])
def test_dentist_reports_need_both_bounds(api_client, auth_headers, july_2021, bounds):
    dentist_id = july_2021["dentist"]["id"]
    for path in ("/reports/doctors", f"/reports/doctors/{dentist_id}"):
        response = api_client.get(path, params=bounds, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "start and end must be given together"

    response = api_client.get(f"/reports/doctors/{dentist_id}", params=PERIOD, headers=auth_headers)
    assert response.json()["treatment_count"] == 1
