from datetime import date


def _definition(create, price=10000, doctor="0.4", clinic="0.6"):
    return create(
        "/treatment-definitions",
        {
            "name": f"Crown {price}",
            "base_price_pence": price,
            "doctor_percentage": doctor,
            "clinic_percentage": clinic,
        },
    )


def test_percentages_must_add_up(api_client, auth_headers):
    response = api_client.post(
        "/treatment-definitions",
        json={
            "name": "Bad split",
            "base_price_pence": 1000,
            "doctor_percentage": "0.5",
            "clinic_percentage": "0.4",
        },
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_treatment_record_splits_cost_and_updates_balance(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Rania Fouad", "gender": "FEMALE"})
    dentist = create("/dentists", {"name": "Dr Tarek", "specialty": "Prosthodontics", "color": "#3366ff"})
    definition = _definition(create)
    material = create(
        "/inventory", {"name": "Cement", "current_stock": 20, "unit_cost_pence": 250}
    )

    record = create(
        "/treatment-records",
        {
            "patient_id": patient["id"],
            "dentist_id": dentist["id"],
            "treatment_definition_id": definition["id"],
            "treatment_date": "2024-03-10",
            "inventory_items_used": [{"inventory_item_id": material["id"], "quantity": 2}],
        },
    )
    assert record["total_treatment_cost_pence"] == 10500
    assert record["doctor_share_pence"] == 4200
    assert record["clinic_share_pence"] == 6300
    assert record["inventory_items_used"] == [
        {"inventory_item_id": material["id"], "quantity": 2, "cost_pence": 500}
    ]

    refreshed = api_client.get(f"/patients/{patient['id']}", headers=auth_headers).json()
    assert refreshed["last_visit"] == "2024-03-10"

    create(
        "/payments",
        {"patient_id": patient["id"], "date": "2024-03-10", "amount_pence": 5000, "method": "CARD"},
    )
    balance = api_client.get(f"/patients/{patient['id']}/balance", headers=auth_headers).json()
    assert balance == {
        "patient_id": patient["id"],
        "total_charges": 10500,
        "total_paid": 5000,
        "outstanding_balance": 5500,
        "balance_state": "owes",
    }


def test_record_shares_must_match_total(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Ziad Emad", "gender": "MALE"})
    definition = _definition(create, price=2000, doctor="0.5", clinic="0.5")
    record = create(
        "/treatment-records",
        {
            "patient_id": patient["id"],
            "treatment_definition_id": definition["id"],
            "treatment_date": date.today().isoformat(),
        },
    )
    response = api_client.patch(
        f"/treatment-records/{record['id']}",
        json={"doctor_share_pence": 900, "clinic_share_pence": 900},
        headers=auth_headers,
    )
    assert response.status_code == 400

    response = api_client.patch(
        f"/treatment-records/{record['id']}",
        json={"doctor_share_pence": 800},
        headers=auth_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["clinic_share_pence"] == 1200


def test_unknown_references_are_rejected(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Mai Ashraf", "gender": "FEMALE"})
    response = api_client.post(
        "/treatment-records",
        json={
            "patient_id": patient["id"],
            "treatment_definition_id": 987654,
            "treatment_date": "2024-01-01",
        },
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert "treatment definition" in response.json()["detail"]

    response = api_client.post(
        "/payments",
        json={"patient_id": 987654, "date": "2024-01-01", "amount_pence": 100},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_discount_counts_towards_paid(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Adham Said", "gender": "MALE"})
    definition = _definition(create, price=3000, doctor="0.3", clinic="0.7")
    create(
        "/treatment-records",
        {"patient_id": patient["id"], "treatment_definition_id": definition["id"], "treatment_date": "2024-02-01"},
    )
    create(
        "/payments",
        {"patient_id": patient["id"], "date": "2024-02-01", "amount_pence": 2500, "method": "CASH"},
    )
    create(
        "/payments",
        {"patient_id": patient["id"], "date": "2024-02-01", "amount_pence": 500, "method": "DISCOUNT"},
    )
    balance = api_client.get(f"/patients/{patient['id']}/balance", headers=auth_headers).json()
    assert balance["outstanding_balance"] == 0
    assert balance["balance_state"] == "paid_in_full"
