def test_new_patient_gets_a_healthy_chart(api_client, auth_headers, create):
    patient = create(
        "/patients",
        {"name": "Layla Hassan", "gender": "FEMALE", "phone": "01001234567", "dob": "1990-04-02"},
    )
    assert len(patient["dental_chart"]) == 32

    response = api_client.get(f"/patients/{patient['id']}/chart", headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["HEALTHY"] == 32
    assert body["teeth"]["UR1"] == {"status": "HEALTHY", "notes": ""}


def test_update_single_tooth(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Karim Adel", "gender": "MALE"})
    response = api_client.put(
        f"/patients/{patient['id']}/chart/LL6",
        json={"status": "ROOT_CANAL", "notes": "completed in two visits"},
        headers=auth_headers,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["teeth"]["LL6"] == {"status": "ROOT_CANAL", "notes": "completed in two visits"}
    assert body["summary"]["ROOT_CANAL"] == 1
    assert body["summary"]["HEALTHY"] == 31


def test_unknown_tooth_is_rejected(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Nour Sami", "gender": "FEMALE"})
    response = api_client.put(
        f"/patients/{patient['id']}/chart/UR9", json={"status": "CROWN"}, headers=auth_headers
    )
    assert response.status_code == 400
    assert "UR9" in response.json()["detail"]


def test_replace_chart_keeps_all_32_teeth(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Hana Fathy", "gender": "FEMALE"})
    response = api_client.put(
        f"/patients/{patient['id']}/chart",
        json={"UR1": {"status": "MISSING"}, "UR2": {"status": "IMPLANT", "notes": "2019"}},
        headers=auth_headers,
    )
    assert response.status_code == 200, response.text
    teeth = response.json()["teeth"]
    assert len(teeth) == 32
    assert teeth["UR1"]["status"] == "MISSING"
    assert teeth["UR3"]["status"] == "HEALTHY"


def test_patch_and_search_patients(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Youssef Zaki", "gender": "MALE"})
    response = api_client.patch(
        f"/patients/{patient['id']}", json={"allergies": "Penicillin"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["allergies"] == "Penicillin"
    assert response.json()["name"] == "Youssef Zaki"

    found = api_client.get("/patients", params={"q": "youssef"}, headers=auth_headers).json()
    assert [row["id"] for row in found] == [patient["id"]]


def test_missing_patient_is_404(api_client, auth_headers):
    response = api_client.get("/patients/999999", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Patient not found"


def test_statement_pdf_download(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Salma Nabil", "gender": "FEMALE"})
    response = api_client.get(f"/patients/{patient['id']}/statement.pdf", headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert f"statement_patient_{patient['id']}.pdf" in response.headers["content-disposition"]
