def test_health(api_client):
    response = api_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_login_returns_bearer_token(auth_headers):
    assert auth_headers["Authorization"].startswith("Bearer ")


def test_login_rejects_wrong_password(api_client, admin_credentials):
    email, _password = admin_credentials
    response = api_client.post("/auth/login", json={"email": email, "password": "wrong-password"})
    assert response.status_code == 401


def test_requests_without_token_are_rejected(api_client):
    assert api_client.get("/patients").status_code == 401
    response = api_client.get("/patients", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_mutations_are_audited(api_client, auth_headers, create):
    patient = create("/patients", {"name": "Audit Trail", "gender": "OTHER"})
    response = api_client.get(
        "/audit",
        params={"entity_type": "patient", "entity_id": str(patient["id"])},
        headers=auth_headers,
    )
    assert response.status_code == 200, response.text
    actions = [entry["action"] for entry in response.json()]
    assert actions == ["patient.create"]


def test_profile_sets_clinic_name(api_client, auth_headers, admin_credentials):
    email, _password = admin_credentials
    response = api_client.get("/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == email

    response = api_client.patch("/auth/me", json={"clinic_name": " Smile Clinic "}, headers=auth_headers)
    assert response.status_code == 200, response.text
    assert response.json()["clinic_name"] == "Smile Clinic"

    entries = api_client.get("/audit", params={"entity_type": "user"}, headers=auth_headers).json()
    profile = [e for e in entries if e["action"] == "user.profile_updated"]
    assert profile[0]["after_json"] == {"clinic_name": "Smile Clinic"}
