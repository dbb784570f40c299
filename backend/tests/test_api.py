"""
End-to-end API tests: auth flows, role gates and leave request lifecycle.
"""

import pytest


pytestmark = pytest.mark.unit


def _sign_in(client, email, password="demo123"):
    res = client.post("/api/auth/sign-in", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()


def _create_primary_team(client):
    primary = client.app.state.primary
    manager = primary.create_user(
        "max@corp.test", "pw-max", first_name="Max", last_name="Manager", role="manager"
    ).user
    primary.create_user(
        "rita@corp.test", "pw-rita", first_name="Rita", last_name="Report", manager_id=manager.id
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_starts_anonymous(client):
    body = client.get("/api/auth/session").json()

    assert body["authenticated"] is False
    assert body["profile"] is None
    assert body["loading"] is False


def test_protected_routes_need_a_session(client):
    assert client.get("/api/dashboard").status_code == 401
    assert client.get("/api/leave-requests").status_code == 401


def test_demo_account_sign_in_uses_fallback(client):
    body = _sign_in(client, "employee@demo.com")

    assert body["authenticated"] is True
    assert body["provider"] == "fallback"
    assert body["is_fallback_mode"] is True
    assert body["access_token"].startswith("local_token_")
    assert body["profile"]["role"] == "employee"


def test_unknown_credentials(client):
    res = client.post("/api/auth/sign-in", json={"email": "ghost@corp.test", "password": "x"})

    assert res.status_code == 401
    assert res.json()["detail"]["code"] == "invalid_credentials"


def test_sign_up_signs_in(client):
    res = client.post(
        "/api/auth/sign-up",
        json={"email": "new@corp.test", "password": "pw", "first_name": "New", "last_name": "Hire", "role": "boss"},
    )

    assert res.status_code == 201
    body = res.json()
    assert body["provider"] == "fallback"
    assert body["profile"]["email"] == "new@corp.test"
    assert body["profile"]["role"] == "employee"


def test_sign_up_duplicate(client):
    res = client.post(
        "/api/auth/sign-up",
        json={"email": "admin@demo.com", "password": "pw", "first_name": "A", "last_name": "B"},
    )

    assert res.status_code == 409
    assert res.json()["detail"]["code"] == "user_already_exists"


def test_sign_out(client):
    _sign_in(client, "manager@demo.com")

    body = client.post("/api/auth/sign-out").json()

    assert body["authenticated"] is False
    assert client.get("/api/dashboard").status_code == 401


def test_expired_fallback_session_is_anonymous(client, clock):
    _sign_in(client, "employee@demo.com")
    clock.advance(hours=24, minutes=1)

    assert client.get("/api/auth/session").json()["authenticated"] is False
    assert client.get("/api/dashboard").status_code == 401


def test_primary_sign_in(client):
    _create_primary_team(client)

    body = _sign_in(client, "max@corp.test", "pw-max")

    assert body["provider"] == "primary"
    assert body["is_fallback_mode"] is False
    assert body["profile"]["first_name"] == "Max"
    assert body["profile"]["role"] == "manager"


def test_leave_request_lifecycle(client):
    _create_primary_team(client)

    _sign_in(client, "rita@corp.test", "pw-rita")
    res = client.post(
        "/api/leave-requests",
        json={"leave_type": "vacation", "start_date": "2026-08-03", "end_date": "2026-08-07"},
    )
    assert res.status_code == 201, res.text
    request_id = res.json()["id"]
    assert res.json()["status"] == "pending"

    assert client.post(f"/api/leave-requests/{request_id}/approve").status_code == 403

    client.post("/api/auth/sign-out")
    _sign_in(client, "max@corp.test", "pw-max")

    team = client.get("/api/leave-requests", params={"status": "pending"}).json()
    assert [r["id"] for r in team] == [request_id]

    res = client.post(f"/api/leave-requests/{request_id}/approve")
    assert res.status_code == 200
    assert res.json()["status"] == "approved"

    dash = client.get("/api/dashboard").json()
    assert dash["stats"]["approved_requests"] == 1
    assert dash["recent_requests"][0]["employee_name"] == "Rita Report"

    assert client.post(f"/api/leave-requests/{request_id}/reject", json={}).status_code == 409


def test_decisions_need_reviewer_role(client):
    _sign_in(client, "employee@demo.com")
    request_id = client.post(
        "/api/leave-requests",
        json={"leave_type": "vacation", "start_date": "2026-08-10", "end_date": "2026-08-11"},
    ).json()["id"]

    approve = client.post(f"/api/leave-requests/{request_id}/approve")
    reject = client.post(f"/api/leave-requests/{request_id}/reject", json={"rejection_reason": "no"})

    assert approve.status_code == 403
    assert reject.status_code == 403
    assert approve.json()["detail"] == "Manager or Admin role required"

    _sign_in(client, "admin@demo.com")
    assert client.post(f"/api/leave-requests/{request_id}/approve").status_code == 200


def test_invalid_leave_request(client):
    _sign_in(client, "employee@demo.com")

    bad_range = client.post(
        "/api/leave-requests",
        json={"leave_type": "sick", "start_date": "2026-08-07", "end_date": "2026-08-03"},
    )
    bad_type = client.post(
        "/api/leave-requests",
        json={"leave_type": "sabbatical", "start_date": "2026-08-03", "end_date": "2026-08-03"},
    )

    assert bad_range.status_code == 400
    assert bad_type.status_code == 422


def test_cancel_own_request(client):
    _sign_in(client, "employee@demo.com")
    request_id = client.post(
        "/api/leave-requests",
        json={"leave_type": "personal", "start_date": "2026-09-01", "end_date": "2026-09-01"},
    ).json()["id"]

    res = client.post(f"/api/leave-requests/{request_id}/cancel")

    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"


def test_leave_policies(client):
    policies = {p["leave_type"]: p for p in client.get("/api/leave-policies").json()}
    assert set(policies) == {"sick", "vacation", "family_emergency", "personal", "other"}

    unknown = client.get("/api/leave-policies/sabbatical").json()
    assert unknown["annual_quota"] == 0
    assert unknown["max_consecutive_days"] == 1
    assert unknown["requires_approval"] is True


def test_holidays_admin_only(client):
    _sign_in(client, "employee@demo.com")
    payload = {"name": "Founders Day", "date": "2026-10-02"}
    assert client.post("/api/holidays", json=payload).status_code == 403

    _sign_in(client, "admin@demo.com")
    assert client.post("/api/holidays", json=payload).status_code == 201
    assert client.post("/api/holidays", json=payload).status_code == 400

    holidays = client.get("/api/holidays").json()
    assert [h["name"] for h in holidays] == ["Founders Day"]
