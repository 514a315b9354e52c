"""
Tests for the leave approval endpoints
"""
import pytest

from hrdash.tests.fakes import make_leave


@pytest.fixture(autouse=True)
def leaves(fake_api):
    fake_api.leaves = {
        31: make_leave(LeaveApplicationID=31, FromDate="2025-03-15", ToDate="2025-03-16"),
        32: make_leave(LeaveApplicationID=32, ApplicationStatus="Pending", FromDate="2025-03-20", ToDate="2025-03-20"),
        33: make_leave(LeaveApplicationID=33, FromDate="2025-03-10T12:00:00Z", ToDate="2025-03-10T18:00:00Z"),
    }
    return fake_api.leaves


def test_permissions_for_admin(client, admin_headers):
    response = client.get("/api/v1/leaves/31/permissions", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["display_status"] == "Upcoming"
    assert data["leave"]["leave_application_id"] == 31
    permissions = data["permissions"]
    assert permissions["modify"]["allowed"] is True
    assert permissions["revoke"]["allowed"] is True
    assert permissions["approve"]["allowed"] is False
    assert permissions["modify"]["message"].endswith("hours remaining to modify/revoke")


def test_permissions_inside_cutoff(client, manager_headers):
    data = client.get("/api/v1/leaves/33/permissions", headers=manager_headers).json()

    assert data["permissions"]["modify"]["allowed"] is False
    assert data["permissions"]["modify"]["reason"] == "WithinCutoffWindow"
    assert data["permissions"]["modify"]["hours_remaining"] == 8.5
    assert data["permissions"]["revoke"]["reason"] == "PermissionDenied"


def test_employee_sees_everything_denied(client, employee_headers):
    data = client.get("/api/v1/leaves/31/permissions", headers=employee_headers).json()
    assert not any(p["allowed"] for p in data["permissions"].values())


def test_manager_approves_pending_leave(client, manager_headers, fake_api):
    response = client.post("/api/v1/leaves/32/approve", json={"remarks": "ok"}, headers=manager_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["action"] == "approve"
    assert data["leave"]["application_status"] == "Approved"
    assert data["display_status"] == "Upcoming"
    assert fake_api.called("approve_leave") == 1


def test_manager_rejects_pending_leave(client, manager_headers):
    response = client.post("/api/v1/leaves/32/reject", json={}, headers=manager_headers)
    assert response.status_code == 200
    assert response.json()["display_status"] == "Rejected"


def test_employee_cannot_approve(client, employee_headers, fake_api):
    response = client.post("/api/v1/leaves/32/approve", json={}, headers=employee_headers)
    assert response.status_code == 403
    assert fake_api.called("get_leave") == 0


def test_cannot_approve_twice(client, admin_headers):
    response = client.post("/api/v1/leaves/31/approve", json={}, headers=admin_headers)
    assert response.status_code == 403
    assert response.json()["kind"] == "PermissionDenied"


def test_modify(client, manager_headers):
    response = client.post(
        "/api/v1/leaves/31/modify",
        json={"fromDate": "2025-03-17", "toDate": "2025-03-18", "reason": "Client visit"},
        headers=manager_headers,
    )
    assert response.status_code == 200
    assert response.json()["leave"]["from_date"] == "2025-03-17"


def test_modify_inside_cutoff(client, admin_headers, fake_api):
    response = client.post(
        "/api/v1/leaves/33/modify",
        json={"fromDate": "2025-03-11", "toDate": "2025-03-11", "reason": "Moved"},
        headers=admin_headers,
    )
    assert response.status_code == 403
    data = response.json()
    assert data["kind"] == "WithinCutoffWindow"
    assert data["detail"] == "Cannot modify/revoke (less than 12 hours remaining)"
    assert data["hours_remaining"] == 8.5
    assert fake_api.called("modify_leave") == 0


def test_modify_with_past_start(client, admin_headers):
    response = client.post(
        "/api/v1/leaves/31/modify",
        json={"fromDate": "2025-03-01", "toDate": "2025-03-02", "reason": "Moved"},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "From date cannot be in the past"


def test_revoke_is_admin_only(client, manager_headers, admin_headers):
    denied = client.post("/api/v1/leaves/31/revoke", json={"reason": "x"}, headers=manager_headers)
    assert denied.status_code == 403

    response = client.post("/api/v1/leaves/31/revoke", json={"reason": "Trip cancelled"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["display_status"] == "Revoked"

    again = client.post("/api/v1/leaves/31/modify", json={
        "fromDate": "2025-03-17", "toDate": "2025-03-18", "reason": "x"
    }, headers=admin_headers)
    assert again.status_code == 403


def test_unknown_leave(client, admin_headers):
    response = client.get("/api/v1/leaves/404/permissions", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["kind"] == "ApiFailure"
