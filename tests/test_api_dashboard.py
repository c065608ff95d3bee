"""
tests/test_api_dashboard.py -- Integration tests for /api/dashboard/* routes.

Each dashboard is reachable by exactly one role; the others get 403, and
anonymous callers get 401. Data shapes are checked against what each role
is supposed to see (no password hashes anywhere).
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import SUPER_ADMIN_EMAIL, auth_headers, register_institute, register_student


@pytest.fixture(scope="module")
def tenant(api_client: tuple[TestClient, str]) -> dict[str, str]:
    """One institute with one student, registered through the API."""
    client, _ = api_client
    owner = register_institute(client, "dash-owner@example.com", "Dashboard Academy")
    institute = client.get("/api/institutes/me", headers=auth_headers(owner["accessToken"])).json()["data"]
    student = register_student(client, "dash-student@example.com", institute["id"])
    return {
        "owner_token": owner["accessToken"],
        "student_token": student["accessToken"],
        "student_id": student["user"]["id"],
        "institute_id": institute["id"],
    }


class TestSuperAdminDashboard:
    def test_lists_everything(self, api_client: tuple[TestClient, str], tenant: dict[str, str]) -> None:
        client, token = api_client
        resp = client.get("/api/dashboard/super-admin", headers=auth_headers(token))
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        assert data["counts"] == {"users": 3, "institutes": 1, "students": 1}
        assert {u["email"] for u in data["users"]} >= {SUPER_ADMIN_EMAIL, "dash-owner@example.com"}
        assert data["institutes"][0]["owner"]["email"] == "dash-owner@example.com"
        student = data["students"][0]
        assert student["user"]["email"] == "dash-student@example.com"
        assert student["institute"]["name"] == "Dashboard Academy"
        assert "password" not in resp.text

    def test_other_roles_forbidden(self, api_client: tuple[TestClient, str], tenant: dict[str, str]) -> None:
        client, _ = api_client
        for key in ("owner_token", "student_token"):
            resp = client.get("/api/dashboard/super-admin", headers=auth_headers(tenant[key]))
            assert resp.status_code == 403, f"{key} should be forbidden, got {resp.status_code}"


class TestInstituteDashboard:
    def test_owner_sees_own_students(self, api_client: tuple[TestClient, str], tenant: dict[str, str]) -> None:
        client, _ = api_client
        resp = client.get("/api/dashboard/institute", headers=auth_headers(tenant["owner_token"]))
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        assert data["institute"]["id"] == tenant["institute_id"]
        assert data["counts"] == {"students": 1}
        assert data["students"][0]["id"] == tenant["student_id"]
        assert data["students"][0]["fullName"] == "Student Name"

    def test_owner_without_institute_404(self, api_client: tuple[TestClient, str]) -> None:
        client, _ = api_client
        resp = client.post(
            "/api/auth/register",
            json={"email": "dash-bare@example.com", "password": "ownerpass1", "role": "INSTITUTE"},
        )
        token = resp.json()["data"]["accessToken"]
        assert client.get("/api/dashboard/institute", headers=auth_headers(token)).status_code == 404

    def test_student_forbidden(self, api_client: tuple[TestClient, str], tenant: dict[str, str]) -> None:
        client, _ = api_client
        resp = client.get("/api/dashboard/institute", headers=auth_headers(tenant["student_token"]))
        assert resp.status_code == 403


class TestStudentDashboard:
    def test_student_sees_profile_and_institute(
        self, api_client: tuple[TestClient, str], tenant: dict[str, str]
    ) -> None:
        client, _ = api_client
        resp = client.get("/api/dashboard/student", headers=auth_headers(tenant["student_token"]))
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        assert data["id"] == tenant["student_id"]
        assert data["user"]["email"] == "dash-student@example.com"
        assert data["institute"]["name"] == "Dashboard Academy"

    def test_owner_forbidden(self, api_client: tuple[TestClient, str], tenant: dict[str, str]) -> None:
        client, _ = api_client
        resp = client.get("/api/dashboard/student", headers=auth_headers(tenant["owner_token"]))
        assert resp.status_code == 403

    def test_anonymous_401(self, api_client: tuple[TestClient, str]) -> None:
        client, _ = api_client
        resp = client.get("/api/dashboard/student")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"
