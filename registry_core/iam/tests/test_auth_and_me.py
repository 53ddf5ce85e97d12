# registry_core/iam/tests/test_auth_and_me.py
import pytest
from rest_framework.test import APIClient

from registry_core.audit.models import ActivityLog
from registry_core.conftest import make_user

pytestmark = pytest.mark.django_db


def test_me_requires_auth():
    c = APIClient()
    res = c.get("/api/v1/me/")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "not_authenticated"


def test_signup_creates_user_awaiting_role():
    c = APIClient()
    res = c.post(
        "/api/v1/auth/signup/",
        {"email": "New.Nurse@Example.com", "password": "secret123", "full_name": "New Nurse"},
        format="json",
    )
    assert res.status_code == 201, res.data

    login = c.post(
        "/api/v1/auth/login/",
        {"email": "new.nurse@example.com", "password": "secret123"},
        format="json",
    )
    assert login.status_code == 200, login.data

    me = c.get("/api/v1/me/")
    assert me.status_code == 200
    body = me.json()
    assert body["role"] is None
    assert body["awaiting_role"] is True
    assert body["profile"]["full_name"] == "New Nurse"


def test_signup_duplicate_email_returns_400():
    c = APIClient()
    payload = {"email": "dup@example.com", "password": "secret123", "full_name": "Dup User"}
    assert c.post("/api/v1/auth/signup/", payload, format="json").status_code == 201

    res = c.post("/api/v1/auth/signup/", payload, format="json")
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "An account with this email already exists."


def test_login_sets_cookies_and_logs_activity(settings):
    user = make_user("doc@example.com", "doctor")
    res = APIClient().post(
        "/api/auth/login/",
        {"username": "doc@example.com", "password": "testpass"},
        format="json",
    )
    assert res.status_code == 200

    assert settings.SIMPLE_JWT["AUTH_COOKIE"] in res.cookies
    assert settings.SIMPLE_JWT["AUTH_COOKIE_REFRESH"] in res.cookies
    assert ActivityLog.objects.filter(user=user, action="login").exists()


def test_cookie_token_authenticates_requests():
    make_user("cookie@example.com", "nurse")
    c = APIClient()
    login = c.post("/api/v1/auth/login/", {"email": "cookie@example.com", "password": "testpass"}, format="json")
    assert login.status_code == 200

    # APIClient keeps the response cookies for subsequent requests
    me = c.get("/api/v1/me/")
    assert me.status_code == 200
    assert me.json()["role"] == "nurse"


def test_bearer_header_authenticates_requests():
    make_user("bearer@example.com", "pharmacist")
    login = APIClient().post(
        "/api/v1/auth/login/", {"email": "bearer@example.com", "password": "testpass"}, format="json"
    )
    access = login.data["access"]

    c = APIClient()
    me = c.get("/api/v1/me/", HTTP_AUTHORIZATION=f"Bearer {access}")
    assert me.status_code == 200
    assert me.json()["role"] == "pharmacist"


def test_bad_password_is_rejected():
    make_user("x@example.com", "nurse")
    res = APIClient().post("/api/v1/auth/login/", {"email": "x@example.com", "password": "nope"}, format="json")
    assert res.status_code == 401


def test_me_patch_updates_profile(client_for):
    c = client_for("doctor")
    res = c.patch("/api/v1/me/", {"full_name": "Dr. Who", "department": "Cardiology"}, format="json")
    assert res.status_code == 200, res.data
    assert res.json()["profile"]["full_name"] == "Dr. Who"
    assert res.json()["profile"]["department"] == "Cardiology"


def test_roleless_user_is_blocked_from_clinical_routes():
    pending = make_user("pending@example.com")
    c = APIClient()
    c.force_authenticate(user=pending)

    res = c.get("/api/v1/patients/")
    assert res.status_code == 403
    assert res.json()["error"]["message"] == "Your account is awaiting role assignment."

    # inbox stays reachable
    assert c.get("/api/v1/notifications/").status_code == 200
