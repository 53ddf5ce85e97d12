# registry_core/iam/tests/test_user_management.py
import pytest

from registry_core.audit.models import ActivityLog
from registry_core.conftest import make_user

pytestmark = pytest.mark.django_db


def test_assign_role_replaces_previous_role(api_client):
    staff = make_user("staff@example.com", "nurse")

    res = api_client.post(f"/api/v1/users/{staff.id}/role/", {"role": "doctor"}, format="json")
    assert res.status_code == 200, res.data
    assert res.data["role"] == "doctor"

    names = set(staff.groups.values_list("name", flat=True))
    assert names == {"doctor"}
    assert ActivityLog.objects.filter(action="role_assigned", entity_id=str(staff.id)).exists()


def test_assign_unknown_role_is_400(api_client):
    staff = make_user("staff2@example.com")
    res = api_client.post(f"/api/v1/users/{staff.id}/role/", {"role": "janitor"}, format="json")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "validation_error"


def test_list_filters_users_without_role(api_client):
    make_user("norole@example.com")
    make_user("hasrole@example.com", "nurse")

    res = api_client.get("/api/v1/users/?role=none")
    assert res.status_code == 200
    assert res.data["count"] == 1
    assert res.data["results"][0]["role"] is None


def test_admin_cannot_deactivate_or_delete_self(api_client, user):
    res = api_client.post(f"/api/v1/users/{user.id}/active/", {"is_active": False}, format="json")
    assert res.status_code == 400

    res = api_client.delete(f"/api/v1/users/{user.id}/")
    assert res.status_code == 400


def test_deactivate_and_delete_user(api_client):
    staff = make_user("leaver@example.com", "pharmacist")

    res = api_client.post(f"/api/v1/users/{staff.id}/active/", {"is_active": False}, format="json")
    assert res.status_code == 200
    assert res.data["is_active"] is False

    res = api_client.delete(f"/api/v1/users/{staff.id}/")
    assert res.status_code == 204
    assert api_client.get(f"/api/v1/users/{staff.id}/").status_code == 404


def test_user_management_is_admin_only(client_for):
    res = client_for("doctor").get("/api/v1/users/")
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "permission_denied"
