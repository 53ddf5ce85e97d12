# registry_core/audit/tests/test_activity_log.py
import pytest

from registry_core.audit.models import ActivityLog

pytestmark = pytest.mark.django_db

URL = "/api/v1/audit/activity/"


def test_any_user_can_append_client_events(client_for, nurse):
    c = client_for(nurse)
    res = c.post(
        URL,
        {"action": "page_view", "page_path": "/patients", "session_duration_seconds": 42},
        format="json",
        HTTP_USER_AGENT="pytest-agent",
    )
    assert res.status_code == 201, res.data
    assert res.data["user_id"] == nurse.id
    assert res.data["page_path"] == "/patients"
    assert res.data["user_agent"] == "pytest-agent"

    # but cannot read the log back
    assert c.get(URL).status_code == 403


@pytest.mark.parametrize("action", ["system_flush", "login", "logout", "role_assigned", "export", "delete"])
def test_server_actions_are_reserved(client_for, action):
    res = client_for("nurse").post(URL, {"action": action}, format="json")
    assert res.status_code == 400
    assert not ActivityLog.objects.filter(action=action).exists()


def test_admin_filters_and_summary(api_client, user, nurse):
    ActivityLog.objects.create(user=nurse, action="login")
    ActivityLog.objects.create(user=nurse, action="create", entity_type="Patient", entity_id="p-1")
    ActivityLog.objects.create(user=user, action="create", entity_type="Vitals", entity_id="v-1")

    res = api_client.get(URL, {"user_id": nurse.id})
    assert res.status_code == 200
    assert {row["action"] for row in res.data["results"]} == {"login", "create"}

    res = api_client.get(URL, {"entity_type": "Vitals"})
    assert [row["entity_id"] for row in res.data["results"]] == ["v-1"]

    summary = api_client.get(f"{URL}summary/").data
    assert summary["total"] == 3
    assert summary["by_action"] == {"login": 1, "create": 2}


def test_service_writes_are_logged(client_for, nurse, patient):
    c = client_for(nurse)
    c.post(
        "/api/v1/vitals/",
        {"patient_id": str(patient.id), "systolic_bp": 130, "diastolic_bp": 85, "heart_rate": 80},
        format="json",
    )
    entry = ActivityLog.objects.get(entity_type="Vitals")
    assert entry.action == "create"
    assert entry.user_id == nurse.id


def test_forwarded_for_is_used_only_when_it_is_an_address(client_for):
    c = client_for("nurse")
    c.post(URL, {"action": "page_view"}, format="json", HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1")
    c.post(URL, {"action": "page_view"}, format="json", HTTP_X_FORWARDED_FOR="not-an-ip, 10.0.0.1")

    ips = set(ActivityLog.objects.filter(action="page_view").values_list("ip_address", flat=True))
    assert ips == {"203.0.113.7", "127.0.0.1"}


def test_admin_site_cannot_delete_logs(rf, user):
    from django.contrib.admin.sites import site

    request = rf.get("/admin/")
    request.user = user
    assert site._registry[ActivityLog].has_delete_permission(request) is False
