# registry_core/notifications/tests/test_inbox.py
import pytest
from rest_framework.test import APIClient

from registry_core.conftest import make_user
from registry_core.notifications.models import Notification
from registry_core.notifications.services import NotificationService

pytestmark = pytest.mark.django_db


def _client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


def test_inbox_is_scoped_to_caller(nurse, doctor):
    mine = NotificationService.notify_user(user_id=nurse.id, title="For nurse")
    theirs = NotificationService.notify_user(user_id=doctor.id, title="For doctor")

    c = _client(nurse)
    res = c.get("/api/v1/notifications/")
    assert res.status_code == 200
    assert [n["title"] for n in res.data["results"]] == ["For nurse"]

    assert c.get(f"/api/v1/notifications/{mine.id}/").status_code == 200
    assert c.get(f"/api/v1/notifications/{theirs.id}/").status_code == 404
    assert c.post(f"/api/v1/notifications/{theirs.id}/mark-read/").status_code == 404


def test_mark_read_and_unread_count(nurse):
    a = NotificationService.notify_user(user_id=nurse.id, title="One")
    NotificationService.notify_user(user_id=nurse.id, title="Two")
    c = _client(nurse)

    assert c.get("/api/v1/notifications/unread-count/").data == {"unread": 2}

    res = c.post(f"/api/v1/notifications/{a.id}/mark-read/")
    assert res.status_code == 200
    assert res.data["is_read"] is True
    assert res.data["read_at"] is not None

    assert c.get("/api/v1/notifications/?is_read=false").data["count"] == 1

    res = c.post("/api/v1/notifications/mark-all-read/")
    assert res.data == {"updated": 1}
    assert c.get("/api/v1/notifications/unread-count/").data == {"unread": 0}


def test_delete_own_notification(nurse):
    n = NotificationService.notify_user(user_id=nurse.id, title="Bye")
    c = _client(nurse)
    assert c.delete(f"/api/v1/notifications/{n.id}/").status_code == 204
    assert not Notification.objects.filter(id=n.id).exists()


def test_notify_role_skips_inactive_members():
    active = make_user("ph1@example.com", "pharmacist")
    make_user("ph2@example.com", "pharmacist", is_active=False)

    created = NotificationService.notify_role(role="pharmacist", title="Stock check")
    assert [n.user_id for n in created] == [active.id]


def test_notify_role_without_members_is_noop():
    assert NotificationService.notify_role(role="lab_technician", title="Nobody home") == []


def test_roleless_user_still_has_an_inbox():
    pending = make_user("pending@example.com")
    NotificationService.notify_user(user_id=pending.id, title="Welcome")
    res = _client(pending).get("/api/v1/notifications/")
    assert res.status_code == 200
    assert res.data["count"] == 1
