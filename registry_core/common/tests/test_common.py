# registry_core/common/tests/test_common.py
import pytest
from rest_framework.test import APIClient

from registry_core.common.models import IdempotencyRecord
from registry_core.common.transitions import StateConflict, TransitionError, ensure_transition

MACHINE = {"scheduled": {"in_progress", "cancelled"}, "in_progress": {"completed"}}


def test_transition_edges():
    ensure_transition(MACHINE, entity="appointment", current="scheduled", target="in_progress")

    with pytest.raises(TransitionError) as exc:
        ensure_transition(MACHINE, entity="appointment", current="completed", target="scheduled")
    assert isinstance(exc.value, StateConflict)
    assert "from 'completed' to 'scheduled'" in str(exc.value)


@pytest.mark.django_db
def test_failed_create_is_not_replayed(api_client):
    headers = {"HTTP_IDEMPOTENCY_KEY": "retry-after-fix"}
    bad = api_client.post("/api/v1/patients/", {"first_name": "Ida"}, format="json", **headers)
    assert bad.status_code == 400
    assert not IdempotencyRecord.objects.exists()

    good = api_client.post(
        "/api/v1/patients/",
        {"first_name": "Ida", "last_name": "Wanjiru", "date_of_birth": "1990-03-03", "gender": "female"},
        format="json",
        **headers,
    )
    assert good.status_code == 201
    assert IdempotencyRecord.objects.get().status_code == 201


@pytest.mark.django_db
def test_error_envelope_and_request_id(api_client):
    res = api_client.get("/api/v1/patients/00000000-0000-0000-0000-000000000000/", HTTP_X_REQUEST_ID="trace-123")
    assert res.status_code == 404
    assert res.data["error"]["code"] == "not_found"
    assert res.data["error"]["request_id"] == "trace-123"
    assert res["X-Request-Id"] == "trace-123"


@pytest.mark.django_db
def test_anonymous_is_401():
    res = APIClient().get("/api/v1/patients/")
    assert res.status_code == 401
    assert res.data["error"]["code"] == "not_authenticated"


@pytest.mark.django_db
def test_roleless_user_is_told_to_wait(client_for):
    from registry_core.conftest import make_user

    res = client_for(make_user("pending")).get("/api/v1/patients/")
    assert res.status_code == 403
    assert res.data["error"]["message"] == "Your account is awaiting role assignment."


@pytest.mark.django_db
def test_bad_query_param_is_400(client_for):
    res = client_for("doctor").get("/api/v1/appointments/available-slots/", {"doctor": "abc", "date": "2030-01-07"})
    assert res.status_code == 400
