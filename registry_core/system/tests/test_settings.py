# registry_core/system/tests/test_settings.py
import pytest

from registry_core.system.models import MODULE_KEYS

pytestmark = pytest.mark.django_db

URL = "/api/v1/system/settings/"


def test_anyone_signed_in_can_read(client_for):
    res = client_for("researcher").get(URL)
    assert res.status_code == 200
    assert res.data["site_name"]
    assert res.data["theme"] == "system"
    assert set(res.data["enabled_modules"]) == set(MODULE_KEYS)


def test_only_admin_can_change(client_for):
    res = client_for("doctor").patch(URL, {"site_name": "Heart Unit"}, format="json")
    assert res.status_code == 403


def test_partial_module_map_is_merged(api_client, user):
    res = api_client.patch(URL, {"site_name": "Heart Unit", "enabled_modules": {"icu": False}}, format="json")
    assert res.status_code == 200, res.data
    assert res.data["site_name"] == "Heart Unit"
    assert res.data["updated_by_id"] == user.id
    assert res.data["enabled_modules"]["icu"] is False
    assert res.data["enabled_modules"]["ward"] is True


@pytest.mark.parametrize(
    "modules",
    [{"teleporter": True}, {"icu": "no"}],
)
def test_bad_module_flags_are_rejected(api_client, modules):
    res = api_client.patch(URL, {"enabled_modules": modules}, format="json")
    assert res.status_code == 400
    assert res.data["error"]["code"] == "validation_error"


def test_empty_patch_is_rejected(api_client):
    assert api_client.patch(URL, {}, format="json").status_code == 400
