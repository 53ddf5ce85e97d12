# registry_core/conftest.py
import pytest
from datetime import date
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from registry_core.common.permissions import ALL_ROLES
from registry_core.patients.models import Patient


def make_user(username, role=None, **extra):
    """
    Staff account with at most one role group.
    role=None leaves the account awaiting role assignment.
    """
    User = get_user_model()
    extra.setdefault("is_active", True)
    user = User.objects.create_user(username=username, password="testpass", **extra)
    if role:
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user


@pytest.fixture
def user(db):
    return make_user("admin@example.com", "admin")


@pytest.fixture
def doctor(db):
    return make_user("doctor@example.com", "doctor", first_name="Jane", last_name="Kamau")


@pytest.fixture
def nurse(db):
    return make_user("nurse@example.com", "nurse")


@pytest.fixture
def lab_tech(db):
    return make_user("lab@example.com", "lab_technician")


@pytest.fixture
def pharmacist(db):
    return make_user("pharmacist@example.com", "pharmacist")


@pytest.fixture
def researcher(db):
    return make_user("researcher@example.com", "researcher")


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def client_for(db):
    """
    client_for("nurse") -> APIClient signed in as a fresh user with that role.
    Passing a user object signs in as that user.
    """
    counter = {"n": 0}

    def _make(role_or_user):
        c = APIClient()
        if isinstance(role_or_user, str):
            counter["n"] += 1
            assert role_or_user in ALL_ROLES
            role_or_user = make_user(f"{role_or_user}{counter['n']}@example.com", role_or_user)
        c.force_authenticate(user=role_or_user)
        return c

    return _make


@pytest.fixture
def patient(db, user):
    return Patient.objects.create(
        patient_number="PT-000001",
        first_name="Amina",
        last_name="Otieno",
        date_of_birth=date(1980, 5, 17),
        gender="female",
        phone="0712345678",
        national_id="12345678",
        registered_by=user,
    )
