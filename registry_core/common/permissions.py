# registry_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

# Role names (Django auth Group names)
ROLE_ADMIN = "admin"
ROLE_DOCTOR = "doctor"
ROLE_NURSE = "nurse"
ROLE_LAB_TECHNICIAN = "lab_technician"
ROLE_PHARMACIST = "pharmacist"
ROLE_RESEARCHER = "researcher"

ALL_ROLES = (
    ROLE_ADMIN,
    ROLE_DOCTOR,
    ROLE_NURSE,
    ROLE_LAB_TECHNICIAN,
    ROLE_PHARMACIST,
    ROLE_RESEARCHER,
)

CLINICAL = {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE, ROLE_LAB_TECHNICIAN, ROLE_PHARMACIST}
WARD_TEAM = {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE}


def user_roles(user) -> Set[str]:
    """
    Resolve roles from Django groups.

    - Superuser is treated as admin.
    - Only known role names count; other groups are ignored.
    - An authenticated user without a role gets an empty set
      (awaiting role assignment).
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)
        return roles

    if hasattr(user, "groups"):
        roles.update(n for n in user.groups.values_list("name", flat=True) if n in ALL_ROLES)

    return roles


def primary_role(user) -> str | None:
    """
    Single role shown to clients. A user holds at most one role;
    admin wins if data ever says otherwise.
    """
    roles = user_roles(user)
    for role in ALL_ROLES:
        if role in roles:
            return role
    return None


def has_role(user, *roles: str) -> bool:
    return bool(user_roles(user) & set(roles))


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    - Requires authentication.
    - ADMIN bypass.
    - Uses allowed_roles_per_action for strict RBAC.
    - If action is unknown and request is SAFE, fall back to list/retrieve.
    - Unknown unsafe actions are denied.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: dict of action -> set of allowed roles
    allowed_roles_per_action = {
        "list": CLINICAL,
        "retrieve": CLINICAL,
        "create": {ROLE_ADMIN},
        "update": {ROLE_ADMIN},
        "partial_update": {ROLE_ADMIN},
        "destroy": {ROLE_ADMIN},
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = user_roles(user)

        if ROLE_ADMIN in roles:
            return True

        if not roles:
            self.message = "Your account is awaiting role assignment."
            return False

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            is_detail = "pk" in kwargs or "id" in kwargs
            read_action = "retrieve" if is_detail else "list"
            allowed = self.allowed_roles_per_action.get(read_action)

        if allowed is not None:
            return bool(roles & allowed)

        return False

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


# Per-module permission classes


class PatientPermission(BaseRolePermission):
    """Registration is limited to admin/nurse; doctors may correct records."""
    allowed_roles_per_action = {
        "list": CLINICAL,
        "retrieve": CLINICAL,
        "create": {ROLE_ADMIN, ROLE_NURSE},
        "update": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE},
        "partial_update": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE},
        "destroy": {ROLE_ADMIN},
        "summary": CLINICAL,
    }


class VitalsPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": CLINICAL,
        "retrieve": CLINICAL,
        "latest": CLINICAL,
        "create": {ROLE_ADMIN, ROLE_NURSE},
        "destroy": {ROLE_ADMIN},
    }


class AppointmentPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": CLINICAL,
        "retrieve": CLINICAL,
        "create": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE},
        "partial_update": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE},
        "destroy": {ROLE_ADMIN},
        "available_slots": CLINICAL,
        "start": {ROLE_ADMIN, ROLE_DOCTOR},
        "complete": {ROLE_ADMIN, ROLE_DOCTOR},
        "cancel": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE},
        "mine": {ROLE_DOCTOR},
        "my_patients": {ROLE_DOCTOR},
    }


class DoctorSchedulePermission(BaseRolePermission):
    """Doctors maintain their own weekly schedule."""
    allowed_roles_per_action = {
        "list": CLINICAL,
        "retrieve": CLINICAL,
        "replace": {ROLE_ADMIN, ROLE_DOCTOR},
    }


class FollowUpPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": CLINICAL,
        "retrieve": CLINICAL,
        "create": WARD_TEAM,
        "complete": WARD_TEAM,
        "cancel": WARD_TEAM,
        "destroy": {ROLE_ADMIN},
    }


class ConsultationPermission(BaseRolePermission):
    """Doctor consultation module: doctors and admins only."""
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE},
        "retrieve": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE},
        "create": {ROLE_ADMIN, ROLE_DOCTOR},
        "partial_update": {ROLE_ADMIN, ROLE_DOCTOR},
        "order_labs": {ROLE_ADMIN, ROLE_DOCTOR},
        "review_labs": {ROLE_ADMIN, ROLE_DOCTOR},
        "refer_surgery": {ROLE_ADMIN, ROLE_DOCTOR},
        "refer_prescription": {ROLE_ADMIN, ROLE_DOCTOR},
        "complete": {ROLE_ADMIN, ROLE_DOCTOR},
        "surgery_referrals": WARD_TEAM,
    }


class LabPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": CLINICAL,
        "retrieve": CLINICAL,
        "create": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE},
        "start": {ROLE_ADMIN, ROLE_LAB_TECHNICIAN},
        "results": {ROLE_ADMIN, ROLE_LAB_TECHNICIAN},
        "cancel": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_LAB_TECHNICIAN},
        "mine": {ROLE_DOCTOR},
    }


class PharmacyPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": CLINICAL,
        "retrieve": CLINICAL,
        "create": {ROLE_ADMIN, ROLE_DOCTOR},
        "dispense": {ROLE_ADMIN, ROLE_PHARMACIST},
        "cancel": {ROLE_ADMIN, ROLE_DOCTOR, ROLE_PHARMACIST},
        "history": {ROLE_ADMIN, ROLE_PHARMACIST},
    }


class SurgeryPermission(BaseRolePermission):
    """Pre-op, intra-op and post-op modules."""
    allowed_roles_per_action = {
        "list": WARD_TEAM,
        "retrieve": WARD_TEAM,
        "create": WARD_TEAM,
        "partial_update": WARD_TEAM,
        "destroy": {ROLE_ADMIN},
        "verification": WARD_TEAM,
        "consent": WARD_TEAM,
        "pre_op": WARD_TEAM,
        "start": WARD_TEAM,
        "complete": WARD_TEAM,
        "sign_out": WARD_TEAM,
        "cancel": WARD_TEAM,
        "admit_icu": WARD_TEAM,
        "admit_ward": WARD_TEAM,
    }


class IcuPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": CLINICAL,
        "retrieve": CLINICAL,
        "beds": CLINICAL,
        "notes": CLINICAL,
        "create": WARD_TEAM,
        "add_note": WARD_TEAM,
        "discharge": WARD_TEAM,
    }


class WardPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": WARD_TEAM,
        "retrieve": WARD_TEAM,
        "beds": WARD_TEAM,
        "create": WARD_TEAM,
        "discharge": WARD_TEAM,
    }


class NotificationPermission(BaseRolePermission):
    """Every authenticated user owns an inbox, including role-less users."""

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(user and getattr(user, "is_authenticated", False))


class AdminOnlyPermission(BaseRolePermission):
    """User management, activity logs, backups."""
    allowed_roles_per_action = {}


class SystemSettingsPermission(BaseRolePermission):
    """Settings are readable by anyone signed in (branding + enabled modules)."""

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False
        if request.method in SAFE_METHODS:
            return True
        return ROLE_ADMIN in user_roles(user)


class ReportPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "dashboard": CLINICAL | {ROLE_RESEARCHER},
        "report": CLINICAL | {ROLE_RESEARCHER},
        "patient_export": {ROLE_ADMIN, ROLE_RESEARCHER},
    }


class ActivityLogPermission(BaseRolePermission):
    """Anyone signed in may append client events; reading the log is admin only."""

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False
        if getattr(view, "action", None) == "create":
            return True
        return ROLE_ADMIN in user_roles(user)
