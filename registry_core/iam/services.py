# registry_core/iam/services.py
from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.db import IntegrityError, transaction

from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.common.permissions import ALL_ROLES
from registry_core.iam.models import Profile

logger = logging.getLogger(__name__)


class StaffService:
    """
    Staff accounts: sign-up, role assignment, activation, removal.
    """

    PROFILE_FIELDS = {"full_name", "phone", "department", "avatar_url"}

    @staticmethod
    @transaction.atomic
    def signup(*, email: str, password: str, full_name: str):
        """
        New accounts have no role until an admin assigns one.
        """
        User = get_user_model()
        email = email.strip().lower()

        if User.objects.filter(username__iexact=email).exists():
            raise ValueError("An account with this email already exists.")

        try:
            user = User.objects.create_user(username=email, email=email, password=password)
        except IntegrityError:
            raise ValueError("An account with this email already exists.")

        profile = user.profile
        profile.full_name = full_name.strip()
        profile.email = email
        profile.save(update_fields=["full_name", "email", "updated_at"])

        AuditService.log(
            action=ActivityAction.CREATE,
            entity_type="User",
            entity_id=user.id,
            actor_user_id=user.id,
            details={"signup": True},
        )
        logger.info("staff signup user=%s", user.id)
        return user

    @staticmethod
    @transaction.atomic
    def assign_role(*, user_id: int, role: str, actor_user_id: int | None):
        """
        A user holds one role: drop any other role group, then add this one.
        """
        if role not in ALL_ROLES:
            raise ValueError(f"Unknown role: {role}")

        User = get_user_model()
        user = User.objects.get(pk=user_id)

        user.groups.remove(*Group.objects.filter(name__in=ALL_ROLES).exclude(name=role))
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)

        AuditService.log(
            action=ActivityAction.ROLE_ASSIGNED,
            entity_type="User",
            entity_id=user.id,
            actor_user_id=actor_user_id,
            details={"role": role},
        )
        logger.info("role assigned user=%s role=%s by=%s", user.id, role, actor_user_id)
        return user

    @staticmethod
    @transaction.atomic
    def set_active(*, user_id: int, is_active: bool, actor_user_id: int | None):
        if user_id == actor_user_id and not is_active:
            raise ValueError("You cannot deactivate your own account.")

        User = get_user_model()
        user = User.objects.get(pk=user_id)
        if user.is_active != is_active:
            user.is_active = is_active
            user.save(update_fields=["is_active"])

            AuditService.log(
                action=ActivityAction.UPDATE,
                entity_type="User",
                entity_id=user.id,
                actor_user_id=actor_user_id,
                details={"is_active": is_active},
            )
        return user

    @staticmethod
    @transaction.atomic
    def delete_user(*, user_id: int, actor_user_id: int | None) -> None:
        if user_id == actor_user_id:
            raise ValueError("You cannot delete your own account.")

        User = get_user_model()
        user = User.objects.get(pk=user_id)
        email = user.email
        user.delete()

        AuditService.log(
            action=ActivityAction.DELETE,
            entity_type="User",
            entity_id=user_id,
            actor_user_id=actor_user_id,
            details={"email": email},
        )
        logger.info("user deleted user=%s by=%s", user_id, actor_user_id)

    @staticmethod
    @transaction.atomic
    def update_profile(*, user, data: dict) -> Profile:
        profile, _ = Profile.objects.get_or_create(user=user, defaults={"email": user.email or ""})

        updates = {k: v for k, v in (data or {}).items() if k in StaffService.PROFILE_FIELDS}
        for k, v in updates.items():
            setattr(profile, k, v)
        profile.save()

        AuditService.log(
            action=ActivityAction.UPDATE,
            entity_type="Profile",
            entity_id=profile.id,
            actor_user_id=user.id,
            details={"updated_fields": sorted(updates.keys())},
        )
        return profile
