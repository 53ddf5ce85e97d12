# registry_core/iam/selectors.py
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models import Prefetch, Q, QuerySet
from django.contrib.auth.models import Group

from registry_core.common.permissions import ALL_ROLES


def list_users(*, q: str | None = None, role: str | None = None) -> QuerySet:
    User = get_user_model()
    qs = User.objects.select_related("profile").prefetch_related(
        Prefetch("groups", queryset=Group.objects.filter(name__in=ALL_ROLES), to_attr="role_groups")
    )

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(profile__full_name__icontains=qv)
            | Q(email__icontains=qv)
            | Q(username__icontains=qv)
        )

    if role == "none":
        qs = qs.exclude(groups__name__in=ALL_ROLES).filter(is_superuser=False)
    elif role:
        qs = qs.filter(groups__name=role)

    return qs.order_by("-date_joined")


def users_with_role(role: str) -> QuerySet:
    """Active members of a role group (superusers count as admin)."""
    User = get_user_model()
    qs = User.objects.filter(is_active=True)
    if role == "admin":
        return qs.filter(Q(groups__name=role) | Q(is_superuser=True)).distinct()
    return qs.filter(groups__name=role).distinct()
