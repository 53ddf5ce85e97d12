# registry_core/iam/models.py
import uuid

from django.conf import settings
from django.db import models


class Profile(models.Model):
    """
    Staff profile anchored to Django's AUTH_USER_MODEL.
    Role lives in auth groups (see common.permissions).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    full_name = models.CharField(max_length=255, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    department = models.CharField(max_length=128, blank=True, default="")
    avatar_url = models.URLField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_profile"
        ordering = ["full_name"]

    def __str__(self) -> str:
        return self.full_name or self.email or str(self.user_id)


def display_name(user) -> str:
    """Best human label for a user: profile name, full name, then username."""
    if user is None:
        return ""
    profile = getattr(user, "profile", None)
    if profile is not None and profile.full_name:
        return profile.full_name
    return user.get_full_name() or user.get_username()
