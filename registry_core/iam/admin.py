# registry_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from registry_core.iam.models import Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("full_name", "email", "user", "department", "created_at")
    search_fields = ("full_name", "email", "user__username")
    ordering = ("full_name",)
