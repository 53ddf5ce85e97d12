# registry_core/api/urls_v1.py
# Schema-only urlconf: the versioned API without the legacy /api/ alias.
from django.urls import include, path

urlpatterns = [
    path("api/v1/", include("registry_core.api.urls")),
]
