# registry_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from registry_core.appointments.api.views import AppointmentViewSet, DoctorScheduleViewSet, FollowUpViewSet
from registry_core.audit.api.views import ActivityLogViewSet
from registry_core.consultations.api.views import ConsultationViewSet
from registry_core.iam.api.auth import LoginView, LogoutView, RefreshView, SignupView
from registry_core.iam.api.me import MeView
from registry_core.iam.api.views import StaffUserViewSet
from registry_core.inpatient.api.views import IcuAdmissionViewSet, WardAdmissionViewSet
from registry_core.lab.api.views import LabTestViewSet
from registry_core.notifications.api.views import NotificationViewSet
from registry_core.patients.api.views import PatientViewSet
from registry_core.pharmacy.api.views import PrescriptionViewSet
from registry_core.reports.api.views import ReportViewSet
from registry_core.surgery.api.views import SurgeryViewSet
from registry_core.system.api.views import SystemBackupViewSet, SystemSettingsView
from registry_core.vitals.api.views import VitalsViewSet

router = DefaultRouter()

# Registry and clinical workflow
router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"vitals", VitalsViewSet, basename="vitals")
router.register(r"appointments", AppointmentViewSet, basename="appointments")
router.register(r"doctor-schedules", DoctorScheduleViewSet, basename="doctor-schedules")
router.register(r"follow-ups", FollowUpViewSet, basename="follow-ups")
router.register(r"consultations", ConsultationViewSet, basename="consultations")
router.register(r"lab-tests", LabTestViewSet, basename="lab-tests")
router.register(r"prescriptions", PrescriptionViewSet, basename="prescriptions")
router.register(r"surgeries", SurgeryViewSet, basename="surgeries")
router.register(r"icu-admissions", IcuAdmissionViewSet, basename="icu-admissions")
router.register(r"ward-admissions", WardAdmissionViewSet, basename="ward-admissions")

# Staff, inbox, audit, administration
router.register(r"notifications", NotificationViewSet, basename="notifications")
router.register(r"users", StaffUserViewSet, basename="users")
router.register(r"audit/activity", ActivityLogViewSet, basename="audit-activity")
router.register(r"system/backups", SystemBackupViewSet, basename="system-backups")
router.register(r"reports", ReportViewSet, basename="reports")

urlpatterns = [
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("auth/signup/", SignupView.as_view(), name="signup"),
    path("me/", MeView.as_view(), name="me"),
    path("system/settings/", SystemSettingsView.as_view(), name="system-settings"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
