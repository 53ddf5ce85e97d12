# registry_core/appointments/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from registry_core.appointments.api.serializers import (
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AppointmentUpdateSerializer,
    AvailableSlotsSerializer,
    DoctorScheduleSerializer,
    FollowUpCompleteSerializer,
    FollowUpCreateSerializer,
    FollowUpSerializer,
    ScheduleReplaceSerializer,
)
from registry_core.appointments.models import Appointment, DoctorSchedule, FollowUp
from registry_core.appointments.selectors import (
    follow_up_counts,
    list_appointments,
    list_follow_ups,
    patients_for_doctor,
    schedules_for,
)
from registry_core.appointments.services import (
    AppointmentService,
    FollowUpService,
    ScheduleService,
    available_slots,
)
from registry_core.common.api.exceptions import service_errors
from registry_core.common.api.pagination import paginate
from registry_core.common.api.params import date_param, int_param, uuid_param
from registry_core.common.permissions import (
    ROLE_ADMIN,
    AppointmentPermission,
    DoctorSchedulePermission,
    FollowUpPermission,
    has_role,
)
from registry_core.patients.api.serializers import PatientBriefSerializer


class DoctorScheduleViewSet(viewsets.ViewSet):
    """Weekly availability windows; doctors replace their own, admins any."""
    permission_classes = [DoctorSchedulePermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = DoctorScheduleSerializer
    queryset = DoctorSchedule.objects.none()

    @extend_schema(
        tags=["Appointments"],
        parameters=[OpenApiParameter(name="doctor", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False)],
        responses={200: DoctorScheduleSerializer(many=True)},
    )
    def list(self, request):
        qs = schedules_for(doctor_id=int_param(request, "doctor"))
        return Response(DoctorScheduleSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Appointments"], responses={200: DoctorScheduleSerializer})
    def retrieve(self, request, pk=None):
        return Response(DoctorScheduleSerializer(DoctorSchedule.objects.get(id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Appointments"], request=ScheduleReplaceSerializer, responses={200: DoctorScheduleSerializer(many=True)})
    @action(detail=False, methods=["post"], url_path="replace")
    def replace(self, request):
        ser = ScheduleReplaceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        doctor_id = ser.validated_data.get("doctor_id") or request.user.id
        if doctor_id != request.user.id and not has_role(request.user, ROLE_ADMIN):
            raise PermissionDenied("Doctors may only edit their own schedule.")

        with service_errors():
            ScheduleService.replace_schedule(
                doctor_id=doctor_id,
                entries=ser.validated_data["entries"],
                actor_user_id=request.user.id,
            )

        qs = schedules_for(doctor_id=doctor_id)
        return Response(DoctorScheduleSerializer(qs, many=True).data, status=status.HTTP_200_OK)


class AppointmentViewSet(viewsets.ViewSet):
    permission_classes = [AppointmentPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = AppointmentSerializer
    queryset = Appointment.objects.none()

    @extend_schema(
        tags=["Appointments"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="doctor", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: AppointmentSerializer(many=True)},
    )
    def list(self, request):
        qs = list_appointments(
            status=request.query_params.get("status"),
            on_date=date_param(request, "date"),
            doctor_id=int_param(request, "doctor"),
            patient_id=uuid_param(request, "patient"),
        )
        return paginate(request, qs, AppointmentSerializer)

    @extend_schema(tags=["Appointments"], responses={200: AppointmentSerializer})
    def retrieve(self, request, pk=None):
        appt = list_appointments().get(id=pk)
        return Response(AppointmentSerializer(appt).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Appointments"], request=AppointmentCreateSerializer, responses={201: AppointmentSerializer})
    def create(self, request):
        ser = AppointmentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            appt = AppointmentService.book_appointment(actor_user_id=request.user.id, **ser.validated_data)

        return Response(AppointmentSerializer(appt).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Appointments"], request=AppointmentUpdateSerializer, responses={200: AppointmentSerializer})
    def partial_update(self, request, pk=None):
        ser = AppointmentUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        appt = AppointmentService.update_notes(
            appointment_id=pk, notes=ser.validated_data["notes"], actor_user_id=request.user.id
        )
        return Response(AppointmentSerializer(appt).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Appointments"], responses={204: None})
    def destroy(self, request, pk=None):
        AppointmentService.delete(appointment_id=pk, actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Appointments"],
        parameters=[
            OpenApiParameter(name="doctor", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=True),
            OpenApiParameter(name="date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=True),
        ],
        responses={200: AvailableSlotsSerializer},
    )
    @action(detail=False, methods=["get"], url_path="available-slots")
    def available_slots(self, request):
        doctor_id = int_param(request, "doctor", required=True)
        on_date = date_param(request, "date", required=True)
        slots = available_slots(doctor_id=doctor_id, on_date=on_date)
        out = AvailableSlotsSerializer({"doctor_id": doctor_id, "date": on_date, "slots": slots}).data
        return Response(out, status=status.HTTP_200_OK)

    @extend_schema(tags=["Appointments"], request=None, responses={200: AppointmentSerializer})
    @action(detail=True, methods=["post"], url_path="start")
    def start(self, request, pk=None):
        with service_errors():
            appt = AppointmentService.start(appointment_id=pk, actor_user_id=request.user.id)
        return Response(AppointmentSerializer(appt).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Appointments"], request=None, responses={200: AppointmentSerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        with service_errors():
            appt = AppointmentService.complete(appointment_id=pk, actor_user_id=request.user.id)
        return Response(AppointmentSerializer(appt).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Appointments"], request=None, responses={200: AppointmentSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        with service_errors():
            appt = AppointmentService.cancel(appointment_id=pk, actor_user_id=request.user.id)
        return Response(AppointmentSerializer(appt).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Appointments"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: AppointmentSerializer(many=True)},
    )
    @action(detail=False, methods=["get"], url_path="mine")
    def mine(self, request):
        qs = list_appointments(
            doctor_id=request.user.id,
            status=request.query_params.get("status"),
            on_date=date_param(request, "date"),
        )
        return paginate(request, qs, AppointmentSerializer)

    @extend_schema(tags=["Appointments"], responses={200: PatientBriefSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="my-patients")
    def my_patients(self, request):
        return paginate(request, patients_for_doctor(doctor_id=request.user.id), PatientBriefSerializer)


class FollowUpViewSet(viewsets.ViewSet):
    permission_classes = [FollowUpPermission]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    serializer_class = FollowUpSerializer
    queryset = FollowUp.objects.none()

    @extend_schema(
        tags=["Follow-ups"],
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: FollowUpSerializer(many=True)},
    )
    def list(self, request):
        qs = list_follow_ups(status=request.query_params.get("status"), patient_id=uuid_param(request, "patient"))
        resp = paginate(request, qs, FollowUpSerializer)
        if isinstance(resp.data, dict):
            resp.data.update(follow_up_counts())
        return resp

    @extend_schema(tags=["Follow-ups"], responses={200: FollowUpSerializer})
    def retrieve(self, request, pk=None):
        return Response(FollowUpSerializer(list_follow_ups().get(id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Follow-ups"], request=FollowUpCreateSerializer, responses={201: FollowUpSerializer})
    def create(self, request):
        ser = FollowUpCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            fu = FollowUpService.schedule_follow_up(actor_user_id=request.user.id, **ser.validated_data)

        return Response(FollowUpSerializer(fu).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Follow-ups"], responses={204: None})
    def destroy(self, request, pk=None):
        FollowUpService.delete(follow_up_id=pk, actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Follow-ups"], request=FollowUpCompleteSerializer, responses={200: FollowUpSerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        ser = FollowUpCompleteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with service_errors():
            fu = FollowUpService.complete_follow_up(
                follow_up_id=pk, actor_user_id=request.user.id, notes=ser.validated_data.get("notes")
            )
        return Response(FollowUpSerializer(fu).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Follow-ups"], request=None, responses={200: FollowUpSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        with service_errors():
            fu = FollowUpService.cancel_follow_up(follow_up_id=pk, actor_user_id=request.user.id)
        return Response(FollowUpSerializer(fu).data, status=status.HTTP_200_OK)
