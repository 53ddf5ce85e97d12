# registry_core/appointments/management/commands/send_appointment_reminders.py
from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_date

from registry_core.appointments.services import AppointmentService


class Command(BaseCommand):
    help = "Notify doctors of tomorrow's scheduled appointments (run daily from cron)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            type=str,
            default=None,
            help="Appointment date to remind for (YYYY-MM-DD). Defaults to tomorrow.",
        )

    def handle(self, *args, **opts):
        on_date = None
        if opts["date"]:
            on_date = parse_date(opts["date"])
            if on_date is None:
                raise CommandError("--date must be YYYY-MM-DD")

        sent = AppointmentService.send_reminders(on_date=on_date)
        self.stdout.write(self.style.SUCCESS(f"Sent {sent} reminders"))
