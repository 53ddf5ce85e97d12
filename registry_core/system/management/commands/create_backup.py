# registry_core/system/management/commands/create_backup.py
from __future__ import annotations

from django.core.management.base import BaseCommand

from registry_core.system.models import BackupType
from registry_core.system.services import BackupService


class Command(BaseCommand):
    help = "Snapshot all clinical tables into a scheduled SystemBackup (cron friendly)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--type",
            dest="backup_type",
            choices=[c for c, _ in BackupType.choices],
            default=BackupType.SCHEDULED,
        )

    def handle(self, *args, **opts):
        obj = BackupService.create_backup(actor_user_id=None, backup_type=opts["backup_type"])
        total = sum((obj.record_counts or {}).values())
        self.stdout.write(self.style.SUCCESS(f"Backup {obj.id} created ({total} records)"))
