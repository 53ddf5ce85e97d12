# registry_core/system/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from registry_core.audit.models import ActivityAction
from registry_core.audit.services import AuditService
from registry_core.system import backup
from registry_core.system.models import MODULE_KEYS, BackupStatus, BackupType, SystemBackup, SystemSettings

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = ("site_name", "logo_url", "theme", "enabled_modules")


def validate_enabled_modules(value) -> dict:
    if not isinstance(value, dict):
        raise ValueError("enabled_modules must be an object of module -> boolean.")
    unknown = sorted(set(value) - set(MODULE_KEYS))
    if unknown:
        raise ValueError(f"Unknown modules: {', '.join(unknown)}")
    not_bool = sorted(k for k, v in value.items() if not isinstance(v, bool))
    if not_bool:
        raise ValueError(f"Module flags must be booleans: {', '.join(not_bool)}")
    return value


class SettingsService:
    @staticmethod
    @transaction.atomic
    def update_settings(*, actor_user_id: int | None, data: dict) -> SystemSettings:
        obj = SystemSettings.load()
        updates = {k: v for k, v in (data or {}).items() if k in SETTINGS_FIELDS}

        if "enabled_modules" in updates:
            # Partial maps are merged over the current flags.
            merged = {**{k: True for k in MODULE_KEYS}, **(obj.enabled_modules or {})}
            merged.update(validate_enabled_modules(updates["enabled_modules"]))
            updates["enabled_modules"] = merged

        for k, v in updates.items():
            setattr(obj, k, v)
        obj.updated_by_id = actor_user_id
        obj.save()

        AuditService.log(
            action=ActivityAction.UPDATE,
            entity_type="SystemSettings",
            entity_id=obj.id,
            actor_user_id=actor_user_id,
            details={"updated_fields": sorted(updates.keys())},
        )
        return obj


class BackupService:
    """
    Backup / restore / flush of all clinical tables.
    Restore and flush are all-or-nothing.
    """

    @staticmethod
    @transaction.atomic
    def create_backup(*, actor_user_id: int | None, backup_type: str = BackupType.MANUAL) -> SystemBackup:
        payload, counts = backup.dump_tables()
        obj = SystemBackup.objects.create(
            backup_type=backup_type,
            backup_data=payload,
            record_counts=counts,
            created_by_id=actor_user_id,
        )

        AuditService.log(
            action=ActivityAction.SYSTEM_BACKUP,
            entity_type="SystemBackup",
            entity_id=obj.id,
            actor_user_id=actor_user_id,
            details={"backup_type": backup_type, "record_counts": counts},
        )
        logger.info("backup created id=%s type=%s records=%s", obj.id, backup_type, sum(counts.values()))
        return obj

    @staticmethod
    @transaction.atomic
    def restore_backup(*, backup_id: UUID, actor_user_id: int | None) -> SystemBackup:
        obj = SystemBackup.objects.select_for_update().get(id=backup_id)
        backup.validate_manifest(obj.backup_data)

        deleted = backup.delete_clinical_data()
        restored = backup.load_tables(obj.backup_data)

        obj.status = BackupStatus.RESTORED
        obj.restored_at = timezone.now()
        obj.restored_by_id = actor_user_id
        obj.save(update_fields=["status", "restored_at", "restored_by", "updated_at"])

        AuditService.log(
            action=ActivityAction.SYSTEM_RESTORE,
            entity_type="SystemBackup",
            entity_id=obj.id,
            actor_user_id=actor_user_id,
            details={"restored": restored, "backup_timestamp": obj.backup_data.get("backup_timestamp")},
        )
        logger.info(
            "backup restored id=%s deleted=%s restored=%s",
            obj.id,
            sum(deleted.values()),
            sum(restored.values()),
        )
        return obj

    @staticmethod
    @transaction.atomic
    def flush_all(*, actor_user_id: int | None) -> SystemBackup:
        """Delete all clinical data, keeping a pre_flush backup. Returns that backup."""
        safety = BackupService.create_backup(actor_user_id=actor_user_id, backup_type=BackupType.PRE_FLUSH)
        deleted = backup.delete_clinical_data()

        AuditService.log(
            action=ActivityAction.SYSTEM_FLUSH,
            entity_type="SystemBackup",
            entity_id=safety.id,
            actor_user_id=actor_user_id,
            details={"deleted": deleted},
        )
        logger.warning("clinical data flushed by user=%s pre_flush_backup=%s", actor_user_id, safety.id)
        return safety

    @staticmethod
    @transaction.atomic
    def delete_backup(*, backup_id: UUID, actor_user_id: int | None) -> None:
        obj = SystemBackup.objects.get(id=backup_id)
        backup_type = obj.backup_type
        obj.delete()
        AuditService.log(
            action=ActivityAction.DELETE,
            entity_type="SystemBackup",
            entity_id=backup_id,
            actor_user_id=actor_user_id,
            details={"backup_type": backup_type},
        )
