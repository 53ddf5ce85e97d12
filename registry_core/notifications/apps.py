from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "registry_core.notifications"
    label = "notifications"

    def ready(self) -> None:
        # registers domain event subscribers
        from registry_core.notifications import handlers  # noqa: F401
