from django.apps import AppConfig  # type: ignore


class BookingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.bookings"
    label = "bookings"
    verbose_name = "Equipment bookings"

    def ready(self) -> None:
        from apps.bookings.application.bootstrap import bootstrap

        bootstrap()
