from django.apps import AppConfig
from django.conf import settings


class MessagingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.messaging'
    verbose_name = 'Messaging - WhatsApp and Email Notifications'

    dispatcher = None

    def ready(self):
        from .clients import WhatsAppClient
        from .dispatcher import NotificationDispatcher

        self.dispatcher = NotificationDispatcher(
            WhatsAppClient.from_settings(),
            delay_seconds=settings.WHATSAPP_BULK_DELAY_SECONDS,
        )
