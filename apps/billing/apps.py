from django.apps import AppConfig


class BillingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.billing'
    verbose_name = 'Billing - Subscription Payments'

    gateway = None

    def ready(self):
        from .gateway import RazorpayGateway
        self.gateway = RazorpayGateway.from_settings()
