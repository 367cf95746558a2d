from django.apps import AppConfig


class AssistantConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.assistant'
    verbose_name = 'Assistant - AI Business Insights'

    advisor = None

    def ready(self):
        from .graph import BusinessAdvisor
        self.advisor = BusinessAdvisor.from_settings()
