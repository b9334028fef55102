from django.apps import AppConfig


class SystemLockoutConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'system_lockout'
    verbose_name = 'System Lockout'
