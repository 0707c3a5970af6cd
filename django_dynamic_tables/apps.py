from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class DynamicTablesConfig(AppConfig):
    name = "django_dynamic_tables"
    verbose_name = _("Dynamic tables")
    default_auto_field = "django.db.models.AutoField"
