"""Django app configuration for Trademan."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class TrademanConfig(AppConfig):
    """Configuration for Trademan app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "trademan"
    verbose_name = _("Documents commerciaux et stock")
