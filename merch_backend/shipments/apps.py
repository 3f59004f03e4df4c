# shipments/apps.py

from django.apps import AppConfig


class ShipmentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "shipments"
    verbose_name = "Inbound Shipments"
