# users/management/commands/ensure_superuser.py

"""
Bootstrap (or repair) the first admin account from the environment:

    AUTO_ADMIN_EMAIL=owner@example.com AUTO_ADMIN_PASSWORD=... manage.py ensure_superuser

Safe to run on every deploy. The password is never echoed.
"""

from __future__ import annotations

import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction


class Command(BaseCommand):
    help = "Create or refresh the admin account named by AUTO_ADMIN_EMAIL / AUTO_ADMIN_PASSWORD."

    @transaction.atomic
    def handle(self, *args, **options):
        email = os.environ.get("AUTO_ADMIN_EMAIL", "").strip()
        password = os.environ.get("AUTO_ADMIN_PASSWORD", "").strip()

        if not (email and password):
            self.stdout.write(self.style.WARNING("AUTO_ADMIN_EMAIL / AUTO_ADMIN_PASSWORD not set. Skipping."))
            return

        User = get_user_model()
        user = User.objects.filter(email__iexact=email).first()

        if user is None:
            User.objects.create_superuser(email=email, password=password)
            self.stdout.write(self.style.SUCCESS(f"Created admin {email}"))
            return

        user.role = User.Role.ADMIN
        user.is_active = user.is_staff = user.is_superuser = True
        user.set_password(password)
        user.save()
        self.stdout.write(self.style.SUCCESS(f"Refreshed admin {email}"))
