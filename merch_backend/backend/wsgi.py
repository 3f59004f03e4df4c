# backend/wsgi.py
"""
WSGI entrypoint (gunicorn / runserver).

Production processes must export DJANGO_SETTINGS_MODULE=backend.settings.prod;
prod settings refuse to boot on SQLite.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_wsgi_application()
