# backend/settings/__init__.py
"""
Settings modules:
- backend.settings.base  shared (env, apps, DRF, logging, ledger knobs)
- backend.settings.dev   local development and tests
- backend.settings.prod  production

Nothing is imported here; pick one with DJANGO_SETTINGS_MODULE.
"""
