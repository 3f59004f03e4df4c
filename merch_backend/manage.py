#!/usr/bin/env python
"""
Management entrypoint for the merchandise inventory backend.

DJANGO_SETTINGS_MODULE falls back to backend.settings.dev when unset or
when it names the bare settings package. Production sets
backend.settings.prod explicitly.
"""

from __future__ import annotations

import os
import sys


def main() -> None:
    configured = os.environ.get("DJANGO_SETTINGS_MODULE", "").strip()
    if configured in ("", "backend.settings"):
        os.environ["DJANGO_SETTINGS_MODULE"] = "backend.settings.dev"

    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
