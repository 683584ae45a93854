"""ASGI entry point for the warplay MFM service."""

from __future__ import annotations

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "warplay.settings")

application = get_asgi_application()
