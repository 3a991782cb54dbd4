from __future__ import annotations

from django.apps import AppConfig


class WebConfig(AppConfig):
    """Django app configuration for the translation request portal UI."""

    name: str = "web"
    verbose_name: str = "Translation request portal"
