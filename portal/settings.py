"""Django settings for the translation request portal.

The portal is a server-rendered UI that talks to the translation backend
through a small HTTP client. It keeps no database: the backend token lives
in a signed-cookie session.

Configuration is driven by environment variables:
- PORTAL_API_BASE_URL (and the other PORTAL_* values in `web.config`)
- PORTAL_SECRET_KEY, PORTAL_DEBUG, PORTAL_ALLOWED_HOSTS, PORTAL_LOG_LEVEL
"""

from __future__ import annotations

import os

from web.config import settings as portal_settings

SECRET_KEY: str = os.environ.get("PORTAL_SECRET_KEY", "dev-secret-key-change-me")
DEBUG: bool = os.environ.get("PORTAL_DEBUG", "1") == "1"
ALLOWED_HOSTS: list[str] = [h.strip() for h in os.environ.get("PORTAL_ALLOWED_HOSTS", "*").split(",") if h.strip()]

INSTALLED_APPS: list[str] = [
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "web",
]

MIDDLEWARE: list[str] = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF: str = "portal.urls"

TEMPLATES: list[dict[str, object]] = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.messages.context_processors.messages",
                "web.context_processors.portal_session",
            ],
        },
    }
]

WSGI_APPLICATION: str = "portal.wsgi.application"
ASGI_APPLICATION: str = "portal.asgi.application"

DATABASES: dict[str, dict[str, str]] = {}

SESSION_ENGINE: str = "django.contrib.sessions.backends.signed_cookies"
SESSION_COOKIE_HTTPONLY: bool = True
MESSAGE_STORAGE: str = "django.contrib.messages.storage.cookie.CookieStorage"

DATA_UPLOAD_MAX_MEMORY_SIZE: int = portal_settings.max_upload_mb * 1024 * 1024 + 1024 * 1024
FILE_UPLOAD_MAX_MEMORY_SIZE: int = portal_settings.max_upload_mb * 1024 * 1024

LANGUAGE_CODE: str = "en"

TIME_ZONE: str = "UTC"
USE_I18N: bool = True
USE_TZ: bool = True

STATIC_URL: str = "static/"

LOGGING: dict[str, object] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s %(levelname)s %(name)s - %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "root": {"handlers": ["console"], "level": os.environ.get("PORTAL_LOG_LEVEL", "INFO")},
}
