"""Django settings for the Sandbox Bridge service.

Values come from ``sandbox_bridge.config.settings`` (``ISB_*`` environment
variables). There is no database; account state lives in Redis.
"""

from __future__ import annotations

from sandbox_bridge.config import settings as bridge_settings

SECRET_KEY = bridge_settings.django_secret_key
DEBUG = bridge_settings.django_debug
ALLOWED_HOSTS = ["*"]

INSTALLED_APPS = [
    "sandbox_bridge_app.apps.SandboxBridgeAppConfig",
]

MIDDLEWARE = [
    "sandbox_bridge_app.middleware.cors_middleware",
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "sandbox_bridge_site.urls"
WSGI_APPLICATION = "sandbox_bridge_site.wsgi.application"
ASGI_APPLICATION = "sandbox_bridge_site.asgi.application"

DATABASES: dict = {}

APPEND_SLASH = False
USE_TZ = True
TIME_ZONE = "UTC"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "sandbox_bridge": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "sandbox_bridge.audit": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "django": {"handlers": ["console"], "level": "WARNING"},
    },
}
