"""Django settings for the HR event suite backend.

Every value can be overridden through environment variables so the same
module serves local development, tests and deployments.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-secret-change-me")
DEBUG = _env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "roster",
    "luckydraw",
    "grouping",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "hr_suite.urls"
WSGI_APPLICATION = "hr_suite.wsgi.application"

# No app owns relational tables; the database only backs Django's test runner.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

LANGUAGE_CODE = "zh-hant"
TIME_ZONE = os.environ.get("DJANGO_TIME_ZONE", "Asia/Taipei")
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Roster uploads larger than this are rejected with 400.
HRSUITE_MAX_UPLOAD_BYTES = _env_int("HRSUITE_MAX_UPLOAD_BYTES", 2 * 1024 * 1024)
FILE_UPLOAD_MAX_MEMORY_SIZE = HRSUITE_MAX_UPLOAD_BYTES

# Event session state ------------------------------------------------------

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
HRSUITE_KEY_PREFIX = os.environ.get("HRSUITE_KEY_PREFIX", "hrsuite:")
HRSUITE_SESSION_TTL = _env_int("HRSUITE_SESSION_TTL", 30 * 24 * 60 * 60)
HRSUITE_LOCK_TIMEOUT = _env_int("HRSUITE_LOCK_TIMEOUT", 5)
HRSUITE_LOCK_WAIT = _env_int("HRSUITE_LOCK_WAIT", 5)

HRSUITE_DEFAULT_PRIZE = os.environ.get("HRSUITE_DEFAULT_PRIZE", "Lucky Prize")
HRSUITE_DEFAULT_THEME = os.environ.get("HRSUITE_DEFAULT_THEME", "Professional")

# Dotted path to the text generator used for team names and announcements.
HRSUITE_TEXT_GENERATOR = os.environ.get(
    "HRSUITE_TEXT_GENERATOR", "hr_suite.text_generation.LLMTextGenerator"
)

# Language model provider (OpenAI-compatible chat completions API).
LLM_BASE_URL = os.environ.get("LLM_BASE_URL")
LLM_API_KEY = os.environ.get("LLM_API_KEY")
LLM_MODEL = os.environ.get("LLM_MODEL", "deepseek-chat")
LLM_TIMEOUT = _env_int("LLM_TIMEOUT", 15)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
    },
}
