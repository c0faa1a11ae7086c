"""Django settings for the fuel station back-office project.

These settings configure the behaviour of the back-office service. They
define installed apps, middleware, database configuration, logging,
static files handling and the knobs used by the JSON API (pagination
limits and the reporting currency). Values come from the environment so
the same module serves local development, tests and deployments.
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path

from django.core.exceptions import ImproperlyConfigured

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Load environment variables from a local .env file for development setups.
def load_env_file(path: Path) -> None:
    if not path.exists():
        return

    for line in path.read_text().splitlines():
        if not line or line.strip().startswith("#"):
            continue

        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


# Prefer a local .env file but fall back to .env.sample when the project is
# first checked out. The sample values are insecure and must be overridden
# in real deployments.
env_path = BASE_DIR / ".env"
sample_env_path = BASE_DIR / ".env.sample"

if env_path.exists():
    load_env_file(env_path)
elif sample_env_path.exists():
    warnings.warn(
        ".env not found; using values from .env.sample. Create a .env file to "
        "override these defaults.",
        RuntimeWarning,
        stacklevel=2,
    )
    load_env_file(sample_env_path)


def env_required(name: str) -> str:
    """Fetch a required environment variable or raise a helpful error."""

    value = os.getenv(name)
    if not value:
        raise ImproperlyConfigured(
            f"Set the {name} environment variable (see .env.sample for defaults)."
        )
    return value


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ImproperlyConfigured(f"{name} must be an integer, got {raw!r}.") from exc


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env_required("DJANGO_SECRET_KEY")

# SECURITY WARNING: don't run with debug turned on in production!
# Default to disabled unless explicitly enabled via DJANGO_DEBUG.
DEBUG = os.getenv("DJANGO_DEBUG", "False").lower() in ("true", "1", "yes")

ALLOWED_HOSTS: list[str] = [
    host.strip()
    for host in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]


# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'backoffice',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'fuelstation.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'fuelstation.wsgi.application'


# Database
# https://docs.djangoproject.com/en/4.2/ref/settings/#databases
if os.getenv('PGHOST'):
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('PGDATABASE', 'fuelstation'),
            'USER': os.getenv('PGUSER', 'fuelstation'),
            'PASSWORD': env_required('PGPASSWORD'),
            'HOST': env_required('PGHOST'),
            'PORT': os.getenv('PGPORT', '5432'),
            # Keep connections open for a minute to improve performance for repeated queries
            'CONN_MAX_AGE': 60,
            'OPTIONS': {
                # Prefer encrypted connections; can be overridden via PGSSLMODE
                'sslmode': os.getenv('PGSSLMODE', 'prefer'),
            },
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.getenv('SQLITE_PATH', str(BASE_DIR / 'db.sqlite3')),
        }
    }

# Password validation
# https://docs.djangoproject.com/en/4.2/ref/settings/#auth-password-validators
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Internationalization
# https://docs.djangoproject.com/en/4.2/topics/i18n/

LANGUAGE_CODE = 'en-us'

TIME_ZONE = os.getenv('DJANGO_TIME_ZONE', 'UTC')

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)
# https://docs.djangoproject.com/en/4.2/howto/static-files/
STATIC_URL = '/static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')

# Default primary key field type
# https://docs.djangoproject.com/en/4.2/ref/settings/#default-auto-field
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv('BACKOFFICE_LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('BACKOFFICE_LOG_FILE') or None

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
        },
    },
    'loggers': {
        'backoffice': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'django.request': {
            'handlers': ['console'],
            'level': 'ERROR',
            'propagate': False,
        },
    },
}

if LOG_FILE:
    LOGGING['handlers']['file'] = {
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': LOG_FILE,
        'maxBytes': 5 * 1024 * 1024,
        'backupCount': 3,
        'encoding': 'utf-8',
        'formatter': 'standard',
    }
    for logger_config in LOGGING['loggers'].values():
        logger_config['handlers'].append('file')


# ---------------------------------------------------------------------------
# Back-office API settings
# ---------------------------------------------------------------------------

# Pagination defaults for every list endpoint.  ``pageSize`` query values
# are clamped to ``[1, BACKOFFICE_MAX_PAGE_SIZE]``.
BACKOFFICE_DEFAULT_PAGE_SIZE = env_int('BACKOFFICE_DEFAULT_PAGE_SIZE', 20)
BACKOFFICE_MAX_PAGE_SIZE = env_int('BACKOFFICE_MAX_PAGE_SIZE', 100)

# Currency code used when formatting monetary values in exported reports.
BACKOFFICE_CURRENCY = os.getenv('BACKOFFICE_CURRENCY', 'USD')
