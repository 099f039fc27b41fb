"""Core Django settings shared by every environment."""

from typing import Any, Final

from decouple import Csv

from server.settings.components import config

SECRET_KEY = config('DJANGO_SECRET_KEY', default='insecure-development-key')
DEBUG = config('DJANGO_DEBUG', cast=bool, default=False)

ALLOWED_HOSTS = config(
    'DJANGO_ALLOWED_HOSTS',
    cast=Csv(),
    default='localhost,testserver',
)

INSTALLED_APPS: Final = (
    'server.apps.uploads',
)

USE_TZ = True
TIME_ZONE = 'UTC'

LOGGING: Final[dict[str, Any]] = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'console': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'console',
        },
    },
    'loggers': {
        'server': {
            'handlers': ['console'],
            'level': config('DJANGO_LOG_LEVEL', default='INFO'),
            'propagate': True,
        },
    },
}
