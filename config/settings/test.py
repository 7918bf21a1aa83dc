"""Test settings for Parkly project.

In-memory SQLite, eager Celery and a fast password hasher. Used by
pytest through ``DJANGO_SETTINGS_MODULE=config.settings.test``.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

ALLOWED_HOSTS = ['*']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

BOOKING_STATUS_OVERRIDE_ENABLED = True
