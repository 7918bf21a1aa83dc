"""Production settings for Parkly project.

This module extends the base settings with production specific
configuration. Ensure that sensitive values are provided via
environment variables and that security settings are appropriate for
production use.
"""

from .base import *  # noqa: F401,F403
from .base import get_env

# Never run with debug enabled in production
DEBUG = False

SECRET_KEY = get_env('DJANGO_SECRET_KEY', required=True)

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = [host.strip() for host in get_env('DJANGO_ALLOWED_HOSTS', '').split(',') if host.strip()]

# Configure secure proxies and cookies
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True
SECURE_SSL_REDIRECT = get_env('SECURE_SSL_REDIRECT', 'True').lower() == 'true'
