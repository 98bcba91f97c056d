"""
Development settings for the service manual publisher.
"""

from .base import *

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', '[::1]', 'testserver']

# Disable HTTPS redirect in development
SECURE_SSL_REDIRECT = False
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

# Show more detailed error pages
DEBUG_PROPAGATE_EXCEPTIONS = True

# Development logging - more verbose, plus a local file
LOGGING['root']['level'] = 'DEBUG'
LOGGING['loggers']['apps']['level'] = 'DEBUG'

LOGS_DIR.mkdir(exist_ok=True)
LOGGING['handlers']['file'] = {
    'class': 'logging.FileHandler',
    'filename': LOGS_DIR / 'django.log',
    'formatter': 'verbose',
    'filters': ['request_id'],
    'mode': 'a',
}
LOGGING['loggers']['apps']['handlers'] = ['console', 'file']
