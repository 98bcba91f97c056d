"""
Test settings for the service manual publisher.
"""

from .base import *

DEBUG = False

ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

# Run background jobs inline
CELERY_TASK_ALWAYS_EAGER = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PUBLISHING_API_URL = 'http://publishing-api.test'
PUBLISHING_API_BEARER_TOKEN = 'test-token'

LOGGING['root']['level'] = 'WARNING'
LOGGING['loggers']['apps']['level'] = 'WARNING'
