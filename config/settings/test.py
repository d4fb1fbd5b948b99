"""Settings used by the pytest suite."""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.InMemoryStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

APP_URL = 'https://portal.example.com'
SITE_URL = 'https://api.example.com'
BOOKING_CURRENCY = 'usd'
DEFAULT_PHONE_COUNTRY_CODE = '1'

STRIPE_SECRET_KEY = 'sk_test_portal'
STRIPE_WEBHOOK_SECRET = 'whsec_test_portal'
WHATSAPP_BACKEND = 'apps.notifications.messaging.ConsoleMessenger'

CELERY_TASK_ALWAYS_EAGER = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'
