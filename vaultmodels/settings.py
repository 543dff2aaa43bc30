"""
Django settings for the vaultmodels project
"""
import os
import ssl
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

ENV = os.environ.get('ENV', 'local')

SECRET_KEY = os.environ.get('SECRET_KEY', 'django-insecure-vaultmodels-local-only')

DEBUG = os.environ.get('DEBUG', 'true' if ENV == 'local' else 'false').lower() == 'true'

ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', '*').split(',')

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'rest_framework',
    'vault',
    'people',
]

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

USE_TZ = True
TIME_ZONE = 'UTC'

# Vault transit encryption
VAULT_ENABLED = os.environ.get('VAULT_ENABLED', 'false').lower() == 'true'
VAULT_ADDRESS = os.environ.get('VAULT_ADDR', 'http://127.0.0.1:8200')
VAULT_TOKEN = os.environ.get('VAULT_TOKEN', '')
VAULT_NAMESPACE = os.environ.get('VAULT_NAMESPACE', '')
VAULT_APPLICATION = os.environ.get('VAULT_APPLICATION', 'vaultmodels')
VAULT_CONVERGENT_CONTEXT = os.environ.get('VAULT_CONVERGENT_CONTEXT', 'vaultmodels')
VAULT_TIMEOUT = int(os.environ.get('VAULT_TIMEOUT', 30))
VAULT_BATCH_SIZE = int(os.environ.get('VAULT_BATCH_SIZE', 250))
VAULT_LOCAL_SECRET_KEY = os.environ.get('VAULT_LOCAL_SECRET_KEY', SECRET_KEY)
VAULT_TRANSIT_CLIENT_CLASS = os.environ.get('VAULT_TRANSIT_CLIENT_CLASS') or None

# Celery
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'memory://')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'cache+memory://')
CELERY_TASK_ALWAYS_EAGER = ENV == 'local'
CELERY_BROKER_CA_CERT_PATH = os.environ.get('CELERY_BROKER_CA_CERT_PATH', '')

if ENV != 'local' and CELERY_BROKER_CA_CERT_PATH:
    CELERY_BROKER_USE_SSL = {
        'ssl_cert_reqs': ssl.CERT_REQUIRED,
        'ssl_ca_certs': CELERY_BROKER_CA_CERT_PATH,
    }

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'vault': {
            'handlers': ['console'],
            'level': os.environ.get('VAULT_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
