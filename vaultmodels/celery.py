import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'vaultmodels.settings')

app = Celery('vaultmodels')

# CELERY_* settings, including the broker TLS options outside local envs
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()
