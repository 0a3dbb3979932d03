# repairdesk/celery.py

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'repairdesk.settings')

app = Celery('repairdesk')

app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()

app.conf.update(
    task_track_started=True,
    task_time_limit=10 * 60,  # 10m hard
    task_soft_time_limit=8 * 60,  # 8m soft
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)
