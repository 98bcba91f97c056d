"""
Celery app for the publisher's background jobs (topic tagging).

Tasks run with the request ID of the web request that queued them.
"""

import os
from celery import Celery
from celery.signals import task_prerun, task_postrun

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('manual_publisher')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

app.conf.task_routes = {
    'apps.publishing.tasks.*': {'queue': 'publishing'},
}
app.conf.task_default_queue = 'default'


def _task_headers(task) -> dict:
    # Protocol 2 exposes custom headers as request attributes
    headers = dict(getattr(task.request, 'headers', None) or {})
    request_id = getattr(task.request, 'request_id', None)
    if request_id and 'request_id' not in headers:
        headers['request_id'] = request_id
    return headers


@task_prerun.connect
def setup_task_request_context(task_id, task, *args, **kwargs):
    from apps.core.middleware import setup_celery_request_context
    setup_celery_request_context(_task_headers(task))


@task_postrun.connect
def cleanup_task_request_context(task_id, task, *args, **kwargs):
    from apps.core.middleware import clear_request_context
    clear_request_context()
