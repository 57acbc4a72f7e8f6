from celery import Celery
from kombu import Exchange, Queue

from app.config.settings import settings

celery_app = Celery("worker",
                    broker=settings.CELERY_BROKER_URL,
                    backend=settings.CELERY_RESULT_BACKEND)

task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('maintenance', Exchange('maintenance'), routing_key='maintenance'),
)

task_routes = {
    'cleanup_orphaned_files': {'queue': 'maintenance'},
}

celery_app.autodiscover_tasks(['app.tasks'], related_name='maintenance')

celery_app.conf.update(
    task_queues=task_queues,
    task_routes=task_routes,
    task_default_queue='default',
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_time_limit=3600,
    task_soft_time_limit=3000,
    broker_connection_timeout=30,
    broker_connection_max_retries=5,
    worker_concurrency=1,
)
