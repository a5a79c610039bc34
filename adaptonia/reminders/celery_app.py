from celery import Celery
from kombu import Queue
from .config import settings


celery_app = Celery(
    "reminders",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND or None,
)

celery_app.conf.update(
    task_acks_late=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    worker_prefetch_multiplier=1,
    worker_concurrency=settings.WORKER_CONCURRENCY,
    task_default_queue=settings.CELERY_QUEUE,
    task_queues=(Queue(settings.CELERY_QUEUE, durable=True),),
    # A cycle that outlives the scan interval is abandoned; its reminders stay pending
    task_time_limit=settings.SCHEDULER_SCAN_INTERVAL_SECONDS,
    include=["adaptonia.reminders.tasks"],
)

# Celery Beat schedule for periodic scanning
celery_app.conf.beat_schedule = {
    "scan-and-dispatch": {
        "task": "reminders.scan_and_dispatch",
        "schedule": settings.SCHEDULER_SCAN_INTERVAL_SECONDS,
    },
}
