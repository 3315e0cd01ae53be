from celery import Celery

from contractgen.core.config import settings

celery_app = Celery(
    "contractgen",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.task_routes = {"contractgen.tasks.*": {"queue": "contract-tasks"}}
# audit events are fire-and-forget; never stall a request retrying the broker
celery_app.conf.task_publish_retry = False
celery_app.conf.broker_connection_timeout = 2
celery_app.autodiscover_tasks(["contractgen.tasks"])
