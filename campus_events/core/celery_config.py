from celery import Celery

from campus_events.core.config import get_redis_url


def make_celery(app_name: str = "campus_events") -> Celery:
    redis_url = get_redis_url()
    celery = Celery(app_name, broker=redis_url, backend=redis_url, include=["campus_events.tasks"])
    celery.conf.task_serializer = "json"
    celery.conf.result_serializer = "json"
    celery.conf.accept_content = ["json"]
    celery.conf.result_persistent = False
    celery.conf.task_track_started = True
    # Trigger handlers are idempotent, so redelivery after a worker crash is safe
    celery.conf.task_acks_late = True
    celery.conf.task_reject_on_worker_lost = True
    return celery


celery_app = make_celery()
