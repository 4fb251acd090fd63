"""Celery application for crawl jobs and the periodic domain probe."""

import json
import logging
import sys
from datetime import datetime, timezone

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from app.config import get_settings

settings = get_settings()

# Loggers that get the JSON handler directly and stop propagating
OWNED_LOGGERS = ("celery", "app")


class JsonFormatter(logging.Formatter):
    """One JSON object per record so log shippers can read levels."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


@setup_logging.connect
def configure_logging(**kwargs):
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)

    for name in OWNED_LOGGERS:
        owned = logging.getLogger(name)
        owned.handlers.clear()
        owned.addHandler(handler)
        owned.setLevel(logging.DEBUG if settings.debug else logging.INFO)
        owned.propagate = False


celery_app = Celery(
    "llmstxt_generator",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.workers.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # A crawl holds a browser for minutes; one job per worker slot at a time
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    worker_hijack_root_logger=False,
    worker_redirect_stdouts=True,
    worker_redirect_stdouts_level="INFO",
    result_expires=3600,  # 1 hour
    beat_schedule={
        "check-domains-for-llms-txt": {
            "task": "app.workers.tasks.check_domains",
            "schedule": crontab(minute=0),  # Every hour, on the hour
        },
    },
)
