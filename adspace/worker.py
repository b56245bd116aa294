"""Celery worker configuration.

Periodic jobs:
- Booking lifecycle sweep (activate/complete bookings whose dates elapsed)
- Monthly revenue reconciliation for the previous month
"""

from celery import Celery
from celery.schedules import crontab

from adspace.config import settings

celery_app = Celery(
    "adspace_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["adspace.tasks"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.timezone,
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,
    task_soft_time_limit=540,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=86400,

    # Retry settings
    task_default_retry_delay=60,
    task_max_retries=3,

    beat_schedule={
        "advance-booking-lifecycles": {
            "task": "adspace.tasks.advance_booking_lifecycles",
            "schedule": crontab(minute=f"*/{settings.lifecycle_sweep_minutes}"),
        },
        # 1st of every month, for the month that just ended
        "reconcile-previous-month": {
            "task": "adspace.tasks.reconcile_previous_month",
            "schedule": crontab(day_of_month=1, hour=settings.reconciliation_hour, minute=0),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
