"""Celery app for the checkout service.

Settings are read from Django with the ``CELERY_`` prefix. The only
periodic job is the outbox relay (``core.relay_outbox_events``), scheduled
in ``CELERY_BEAT_SCHEDULE``.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("checkout")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
