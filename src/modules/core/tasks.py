"""Outbox relay: publishes committed domain events to the in-process bus."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

MAX_RELAY_RETRIES = 5


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int | None = None) -> dict:
    """Publish pending outbox rows to the in-process event bus.

    Rows are locked with ``skip_locked`` so concurrent workers never relay
    the same event twice.  A handler failure marks only that row as failed.
    """
    limit = batch_size or settings.OUTBOX_RELAY_BATCH_SIZE
    published = failed = 0

    with transaction.atomic():
        rows = list(
            OutboxEvent.objects.relayable(MAX_RELAY_RETRIES)
            .select_for_update(skip_locked=True)[:limit]
        )
        for row in rows:
            try:
                event = DomainEvent.rebuild(row.event_type, row.payload)
                event_bus.publish(event)
            except Exception as exc:  # noqa: BLE001 - recorded on the row
                logger.warning(
                    "outbox.relay_failed",
                    outbox_id=str(row.id),
                    event_type=row.event_type,
                    error=str(exc),
                )
                row.mark_as_failed(str(exc))
                failed += 1
                continue
            row.mark_as_published()
            published += 1

    logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
