"""Outbox writer shared by the order and payment repositories.

Must be called inside the caller's ``transaction.atomic()`` block so the
events commit (or roll back) together with the aggregate change.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List
from uuid import UUID

import structlog

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent, DomainEventMixin

logger = structlog.get_logger(__name__)


def flush_domain_events(entity: DomainEventMixin, topic: str) -> List[OutboxEvent]:
    """Persist the entity's pending domain events and clear them."""
    rows = [write_event(event, topic) for event in entity.domain_events]
    entity.clear_domain_events()
    return rows


def write_event(event: DomainEvent, topic: str) -> OutboxEvent:
    row = OutboxEvent.objects.create(
        event_type=event.event_name,
        aggregate_id=str(event.aggregate_id),
        payload=serialize_event(event),
        topic=topic,
    )
    logger.debug(
        "outbox.event_written",
        event_type=event.event_name,
        aggregate_id=str(event.aggregate_id),
        topic=topic,
    )
    return row


def serialize_event(event: DomainEvent) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
