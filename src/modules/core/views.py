import time
from typing import Any, Dict

import structlog
from django.db import DatabaseError, connections
from django.db.models import Min
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.core.tasks import MAX_RELAY_RETRIES

logger = structlog.get_logger(__name__)


def _probe_database() -> Dict[str, Any]:
    start = time.monotonic()
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def _outbox_backlog() -> Dict[str, Any]:
    """Events still waiting for the relay; informational, never fails the probe."""
    backlog = OutboxEvent.objects.relayable(MAX_RELAY_RETRIES)
    oldest = backlog.aggregate(oldest=Min("created_at"))["oldest"]
    return {
        "pending": backlog.count(),
        "oldest_age_s": (
            round((timezone.now() - oldest).total_seconds(), 1) if oldest else None
        ),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Liveness probe: the service is healthy when its database answers."""
    services: Dict[str, Dict[str, Any]] = {}

    try:
        services["database"] = _probe_database()
    except DatabaseError:
        services["database"] = {"status": "down"}
        logger.error("health_check_db_failure")
    else:
        services["outbox"] = _outbox_backlog()

    healthy = services["database"]["status"] == "up"
    logger.info("health_check_completed", status="healthy" if healthy else "unhealthy")

    return JsonResponse(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
