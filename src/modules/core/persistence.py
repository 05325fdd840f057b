"""Translation of storage failures into the domain error taxonomy."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from django.db import DatabaseError

from shared.domain.exceptions import PersistenceError

logger = structlog.get_logger(__name__)


@contextmanager
def storage_errors(
    event: str, error_class: type = PersistenceError, **context: Any
) -> Iterator[None]:
    """Re-raise ``DatabaseError`` as ``error_class`` after logging ``event``.

    Wrap the ``transaction.atomic()`` block, not its body, so the rollback
    has already happened when the domain error propagates.
    """
    try:
        yield
    except DatabaseError as exc:
        logger.error(event, error=str(exc), **context)
        raise error_class(str(exc)) from exc
