"""Error taxonomy shared by every bounded context.

Module-level ``exceptions.py`` files subclass one of these so callers can
tell an expected concurrency conflict apart from a bug or an outage.
"""

from __future__ import annotations


class DomainError(Exception):
    """Root of every business-rule failure raised by the service layer."""


class DomainValidationError(DomainError):
    """Malformed or unauthorized input; rejected before any state is touched."""


class NotFoundError(DomainError):
    """The referenced aggregate does not exist."""


class ConflictError(DomainError):
    """The operation's precondition no longer holds (expected under concurrency)."""


class UnavailableError(DomainError):
    """An external collaborator could not satisfy the request."""


class PersistenceError(DomainError):
    """Storage-layer failure; retryable, no partial state was left behind."""
