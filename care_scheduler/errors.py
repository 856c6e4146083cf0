"""
Typed errors raised by the scheduling core.

Every error carries a stable ``code`` tag so callers (and the HTTP layer) can
tell caller-fixable problems apart from transient store failures.
"""

from typing import Optional


class CareSchedulerError(Exception):
    """Base class for all errors surfaced by the scheduling core"""

    code = "error"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CareSchedulerError):
    """Caller-fixable input problem (e.g. end before start). Never retried."""

    code = "validation_error"


class SchedulingConflict(CareSchedulerError):
    """The worker already has an overlapping, non-cancelled appointment"""

    code = "scheduling_conflict"

    def __init__(self, message: str, conflicting_appointment_id: Optional[str] = None):
        super().__init__(message)
        self.conflicting_appointment_id = conflicting_appointment_id


class HasDependents(CareSchedulerError):
    """Deletion blocked by a record that still references the target"""

    code = "has_dependents"


class DuplicateInvoice(CareSchedulerError):
    """An invoice already exists for the target appointment"""

    code = "duplicate_invoice"


class NotFound(CareSchedulerError):
    """Referenced id does not resolve"""

    code = "not_found"

    def __init__(self, kind: str, record_id: Optional[str] = None):
        label = kind.replace("_", " ").capitalize()
        super().__init__(f"{label} not found" if record_id is None else f"{label} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class ConstraintViolation(CareSchedulerError):
    """The store rejected a write because of an integrity constraint"""

    code = "constraint_violation"

    def __init__(self, message: str, constraint: Optional[str] = None):
        super().__init__(message)
        self.constraint = constraint

    def mentions(self, *names: str) -> bool:
        """True when the violated constraint (or the driver message) names any of ``names``"""
        haystack = f"{self.constraint or ''} {self.message}"
        return any(name in haystack for name in names)


class PermissionDenied(CareSchedulerError):
    code = "permission_denied"


class AuthenticationError(CareSchedulerError):
    code = "authentication_failed"


class TransientStoreFailure(CareSchedulerError):
    """Network, timeout or lock contention in the store. Safe to retry with backoff."""

    code = "transient_store_failure"
    retryable = True
