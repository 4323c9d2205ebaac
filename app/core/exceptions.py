"""Errors raised by payment schedule operations.

Every error carries the user-facing message that is also pushed to the
notification sink, so callers can surface ``str(exc)`` as-is.
"""


class ReconciliationError(Exception):
    """Base class for rejected payment schedule operations."""
    pass


class NegativeRemainderError(ReconciliationError):
    """Invoice total dropped below the sum of already paid entries."""
    pass


class PaidEntryImmutableError(ReconciliationError):
    """Attempt to edit the amount of, or remove, a paid entry."""
    pass


class PaymentScheduleValidationError(ReconciliationError):
    """A new payment failed validation."""
    pass
