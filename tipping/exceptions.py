"""Exceptions raised by input validation and the store.

The distribution engine itself never raises these; they belong to the
callers that validate input before invoking it.
"""


class TipPoolError(ValueError):
    """Base class for user-facing tip pool errors."""


class InvalidAmountError(TipPoolError):
    """Tip amount is missing, non-numeric or not positive."""


class StaffValidationError(TipPoolError):
    """Staff form data failed validation (name, role or shift values)."""


class StaffNotFoundError(TipPoolError):
    """No staff member with the given id exists in the roster."""


class CalculationNotFoundError(TipPoolError):
    """No saved calculation with the given id exists in the history."""


class EmptySelectionError(TipPoolError):
    """A calculation produced no line items, so there is nothing to save."""
