"""Exceptions raised by the fleet calculator.

Every error raised by the calculator is local to the input it was given, so
callers can catch these before handing data to the persistence or
presentation layers.
"""


class ValidationError(ValueError):
    """Raised when loan terms, period financials or parsed input are malformed."""


class PaymentError(ValidationError):
    """Raised when a payment action cannot be applied to a schedule."""
