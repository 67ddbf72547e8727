"""Domain-level exceptions.

All register failures are expressed as subclasses of DomainException so the
CLI layer can catch them uniformly and display operator-friendly messages.
Every one of them is local and recoverable: the operator retries or moves on.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InvalidCodeLength(ValidationError):
    """An item code is shorter or longer than the accepted bounds."""


class InvalidOperation(ValidationError):
    """The requested mutation does not apply to the current cart."""


class NoActiveTransaction(ValidationError):
    """The operation needs a non-empty cart."""


class NumberFormatInvalid(ValidationError):
    """Operator-entered numeric text could not be parsed."""


class InsufficientTender(ValidationError):
    """The amount tendered does not cover the grand total."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ItemNotFound(EntityNotFoundError):
    """No price-book entry for the scanned or typed code."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Item not found for code '{code}'")
        self.code = code


class OrderNotFound(EntityNotFoundError):
    """No held order with the given id."""

    def __init__(self, order_id: int) -> None:
        super().__init__(f"Held order #{order_id} not found")
        self.order_id = order_id


class PersistenceFailed(DomainException):
    """A durable store could not complete a read or write."""


class DiscountServiceUnavailable(DomainException):
    """The discount service could not be reached or answered badly."""
