"""Domain exceptions.

All domain-level errors raised while mutating a cart. They are raised
synchronously at the offending call, before any cart state is touched,
so a failed mutation never leaves a partially updated cart behind.
Pricing itself never raises.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Cart Errors
# ============================================================================


class CartError(DomainError):
    """Base class for cart-related errors."""

    pass


class MissingRequiredFieldError(CartError):
    """Raised when an added item lacks a required field."""

    def __init__(self, field: str) -> None:
        """Initialize missing required field error.

        Args:
            field: Name of the missing field.
        """
        super().__init__(
            f"Missing required field '{field}'",
            details={"field": field},
        )


class InvalidQuantityError(CartError):
    """Raised when an invalid quantity is provided."""

    def __init__(self, quantity: Any, reason: str = "Quantity must be a positive integer") -> None:
        """Initialize invalid quantity error.

        Args:
            quantity: The invalid quantity value.
            reason: Explanation of why the quantity is invalid.
        """
        super().__init__(
            f"Invalid quantity {quantity!r}: {reason}",
            details={"quantity": str(quantity), "reason": reason},
        )


class InvalidPriceError(CartError):
    """Raised when a non-numeric price is provided."""

    def __init__(self, price: Any) -> None:
        super().__init__(
            f"Invalid price {price!r}: Price must be numeric",
            details={"price": str(price)},
        )


class InvalidWeightError(CartError):
    """Raised when a non-numeric weight is provided."""

    def __init__(self, weight: Any) -> None:
        super().__init__(
            f"Invalid weight {weight!r}: Weight must be numeric",
            details={"weight": str(weight)},
        )


class InvalidAttributesError(CartError):
    """Raised when attributes (or a similar keyed payload) have the wrong shape."""

    def __init__(self, field: str = "attributes", reason: str = "Expected a mapping") -> None:
        """Initialize invalid attributes error.

        Args:
            field: Name of the offending field.
            reason: Explanation of what was expected.
        """
        super().__init__(
            f"Invalid {field}: {reason}",
            details={"field": field, "reason": reason},
        )


class InvalidConditionsError(CartError):
    """Raised when conditions are not a list of Condition objects."""

    def __init__(self, reason: str = "Expected a list of conditions") -> None:
        super().__init__(
            f"Invalid conditions: {reason}",
            details={"reason": reason},
        )


class RowNotFoundError(CartError):
    """Raised when a row key is not present in the cart."""

    def __init__(self, instance: str, row_id: str) -> None:
        """Initialize row not found error.

        Args:
            instance: Cart instance name.
            row_id: The unknown row key.
        """
        super().__init__(
            f"Row {row_id} not found in cart '{instance}'",
            details={"instance": instance, "row_id": row_id},
        )


class InstanceNameRequiredError(CartError):
    """Raised when switching to an empty or blank cart instance name."""

    def __init__(self) -> None:
        super().__init__("Cart instance name cannot be empty")


class UnresolvableAssociatedModelError(CartError):
    """Raised when associating a cart with an unknown record type."""

    def __init__(self, model_name: str) -> None:
        """Initialize unresolvable associated model error.

        Args:
            model_name: The unknown model name.
        """
        super().__init__(
            f"Cannot associate cart with unknown model '{model_name}'",
            details={"model_name": model_name},
        )
