"""Error taxonomy for the marketplace workflows.

Built on ``protean.exceptions``: validation failures are Protean
``ValidationError``s carrying a field-keyed ``messages`` dict, missing rows
raise ``ObjectNotFoundError`` and rejected lifecycle moves raise an
``InvalidStateError``. Store failures are ``DatabaseError``s.
"""

from protean.exceptions import (
    DatabaseError,
    InvalidStateError,
    ObjectNotFoundError,
    ProteanException,
    ValidationError,
)

__all__ = [
    "InvalidStatusTransition",
    "NotAuthenticatedError",
    "ObjectNotFoundError",
    "PartialCheckoutFailure",
    "ProteanException",
    "StoreError",
    "ValidationError",
]


class NotAuthenticatedError(ProteanException):
    """The call was made without an authenticated principal."""

    def __init__(self, message: str = "User not authenticated", **kwargs) -> None:
        super().__init__(message, **kwargs)


class InvalidStatusTransition(InvalidStateError):
    """A status change that the lifecycle state machine does not allow."""

    def __init__(self, current: str, target: str, entity: str = "order") -> None:
        self.current = current
        self.target = target
        self.entity = entity
        super().__init__(f"Cannot transition {entity} from {current} to {target}")


class StoreError(DatabaseError):
    """A store read, write, or procedure call failed.

    Workflow operations re-raise adapter failures wrapped in a uniform
    ``"Failed to <action>: <reason>"`` envelope, keeping the adapter error as
    ``original_exception`` and ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        original_exception: BaseException | None = None,
        action: str | None = None,
        **kwargs,
    ) -> None:
        super().__init__(message, original_exception=original_exception, **kwargs)
        self.action = action

    @classmethod
    def wrap(cls, action: str, exc: Exception) -> "StoreError":
        reason = str(exc) or exc.__class__.__name__
        return cls(f"Failed to {action}: {reason}", original_exception=exc, action=action)


class PartialCheckoutFailure(StoreError):
    """Checkout failed after at least one seller group had committed.

    Committed groups are not rolled back. ``created_orders`` holds the orders
    that exist; the cart still holds the items of ``failed_seller_id`` and of
    every seller in ``pending_seller_ids``.
    """

    def __init__(
        self,
        reason: str,
        created_orders: list,
        failed_seller_id: str,
        pending_seller_ids: list[str],
        original_exception: BaseException | None = None,
    ) -> None:
        self.created_orders = created_orders
        self.failed_seller_id = failed_seller_id
        self.pending_seller_ids = pending_seller_ids
        super().__init__(
            f"Failed to create order: {reason}",
            original_exception=original_exception,
            action="create order",
        )

    @property
    def created_order_numbers(self) -> list[str]:
        return [order.order_number for order in self.created_orders]
