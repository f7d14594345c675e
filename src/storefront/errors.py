"""Storefront error kinds.

Each kind extends one of Protean's exceptions so that the FastAPI
integration maps it onto an HTTP status without extra wiring:

    ValidationError subclasses      → 400
    ObjectNotFoundError subclasses  → 404

Validation kinds are raised with a ``{"field": ["message"]}`` dict like every
other Protean validation failure. Not-found kinds carry a plain message.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


# ---------------------------------------------------------------------------
# Validation kinds (400)
# ---------------------------------------------------------------------------
class InsufficientStock(ValidationError):
    """A reservation could not be satisfied at the moment of the write."""


class DuplicateReturn(ValidationError):
    """A return already exists for the product within the order."""


class ReturnNotFound(ValidationError):
    """No return request exists for the product."""


class AlreadyApproved(ValidationError):
    """The return request has already been approved."""


class ItemNotFound(ValidationError):
    """The product is no longer among the order's items."""


class ProductNotInOrder(ValidationError):
    """A return was requested for a product the order never contained."""


class NotReady(ValidationError):
    """The order is not in the status the transition requires."""


class AlreadyFinal(ValidationError):
    """The journey is already at its terminal stage."""


class InvalidStatus(ValidationError):
    """The requested status is outside the allowed set."""


class MissingCity(ValidationError):
    """The order has no shipping city to route against."""


# ---------------------------------------------------------------------------
# Not-found kinds (404)
# ---------------------------------------------------------------------------
class ProductNotFound(ObjectNotFoundError):
    pass


class NoFulfillmentCenter(ObjectNotFoundError):
    pass


class NoLocalStation(ObjectNotFoundError):
    pass


class NoAvailableAgent(ObjectNotFoundError):
    pass


class AssignmentNotFound(ObjectNotFoundError):
    """No order matches the agent and the expected delivery status."""
