from __future__ import annotations

from typing import List, Optional, Sequence, Tuple


class CharmStudioError(Exception):
    http_status = 500
    kind = "internal"

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": str(self)}


# --- input errors (400) ---


class FieldError(CharmStudioError):
    http_status = 400
    kind = "input"

    def __init__(self, field: str, message: str, allowed: Optional[Tuple[float, Optional[float]]] = None):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message
        self.allowed = allowed

    def to_dict(self) -> dict:
        data = {"error": "FieldError", "field": self.field, "message": self.message}
        if self.allowed is not None:
            data["allowed"] = list(self.allowed)
        return data


class InvalidCheckoutAmount(CharmStudioError):
    http_status = 400
    kind = "input"

    def __init__(self, design_id: str, amount_cents: int):
        super().__init__(f"Design {design_id} has nothing to pay: amount {amount_cents}")
        self.design_id = design_id
        self.amount_cents = amount_cents


class PaymentNotCompleted(CharmStudioError):
    http_status = 400
    kind = "input"

    def __init__(self, reference: str):
        super().__init__(f"Payment {reference} not completed")
        self.reference = reference


# --- not found (404) ---


class BraceletNotFound(CharmStudioError):
    http_status = 404
    kind = "not_found"

    def __init__(self, slug: str):
        super().__init__(f"Bracelet {slug} not found")
        self.slug = slug


class BraceletInactive(CharmStudioError):
    http_status = 404
    kind = "not_found"

    def __init__(self, slug: str):
        super().__init__(f"Bracelet {slug} is inactive")
        self.slug = slug


class UnknownCharm(CharmStudioError):
    http_status = 404
    kind = "not_found"

    def __init__(self, charm_id: str):
        super().__init__(f"Charm with ID {charm_id} not found or inactive")
        self.charm_id = charm_id


class DesignNotFound(CharmStudioError):
    http_status = 404
    kind = "not_found"

    def __init__(self, design_id: str):
        super().__init__(f"Design {design_id} not found")
        self.design_id = design_id


class OrderNotFound(CharmStudioError):
    http_status = 404
    kind = "not_found"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


# --- conflicts (409) ---


class InsufficientStock(CharmStudioError):
    http_status = 409
    kind = "conflict"

    def __init__(self, charm_id: str, name: str, available: int, requested: int):
        super().__init__(f"Insufficient stock for {name}. Available: {available}")
        self.charm_id = charm_id
        self.name = name
        self.available = available
        self.requested = requested


class PlacementLimitExceeded(CharmStudioError):
    http_status = 409
    kind = "conflict"

    def __init__(self, charm_id: str, name: str, limit: int):
        super().__init__(f"Maximum {limit} {name} charms allowed per bracelet")
        self.charm_id = charm_id
        self.name = name
        self.limit = limit


class AlreadyOrdered(CharmStudioError):
    http_status = 409
    kind = "conflict"

    def __init__(self, design_id: str):
        super().__init__(f"Design {design_id} has already been ordered")
        self.design_id = design_id


class DuplicateOrder(CharmStudioError):
    http_status = 409
    kind = "conflict"

    def __init__(self, payment_reference: str):
        super().__init__(f"Order for payment {payment_reference} already exists")
        self.payment_reference = payment_reference


# --- collaborators (5xx) ---


class PaymentProviderError(CharmStudioError):
    http_status = 502
    kind = "collaborator"


# --- geometry ---


class InvalidGeometry(CharmStudioError):
    """Corrupt path data or a non-positive physical length in the catalog."""

    http_status = 500
    kind = "configuration"


class DesignValidationError(CharmStudioError):
    """All problems found in one submitted design, reported together."""

    def __init__(self, errors: Sequence[CharmStudioError]):
        self.errors: List[CharmStudioError] = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors) or "invalid design")

    @property
    def http_status(self) -> int:  # type: ignore[override]
        kinds = {e.kind for e in self.errors}
        if "input" in kinds or not kinds:
            return 400
        if "not_found" in kinds:
            return 404
        return 409

    @property
    def kind(self) -> str:  # type: ignore[override]
        return {400: "input", 404: "not_found", 409: "conflict"}[self.http_status]

    def to_dict(self) -> dict:
        return {"error": "Invalid data", "details": [e.to_dict() for e in self.errors]}
