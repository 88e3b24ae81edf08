from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BraceletKind(str, Enum):
    BRACELET = "BRACELET"
    CHAIN = "CHAIN"


class CharmKind(str, Enum):
    CHARM = "CHARM"
    BEAD = "BEAD"


class DesignStatus(str, Enum):
    DRAFT = "DRAFT"
    ORDERED = "ORDERED"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


@dataclass(slots=True)
class Bracelet:
    id: str
    slug: str
    name: str
    svg_path: str
    length_mm: float
    base_price_cents: int
    active: bool = True
    kind: BraceletKind = BraceletKind.BRACELET


@dataclass(slots=True)
class Charm:
    id: str
    sku: str
    name: str
    price_cents: int
    width_mm: float
    height_mm: float
    max_per_bracelet: int
    stock: int
    active: bool = True
    kind: CharmKind = CharmKind.CHARM


@dataclass(slots=True, frozen=True)
class Placement:
    """
    One charm on a design. Produced by the boundary schemas only, so the
    rest of the package can rely on its bounds.
    """

    charm_id: str
    t: float
    offset_mm: float = 0.0
    rotation_deg: float = 0.0
    z_index: int = 0
    quantity: int = 1


@dataclass(slots=True)
class Design:
    id: str
    bracelet_id: str
    placements: List[Placement]
    subtotal_cents: int
    discount_cents: int
    total_cents: int
    currency: str = "EUR"
    status: DesignStatus = DesignStatus.DRAFT
    created_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        data["created_at"] = self.created_at.isoformat()
        return data


@dataclass(slots=True, frozen=True)
class DesignSummary:
    id: str
    subtotal_cents: int
    discount_cents: int
    total_cents: int
    charm_count: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(slots=True)
class OrderItem:
    charm_id: str
    name: str
    quantity: int
    price_cents: int


@dataclass(slots=True)
class Order:
    id: str
    order_number: str
    design_id: str
    payment_reference: str
    total_cents: int
    currency: str
    items: List[OrderItem] = field(default_factory=list)
    customer_email: Optional[str] = None
    status: OrderStatus = OrderStatus.CONFIRMED
    created_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        data["created_at"] = self.created_at.isoformat()
        return data


@dataclass(slots=True)
class CheckoutSession:
    session_id: str
    design_id: str
    amount_cents: int
    currency: str
    url: str
    customer_email: Optional[str] = None
    order_id: Optional[str] = None
