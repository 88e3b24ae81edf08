from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional

from charm_studio.errors import AlreadyOrdered, DesignNotFound, DuplicateOrder, InsufficientStock, OrderNotFound, UnknownCharm
from charm_studio.models import (
    Bracelet,
    BraceletKind,
    Charm,
    CharmKind,
    CheckoutSession,
    Design,
    DesignStatus,
    Order,
    OrderStatus,
)

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex


class Store:
    """
    In-memory record store behind the catalog, design and order operations.

    Catalog reads hand out copies, so callers can never mutate stock by
    accident; stock only changes through `decrement_stock` /
    `restore_stock`, which run under the store lock.

    `logs` keeps every audit line for the demo and the tests.
    """

    def __init__(self) -> None:
        self.bracelets: Dict[str, Bracelet] = {}
        self.charms: Dict[str, Charm] = {}
        self.designs: Dict[str, Design] = {}
        self.orders: Dict[str, Order] = {}
        self.sessions: Dict[str, CheckoutSession] = {}

        self._orders_by_reference: Dict[str, str] = {}
        self._lock = threading.RLock()

        self.logs: List[str] = []

    def log(self, message: str) -> None:
        self.logs.append(message)
        logger.info(message)

    # Catalog management
    def add_bracelet(
        self,
        slug: str,
        name: str,
        svg_path: str,
        length_mm: float,
        base_price_cents: int,
        active: bool = True,
        kind: BraceletKind = BraceletKind.BRACELET,
        bracelet_id: Optional[str] = None,
    ) -> Bracelet:
        if length_mm <= 0:
            raise ValueError(f"Bracelet {slug}: length_mm must be > 0")
        if any(b.slug == slug for b in self.bracelets.values()):
            raise ValueError(f"Bracelet slug {slug} already exists")
        bracelet = Bracelet(
            id=bracelet_id or new_id(),
            slug=slug,
            name=name,
            svg_path=svg_path,
            length_mm=length_mm,
            base_price_cents=base_price_cents,
            active=active,
            kind=kind,
        )
        self.bracelets[bracelet.id] = bracelet
        return bracelet

    def add_charm(
        self,
        sku: str,
        name: str,
        price_cents: int,
        max_per_bracelet: int,
        stock: int,
        width_mm: float = 12.0,
        height_mm: float = 12.0,
        active: bool = True,
        kind: CharmKind = CharmKind.CHARM,
        charm_id: Optional[str] = None,
    ) -> Charm:
        if stock < 0:
            raise ValueError(f"Charm {sku}: stock must be >= 0")
        if max_per_bracelet < 1:
            raise ValueError(f"Charm {sku}: max_per_bracelet must be >= 1")
        if any(c.sku == sku for c in self.charms.values()):
            raise ValueError(f"Charm sku {sku} already exists")
        charm = Charm(
            id=charm_id or new_id(),
            sku=sku,
            name=name,
            price_cents=price_cents,
            width_mm=width_mm,
            height_mm=height_mm,
            max_per_bracelet=max_per_bracelet,
            stock=stock,
            active=active,
            kind=kind,
        )
        self.charms[charm.id] = charm
        return charm

    def update_bracelet(self, bracelet_id: str, **changes) -> Bracelet:
        bracelet = self.bracelets.get(bracelet_id)
        if not bracelet:
            raise ValueError(f"Bracelet {bracelet_id} not found")
        updated = replace(bracelet, **changes)
        if updated.length_mm <= 0:
            raise ValueError(f"Bracelet {updated.slug}: length_mm must be > 0")
        self.bracelets[bracelet_id] = updated
        return updated

    def update_charm(self, charm_id: str, **changes) -> Charm:
        with self._lock:
            charm = self.charms.get(charm_id)
            if not charm:
                raise UnknownCharm(charm_id)
            updated = replace(charm, **changes)
            if updated.stock < 0 or updated.max_per_bracelet < 1:
                raise ValueError(f"Charm {updated.sku}: stock must be >= 0 and max_per_bracelet >= 1")
            self.charms[charm_id] = updated
            return updated

    def list_bracelets(self, active_only: bool = True) -> List[Bracelet]:
        return [replace(b) for b in self.bracelets.values() if b.active or not active_only]

    def list_charms(self, active_only: bool = True, kind: Optional[CharmKind] = None) -> List[Charm]:
        return [
            replace(c)
            for c in self.charms.values()
            if (c.active or not active_only) and (kind is None or c.kind == kind)
        ]

    # Catalog reads used by the core
    def get_bracelet(self, bracelet_id: str) -> Optional[Bracelet]:
        bracelet = self.bracelets.get(bracelet_id)
        return replace(bracelet) if bracelet else None

    def get_bracelet_by_slug(self, slug: str) -> Optional[Bracelet]:
        for bracelet in self.bracelets.values():
            if bracelet.slug == slug:
                return replace(bracelet)
        return None

    def get_active_bracelet(self, slug: str) -> Optional[Bracelet]:
        bracelet = self.get_bracelet_by_slug(slug)
        return bracelet if bracelet and bracelet.active else None

    def get_charms_by_ids(self, ids: Iterable[str]) -> List[Charm]:
        with self._lock:
            return [replace(self.charms[i]) for i in dict.fromkeys(ids) if i in self.charms]

    def get_charm_stock(self, charm_id: str) -> int:
        charm = self.charms.get(charm_id)
        if not charm:
            raise UnknownCharm(charm_id)
        return charm.stock

    # Stock
    def decrement_stock(self, quantities: Mapping[str, int], tag: str = "") -> None:
        """
        Take `quantities` out of stock for every charm, or for none of them.

        Each charm is checked for `stock >= quantity` and all decrements are
        applied under one lock, so concurrent checkouts cannot both take the
        last units.
        """
        with self._lock:
            for charm_id, qty in quantities.items():
                charm = self.charms.get(charm_id)
                if not charm:
                    raise UnknownCharm(charm_id)
                if charm.stock < qty:
                    raise InsufficientStock(charm.id, charm.name, available=charm.stock, requested=qty)
            for charm_id, qty in quantities.items():
                charm = self.charms[charm_id]
                charm.stock -= qty
                self.log(f"{tag}stock reserved: {charm.sku} qty={qty} (stock={charm.stock})")

    def restore_stock(self, quantities: Mapping[str, int], tag: str = "") -> None:
        with self._lock:
            for charm_id, qty in quantities.items():
                charm = self.charms.get(charm_id)
                if not charm:
                    continue
                charm.stock += qty
                self.log(f"{tag}stock released: {charm.sku} qty={qty} (stock={charm.stock})")

    # Designs
    def save_design(self, design: Design) -> str:
        with self._lock:
            current = self.designs.get(design.id)
            if current and current.status == DesignStatus.ORDERED:
                raise AlreadyOrdered(design.id)
            self.designs[design.id] = design
        self.log(f"[design={design.id}] saved status={design.status.value} total={design.total_cents}")
        return design.id

    def get_design(self, design_id: str) -> Optional[Design]:
        design = self.designs.get(design_id)
        return replace(design, placements=list(design.placements)) if design else None

    def update_design_status(self, design_id: str, status: DesignStatus) -> None:
        with self._lock:
            design = self.designs.get(design_id)
            if not design:
                raise DesignNotFound(design_id)
            # ORDERED is final
            if design.status == DesignStatus.ORDERED:
                raise AlreadyOrdered(design_id)
            design.status = status
        self.log(f"[design={design_id}] status={status.value}")

    # Checkout sessions
    def save_session(self, session: CheckoutSession) -> None:
        self.sessions[session.session_id] = session

    def get_session(self, session_id: str) -> Optional[CheckoutSession]:
        return self.sessions.get(session_id)

    # Orders
    def save_order(self, order: Order) -> Order:
        with self._lock:
            if order.payment_reference in self._orders_by_reference:
                raise DuplicateOrder(order.payment_reference)
            self.orders[order.id] = order
            self._orders_by_reference[order.payment_reference] = order.id
        self.log(f"[order={order.payment_reference}] order saved: {order.order_number}")
        return order

    def delete_order(self, order_id: str) -> None:
        with self._lock:
            order = self.orders.pop(order_id, None)
            if order:
                self._orders_by_reference.pop(order.payment_reference, None)

    def find_order_by_payment_reference(self, reference: str) -> Optional[Order]:
        order_id = self._orders_by_reference.get(reference)
        return self.orders.get(order_id) if order_id else None

    def list_orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        orders = sorted(self.orders.values(), key=lambda o: o.created_at, reverse=True)
        return [o for o in orders if status is None or o.status == status]

    def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        order = self.orders.get(order_id)
        if not order:
            raise OrderNotFound(order_id)
        order.status = OrderStatus(status)
        self.log(f"[order={order.payment_reference}] status={order.status.value}")
        return order
