from __future__ import annotations

import dataclasses
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from charm_studio.config import DEFAULT_SETTINGS, Settings
from charm_studio.errors import (
    AlreadyOrdered,
    BraceletInactive,
    BraceletNotFound,
    DesignNotFound,
    DesignValidationError,
    DuplicateOrder,
    InsufficientStock,
    InvalidCheckoutAmount,
    OrderNotFound,
    PaymentNotCompleted,
    UnknownCharm,
)
from charm_studio.layout import RenderedPlacement, layout_design
from charm_studio.models import Bracelet, CheckoutSession, Design, DesignStatus, DesignSummary, Order, Placement
from charm_studio.payments import PaymentProvider
from charm_studio.pricing import PricingResult, charm_count, price_design
from charm_studio.saga import FinalizeOrderSaga, stock_needed
from charm_studio.schemas import CheckoutSchema, DesignCreateSchema, DesignUpdateSchema, parse
from charm_studio.store import Store, new_id
from charm_studio.validation import validate_placements


def _raw(placement: Any) -> Any:
    if dataclasses.is_dataclass(placement) and not isinstance(placement, type):
        return dataclasses.asdict(placement)
    return placement


class DesignService:
    def __init__(self, store: Store, settings: Settings = DEFAULT_SETTINGS):
        self.store = store
        self.settings = settings

    def _resolve_bracelet(self, slug: str) -> Bracelet:
        bracelet = self.store.get_bracelet_by_slug(slug)
        if not bracelet:
            raise BraceletNotFound(slug)
        if not bracelet.active:
            raise BraceletInactive(slug)
        return bracelet

    def _check_and_price(self, bracelet: Bracelet, placements: List[Placement]) -> PricingResult:
        # one batch lookup; missing or inactive charms surface as UnknownCharm
        charms = {c.id: c for c in self.store.get_charms_by_ids(p.charm_id for p in placements)}
        errors = validate_placements(placements, charms)
        if errors:
            raise DesignValidationError(errors)
        return price_design(
            bracelet.base_price_cents,
            placements,
            {c.id: c.price_cents for c in charms.values() if c.active},
            self.settings,
        )

    def create_design_request(self, data: Any) -> DesignSummary:
        request = parse(DesignCreateSchema, data)
        bracelet = self._resolve_bracelet(request.bracelet_slug)
        placements = request.to_placements()
        pricing = self._check_and_price(bracelet, placements)

        design = Design(
            id=new_id(),
            bracelet_id=bracelet.id,
            placements=placements,
            subtotal_cents=pricing.subtotal_cents,
            discount_cents=pricing.discount_cents,
            total_cents=pricing.total_cents,
            currency=self.settings.currency,
            status=DesignStatus.DRAFT,
        )
        self.store.save_design(design)
        return DesignSummary(
            id=design.id,
            subtotal_cents=design.subtotal_cents,
            discount_cents=design.discount_cents,
            total_cents=design.total_cents,
            charm_count=charm_count(placements),
        )

    def create_design(self, bracelet_slug: str, placements: Iterable[Any]) -> DesignSummary:
        return self.create_design_request({"braceletSlug": bracelet_slug, "placements": [_raw(p) for p in placements]})

    def update_design(self, design_id: str, placements: Iterable[Any]) -> DesignSummary:
        request = parse(DesignUpdateSchema, {"designId": design_id, "placements": [_raw(p) for p in placements]})
        design = self.get_design(request.design_id)
        if design.status == DesignStatus.ORDERED:
            raise AlreadyOrdered(design.id)

        bracelet = self.store.get_bracelet(design.bracelet_id)
        if not bracelet:
            raise BraceletNotFound(design.bracelet_id)
        if not bracelet.active:
            raise BraceletInactive(bracelet.slug)

        placements_ = request.to_placements()
        pricing = self._check_and_price(bracelet, placements_)
        updated = replace(
            design,
            placements=placements_,
            subtotal_cents=pricing.subtotal_cents,
            discount_cents=pricing.discount_cents,
            total_cents=pricing.total_cents,
        )
        self.store.save_design(updated)
        return DesignSummary(
            id=updated.id,
            subtotal_cents=updated.subtotal_cents,
            discount_cents=updated.discount_cents,
            total_cents=updated.total_cents,
            charm_count=charm_count(placements_),
        )

    def get_design(self, design_id: str) -> Design:
        design = self.store.get_design(design_id)
        if not design:
            raise DesignNotFound(design_id)
        return design

    def layout(self, design_id: str) -> List[RenderedPlacement]:
        design = self.get_design(design_id)
        bracelet = self.store.get_bracelet(design.bracelet_id)
        if not bracelet:
            raise BraceletNotFound(design.bracelet_id)
        charms = {c.id: c for c in self.store.get_charms_by_ids(p.charm_id for p in design.placements)}
        return layout_design(design, bracelet, charms)


class CheckoutService:
    def __init__(self, store: Store, payments: PaymentProvider, settings: Settings = DEFAULT_SETTINGS):
        self.store = store
        self.payments = payments
        self.settings = settings
        self.saga = FinalizeOrderSaga(store)

        # reference -> (lock, number of callers holding or waiting for it)
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _reference_lock(self, reference: str) -> Iterator[None]:
        with self._locks_guard:
            lock, users = self._locks.get(reference, (threading.Lock(), 0))
            self._locks[reference] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                lock, users = self._locks[reference]
                if users == 1:
                    del self._locks[reference]
                else:
                    self._locks[reference] = (lock, users - 1)

    def _load_open_design(self, design_id: str) -> Design:
        design = self.store.get_design(design_id)
        if not design:
            raise DesignNotFound(design_id)
        if design.status == DesignStatus.ORDERED:
            raise AlreadyOrdered(design_id)
        return design

    def prepare_checkout(self, design_id: str, customer_email: Optional[str] = None) -> CheckoutSession:
        """
        Re-check stock and open a payment session for a DRAFT design.

        Stock may have moved since the design was created. This check is
        still advisory: the decrement at finalization is what guarantees it.
        """
        design = self._load_open_design(design_id)
        if design.total_cents <= 0:
            raise InvalidCheckoutAmount(design.id, design.total_cents)

        needed = stock_needed(design)
        charms = {c.id: c for c in self.store.get_charms_by_ids(needed)}
        for charm_id, qty in needed.items():
            charm = charms.get(charm_id)
            if not charm:
                raise UnknownCharm(charm_id)
            if charm.stock < qty:
                raise InsufficientStock(charm.id, charm.name, available=charm.stock, requested=qty)
        payment = self.payments.create_payment_session(design.total_cents, design.currency, design.id)
        session = CheckoutSession(
            session_id=payment.session_id,
            design_id=design.id,
            amount_cents=design.total_cents,
            currency=design.currency,
            url=payment.url,
            customer_email=customer_email,
        )
        self.store.save_session(session)
        self.store.log(f"[design={design.id}] checkout session {session.session_id} amount={session.amount_cents}")
        return session

    def prepare_checkout_request(self, data: Any) -> CheckoutSession:
        request = parse(CheckoutSchema, data)
        return self.prepare_checkout(request.design_id, request.customer_email)

    def finalize_order_from_payment_reference(self, reference: str) -> Order:
        """
        Turn a paid checkout session into an order. Safe to call repeatedly:
        once an order exists for `reference` it is returned unchanged.
        """
        with self._reference_lock(reference):
            existing = self.store.find_order_by_payment_reference(reference)
            if existing:
                self.store.log(f"[order={reference}] order already exists: {existing.order_number}")
                return existing

            if not self.payments.verify_payment_completed(reference):
                raise PaymentNotCompleted(reference)
            session = self.store.get_session(reference)
            if not session:
                raise PaymentNotCompleted(reference)

            design = self._load_open_design(session.design_id)
            try:
                order = self.saga.execute(reference, design, customer_email=session.customer_email)
            except DuplicateOrder:
                # another service instance finished first
                order = self.store.find_order_by_payment_reference(reference)
                if order is None:
                    raise
            session.order_id = order.id
            return order

    def get_order_by_reference(self, reference: str) -> Order:
        order = self.store.find_order_by_payment_reference(reference)
        if not order:
            raise OrderNotFound(reference)
        return order
