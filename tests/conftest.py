"""Pytest fixtures: a small catalog with predictable ids."""

import pytest

from charm_studio.payments import MockPaymentProvider
from charm_studio.services import CheckoutService, DesignService
from charm_studio.store import Store

STRAIGHT_PATH = "M 100 150 L 900 150"


@pytest.fixture
def store() -> Store:
    store = Store()

    store.add_bracelet("classic", "Classic Bracelet", STRAIGHT_PATH, length_mm=180, base_price_cents=3000, bracelet_id="b-classic")
    store.add_bracelet(
        "elegant", "Elegant Bracelet", "M 100 150 Q 500 50 900 150", length_mm=200, base_price_cents=3500, bracelet_id="b-elegant"
    )
    store.add_bracelet("vintage", "Vintage Bracelet", STRAIGHT_PATH, length_mm=180, base_price_cents=2000, active=False)

    store.add_charm("CHARM-001", "Gold Heart", price_cents=500, max_per_bracelet=10, stock=100, charm_id="charm1")
    store.add_charm("CHARM-002", "Silver Star", price_cents=400, max_per_bracelet=10, stock=100, charm_id="charm2")
    store.add_charm("CHARM-003", "Rare Pearl", price_cents=1000, max_per_bracelet=5, stock=3, charm_id="scarce")
    store.add_charm("CHARM-004", "Blue Butterfly", price_cents=950, max_per_bracelet=2, stock=50, charm_id="limited")
    store.add_charm("CHARM-005", "Old Anchor", price_cents=300, max_per_bracelet=5, stock=10, active=False, charm_id="retired")

    return store


@pytest.fixture
def designs(store) -> DesignService:
    return DesignService(store)


@pytest.fixture
def payments() -> MockPaymentProvider:
    return MockPaymentProvider()


@pytest.fixture
def checkout(store, payments) -> CheckoutService:
    return CheckoutService(store, payments)


def placement(charm_id: str, quantity: int = 1, t: float = 0.5, **extra) -> dict:
    body = {"charmId": charm_id, "t": t, "offsetMm": 0, "rotationDeg": 0, "zIndex": 0, "quantity": quantity}
    body.update(extra)
    return body
