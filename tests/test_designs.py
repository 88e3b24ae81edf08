"""Tests for creating, updating and laying out designs."""
import logging

import pytest

from conftest import placement

from charm_studio.errors import (
    AlreadyOrdered,
    BraceletInactive,
    BraceletNotFound,
    DesignNotFound,
    DesignValidationError,
    InsufficientStock,
    InvalidGeometry,
    PlacementLimitExceeded,
    UnknownCharm,
)
from charm_studio.models import DesignStatus, Placement

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def test_create_design_returns_priced_summary(designs, store):
    summary = designs.create_design("classic", [placement("charm1", quantity=5), placement("charm2", quantity=1)])

    assert summary.subtotal_cents == 3000 + 5 * 500 + 400
    assert summary.discount_cents == 295  # 5% of 5900
    assert summary.total_cents == 5605
    assert summary.charm_count == 6

    design = store.designs[summary.id]
    assert design.status == DesignStatus.DRAFT
    assert design.bracelet_id == "b-classic"
    assert design.currency == "EUR"
    assert [p.charm_id for p in design.placements] == ["charm1", "charm2"]


def test_round_trip_keeps_totals(designs):
    summary = designs.create_design("classic", [placement("charm1", quantity=10)])

    design = designs.get_design(summary.id)

    assert (design.subtotal_cents, design.discount_cents, design.total_cents) == (
        summary.subtotal_cents,
        summary.discount_cents,
        summary.total_cents,
    )


def test_stored_totals_are_not_recomputed(designs, store):
    summary = designs.create_design("classic", [placement("charm1", quantity=2)])

    store.update_charm("charm1", price_cents=9999)

    assert designs.get_design(summary.id).total_cents == summary.total_cents


def test_create_design_accepts_placement_values(designs):
    summary = designs.create_design("classic", [Placement(charm_id="charm2", t=0.2, quantity=2)])

    assert summary.subtotal_cents == 3800


def test_create_design_request_body(designs):
    summary = designs.create_design_request({"braceletSlug": "elegant", "placements": [placement("charm1")]})

    assert summary.total_cents == 4000


def test_unknown_bracelet(designs):
    with pytest.raises(BraceletNotFound) as exc:
        designs.create_design("nope", [])
    assert exc.value.http_status == 404


def test_inactive_bracelet(designs):
    with pytest.raises(BraceletInactive):
        designs.create_design("vintage", [])


def test_stock_conflict_on_create(designs, store):
    with pytest.raises(DesignValidationError) as exc:
        designs.create_design("classic", [placement("scarce", quantity=4)])

    (error,) = exc.value.errors
    assert isinstance(error, InsufficientStock)
    assert exc.value.http_status == 409
    assert store.designs == {}

    assert designs.create_design("classic", [placement("scarce", quantity=3)]).charm_count == 3


def test_business_errors_are_aggregated_and_nothing_is_saved(designs, store):
    with pytest.raises(DesignValidationError) as exc:
        designs.create_design(
            "classic",
            [
                placement("scarce", quantity=4),
                placement("limited", quantity=3),
                placement("retired"),
                placement("ghost"),
            ],
        )

    kinds = [type(e) for e in exc.value.errors]
    assert kinds == [InsufficientStock, PlacementLimitExceeded, UnknownCharm, UnknownCharm]
    assert exc.value.http_status == 404
    assert store.designs == {}
    assert store.charms["scarce"].stock == 3  # validation never touches stock


def test_field_errors_come_before_catalog_lookups(designs):
    with pytest.raises(DesignValidationError) as exc:
        designs.create_design("nope", [placement("charm1", t=1.5)])

    assert exc.value.errors[0].field == "placements.0.t"


def test_update_design_reprices(designs):
    summary = designs.create_design("classic", [placement("charm1")])

    updated = designs.update_design(summary.id, [placement("charm1", quantity=10)])

    assert updated.id == summary.id
    assert updated.total_cents == 7200
    assert designs.get_design(summary.id).total_cents == 7200


def test_update_ordered_design_is_rejected(designs, store):
    summary = designs.create_design("classic", [placement("charm1")])
    store.update_design_status(summary.id, DesignStatus.ORDERED)

    with pytest.raises(AlreadyOrdered):
        designs.update_design(summary.id, [placement("charm2")])


def test_status_never_goes_back(designs, store):
    summary = designs.create_design("classic", [])
    store.update_design_status(summary.id, DesignStatus.ORDERED)

    with pytest.raises(AlreadyOrdered):
        store.update_design_status(summary.id, DesignStatus.DRAFT)


def test_missing_design(designs):
    with pytest.raises(DesignNotFound):
        designs.get_design("missing")


def test_layout_orders_by_z_index_then_insertion(designs):
    summary = designs.create_design(
        "classic",
        [
            placement("charm1", t=0.1, zIndex=2),
            placement("charm2", t=0.2, zIndex=0),
            placement("limited", t=0.3, zIndex=2),
            placement("scarce", t=0.4, zIndex=1, offsetMm=-10),
        ],
    )

    layout = designs.layout(summary.id)

    assert [r.placement.charm_id for r in layout] == ["charm2", "scarce", "charm1", "limited"]
    # 800 px for 180 mm
    scarce = layout[1]
    assert scarce.pose.x == pytest.approx(100 + 0.4 * 800)
    assert scarce.pose.y == pytest.approx(150 - 10 * 800 / 180)
    assert scarce.width_px == pytest.approx(12 * 800 / 180)


def test_layout_with_corrupt_bracelet_length(designs, store):
    summary = designs.create_design("classic", [placement("charm1")])
    store.bracelets["b-classic"].length_mm = 0

    with pytest.raises(InvalidGeometry):
        designs.layout(summary.id)
