from __future__ import annotations

from charm_studio.models import BraceletKind, CharmKind
from charm_studio.store import Store

BRACELETS = [
    # slug, name, path, length_mm, base_price_cents
    ("classic", "Classic Bracelet", "M 100 150 Q 500 130 900 150", 180, 2500),
    ("elegant", "Elegant Bracelet", "M 100 150 Q 300 120 500 140 Q 700 160 900 150", 200, 3500),
    ("modern", "Modern Bracelet", "M 100 150 L 300 140 L 500 150 L 700 140 L 900 150", 190, 4000),
]

CHAINS = [
    ("anchor-chain", "Anchor Chain", "M 100 150 C 300 100 700 100 900 150", 450, 3000),
]

CHARMS = [
    # sku, name, price_cents, width_mm, height_mm, max_per_bracelet, stock
    ("CHARM-HEART-001", "Gold Heart", 850, 12, 12, 5, 100),
    ("CHARM-STAR-001", "Silver Star", 750, 14, 14, 6, 150),
    ("CHARM-FLOWER-001", "Rose Gold Flower", 1200, 16, 16, 4, 80),
    ("CHARM-BUTTERFLY-001", "Blue Butterfly", 950, 18, 12, 3, 60),
]

BEADS = [
    ("BEAD-PEARL-008", "Pearl 8mm", 300, 8, 8, 10, 500),
    ("BEAD-ONYX-006", "Onyx 6mm", 200, 6, 6, 10, 400),
]


def seed(store: Store) -> None:
    for slug, name, path, length_mm, price in BRACELETS:
        store.add_bracelet(slug, name, path, length_mm, price)
    for slug, name, path, length_mm, price in CHAINS:
        store.add_bracelet(slug, name, path, length_mm, price, kind=BraceletKind.CHAIN)

    for sku, name, price, width, height, max_per, stock in CHARMS:
        store.add_charm(sku, name, price, max_per, stock, width_mm=width, height_mm=height)
    for sku, name, price, width, height, max_per, stock in BEADS:
        store.add_charm(sku, name, price, max_per, stock, width_mm=width, height_mm=height, kind=CharmKind.BEAD)
