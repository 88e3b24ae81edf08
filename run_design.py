from __future__ import annotations

import argparse
import logging
import sys

from charm_studio.config import Settings
from charm_studio.errors import CharmStudioError
from charm_studio.payments import MockPaymentProvider
from charm_studio.pricing import calculate_shipping, format_price
from charm_studio.seed import seed
from charm_studio.services import CheckoutService, DesignService
from charm_studio.store import Store


def parse_placement(text: str, charm_ids: dict) -> dict:
    """`SKU:T[:QTY[:OFFSET_MM[:ROTATION_DEG]]]` -> placement body."""
    parts = text.split(":")
    if len(parts) < 2:
        raise argparse.ArgumentTypeError(f"bad placement {text!r}, expected SKU:T[:QTY[:OFFSET[:ROT]]]")
    sku = parts[0]
    try:
        return {
            "charmId": charm_ids.get(sku, sku),
            "t": float(parts[1]),
            "quantity": int(parts[2]) if len(parts) > 2 else 1,
            "offsetMm": float(parts[3]) if len(parts) > 3 else 0.0,
            "rotationDeg": float(parts[4]) if len(parts) > 4 else 0.0,
        }
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"bad placement {text!r}: {e}") from e


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    p = argparse.ArgumentParser(description="Create one bracelet design, optionally check it out, and print logs.")
    p.add_argument("--bracelet", type=str, default="classic")
    p.add_argument("--place", action="append", default=[], metavar="SKU:T[:QTY]", help="Can be given several times")
    p.add_argument("--checkout", action="store_true", help="Pay with the mock provider and create the order")
    p.add_argument("--email", type=str, default=None)
    args = p.parse_args()

    settings = Settings.from_env()
    store = Store()
    seed(store)
    charm_ids = {c.sku: c.id for c in store.list_charms(active_only=False)}

    designs = DesignService(store, settings)
    checkout = CheckoutService(store, MockPaymentProvider(settings, auto_complete=True), settings)

    try:
        placements = [parse_placement(text, charm_ids) for text in args.place]
        summary = designs.create_design(args.bracelet, placements)

        print("\n=== DESIGN ===")
        print("id:", summary.id)
        print("charms:", summary.charm_count)
        print("subtotal:", format_price(summary.subtotal_cents, settings.currency, settings.locale))
        print("discount:", format_price(summary.discount_cents, settings.currency, settings.locale))
        print("total:", format_price(summary.total_cents, settings.currency, settings.locale))
        print("shipping:", format_price(calculate_shipping(summary.total_cents, settings), settings.currency, settings.locale))
        for item in designs.layout(summary.id):
            print(f"  {item.charm_name}: x={item.pose.x:.1f} y={item.pose.y:.1f} angle={item.pose.angle_deg:.1f}")

        if args.checkout:
            session = checkout.prepare_checkout(summary.id, args.email)
            order = checkout.finalize_order_from_payment_reference(session.session_id)
            print("\n=== ORDER ===")
            print("order:", order.order_number)
            print("paid:", format_price(order.total_cents, order.currency, settings.locale))
    except CharmStudioError as e:
        print("\n=== FAILED ===", file=sys.stderr)
        print(e.to_dict(), file=sys.stderr)
        return 1
    except argparse.ArgumentTypeError as e:
        p.error(str(e))
    return 0


if __name__ == "__main__":
    sys.exit(main())
