from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Protocol

from babel.numbers import format_currency

from charm_studio.config import DEFAULT_SETTINGS, Settings


class Priced(Protocol):
    charm_id: str
    quantity: int


@dataclass(slots=True, frozen=True)
class PricingResult:
    subtotal_cents: int
    discount_cents: int
    total_cents: int


def _require_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer number of cents, got {type(value).__name__}")
    return value


def charm_count(placements: Iterable[Priced]) -> int:
    return sum(_require_int("quantity", p.quantity) for p in placements)


def discount_percent(count: int, settings: Settings = DEFAULT_SETTINGS) -> int:
    for threshold, percent in settings.discount_tiers:
        if count >= threshold:
            return percent
    return 0


def price_design(
    base_price_cents: int,
    placements: Iterable[Priced],
    charm_price_by_id: Mapping[str, int],
    settings: Settings = DEFAULT_SETTINGS,
) -> PricingResult:
    """
    Price a bracelet plus its charms, in cents.

    Placements whose charm id has no price add nothing to the sum but their
    quantity still counts toward the discount tier. The discount applies to
    the whole subtotal (bracelet included) and is rounded down.
    """
    placements = list(placements)
    base = _require_int("base_price_cents", base_price_cents)

    charms_sum = 0
    for p in placements:
        price = charm_price_by_id.get(p.charm_id)
        if price is None:
            continue
        charms_sum += _require_int("price_cents", price) * _require_int("quantity", p.quantity)

    subtotal = base + charms_sum
    discount = subtotal * discount_percent(charm_count(placements), settings) // 100
    return PricingResult(subtotal_cents=subtotal, discount_cents=discount, total_cents=subtotal - discount)


def calculate_shipping(total_cents: int, settings: Settings = DEFAULT_SETTINGS) -> int:
    if _require_int("total_cents", total_cents) >= settings.free_shipping_threshold_cents:
        return 0
    return settings.shipping_flat_rate_cents


def format_price(cents: int, currency: str = "EUR", locale: str = DEFAULT_SETTINGS.locale) -> str:
    """
    Display string for `cents` in `locale`, e.g. `€ 1.234,50` for nl-NL and
    `$1,234.50` for en-US. Locales may use `-` or `_` as the separator.
    """
    cents = _require_int("cents", cents)
    return format_currency(Decimal(cents) / 100, currency.upper(), locale=locale.replace("-", "_"))
