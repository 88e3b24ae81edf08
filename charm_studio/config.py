from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class Settings:
    """
    Storefront settings. Amounts are integer cents.

    `discount_tiers` is a list of (min_charm_count, percent) ordered from the
    highest tier down; the first tier whose threshold is met wins.
    """

    currency: str = "EUR"
    locale: str = "nl-NL"
    app_url: str = "http://localhost:3000"
    payment_provider: str = "mock"

    free_shipping_threshold_cents: int = 7500
    shipping_flat_rate_cents: int = 495
    discount_tiers: Tuple[Tuple[int, int], ...] = field(default=((10, 10), (5, 5)))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            currency=env.get("CHARM_STUDIO_CURRENCY", defaults.currency).upper(),
            locale=env.get("CHARM_STUDIO_LOCALE", defaults.locale),
            app_url=env.get("CHARM_STUDIO_APP_URL", defaults.app_url).rstrip("/"),
            payment_provider=env.get("CHARM_STUDIO_PAYMENT_PROVIDER", defaults.payment_provider),
            free_shipping_threshold_cents=int(
                env.get("CHARM_STUDIO_FREE_SHIPPING_CENTS", defaults.free_shipping_threshold_cents)
            ),
            shipping_flat_rate_cents=int(env.get("CHARM_STUDIO_SHIPPING_CENTS", defaults.shipping_flat_rate_cents)),
        )


DEFAULT_SETTINGS = Settings()
