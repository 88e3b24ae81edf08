from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict

from charm_studio.config import DEFAULT_SETTINGS, Settings
from charm_studio.errors import PaymentProviderError


@dataclass(slots=True, frozen=True)
class PaymentSession:
    url: str
    session_id: str


class PaymentProvider(ABC):
    @abstractmethod
    def create_payment_session(self, amount_cents: int, currency: str, reference: str) -> PaymentSession: ...

    @abstractmethod
    def verify_payment_completed(self, session_id: str) -> bool: ...


class MockPaymentProvider(PaymentProvider):
    """
    Development provider: no network, sessions live in memory.

    With `auto_complete` every session counts as paid right away, like the
    storefront's mock checkout; otherwise call `complete()` to simulate the
    customer paying.
    """

    def __init__(self, settings: Settings = DEFAULT_SETTINGS, auto_complete: bool = False):
        self.settings = settings
        self.auto_complete = auto_complete
        self.paid: Dict[str, bool] = {}
        self.references: Dict[str, str] = {}
        self._counter = itertools.count(1)

    def create_payment_session(self, amount_cents: int, currency: str, reference: str) -> PaymentSession:
        if amount_cents <= 0:
            raise PaymentProviderError(f"Invalid amount {amount_cents} for {reference}")
        session_id = f"mock_session_{next(self._counter)}"
        self.paid[session_id] = self.auto_complete
        self.references[session_id] = reference
        return PaymentSession(url=f"{self.settings.app_url}/success?design={reference}&mock=1", session_id=session_id)

    def complete(self, session_id: str) -> None:
        if session_id not in self.paid:
            raise PaymentProviderError(f"Unknown session {session_id}")
        self.paid[session_id] = True

    def verify_payment_completed(self, session_id: str) -> bool:
        return self.paid.get(session_id, False)


def get_payment_provider(settings: Settings = DEFAULT_SETTINGS) -> PaymentProvider:
    if settings.payment_provider == "mock":
        return MockPaymentProvider(settings)
    raise PaymentProviderError(f"Payment provider {settings.payment_provider!r} is not configured")
