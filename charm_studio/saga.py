from __future__ import annotations

import random
import string
import time
from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, List, Optional, cast

from charm_studio.models import Design, DesignStatus, Order, OrderItem
from charm_studio.store import Store, new_id


class SagaError(Exception):
    pass


def order_number() -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def stock_needed(design: Design) -> Dict[str, int]:
    """Units per charm, summed over every placement of that charm."""
    needed: Counter = Counter()
    for p in design.placements:
        needed[p.charm_id] += p.quantity
    return dict(needed)


class Step(ABC):
    def __init__(self, store: Store, reference: str):
        self.store = store
        self.reference = reference

    @property
    def tag(self) -> str:
        return f"[order={self.reference}] "

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def execute(self) -> None: ...

    @abstractmethod
    def compensate(self) -> None: ...

    def run(self) -> None:
        self.store.log(f"{self.tag}STEP {self.name()}")
        self.execute()
        self.store.log(f"{self.tag}STEP {self.name()} OK")

    def run_compensation(self) -> None:
        self.store.log(f"{self.tag}COMPENSATE {self.name()}")
        self.compensate()
        self.store.log(f"{self.tag}COMPENSATE {self.name()} OK")


class ReserveStock(Step):
    def __init__(self, store: Store, reference: str, design: Design):
        super().__init__(store, reference)
        self.quantities = stock_needed(design)

    def name(self) -> str:
        return "ReserveStock"

    def execute(self) -> None:
        self.store.decrement_stock(self.quantities, tag=self.tag)

    def compensate(self) -> None:
        self.store.restore_stock(self.quantities, tag=self.tag)


class CreateOrder(Step):
    def __init__(self, store: Store, reference: str, design: Design, customer_email: Optional[str] = None):
        super().__init__(store, reference)
        self.design = design
        self.customer_email = customer_email
        self.order: Optional[Order] = None

    def name(self) -> str:
        return "CreateOrder"

    def execute(self) -> None:
        charms = {c.id: c for c in self.store.get_charms_by_ids(p.charm_id for p in self.design.placements)}
        items = [
            OrderItem(
                charm_id=p.charm_id,
                name=charms[p.charm_id].name if p.charm_id in charms else p.charm_id,
                quantity=p.quantity,
                price_cents=charms[p.charm_id].price_cents * p.quantity if p.charm_id in charms else 0,
            )
            for p in self.design.placements
        ]
        self.order = self.store.save_order(
            Order(
                id=new_id(),
                order_number=order_number(),
                design_id=self.design.id,
                payment_reference=self.reference,
                total_cents=self.design.total_cents,
                currency=self.design.currency,
                items=items,
                customer_email=self.customer_email,
            )
        )

    def compensate(self) -> None:
        if self.order:
            self.store.delete_order(self.order.id)


class MarkDesignOrdered(Step):
    def __init__(self, store: Store, reference: str, design_id: str):
        super().__init__(store, reference)
        self.design_id = design_id

    def name(self) -> str:
        return "MarkDesignOrdered"

    def execute(self) -> None:
        self.store.update_design_status(self.design_id, DesignStatus.ORDERED)

    def compensate(self) -> None:
        # Last step: nothing runs after it that could fail.
        self.store.log(f"{self.tag}design status has no compensation")


class FinalizeOrderSaga:
    """Stock, order and design status change together or not at all."""

    def __init__(self, store: Store):
        self.store = store

    def execute(
        self,
        reference: str,
        design: Design,
        customer_email: Optional[str] = None,
        fail_at_step: Optional[str] = None,
    ) -> Order:
        tag = f"[order={reference}] "
        self.store.log(f"{tag}SAGA START design={design.id} total={design.total_cents}")

        create_order = CreateOrder(self.store, reference, design, customer_email)
        steps: List[Step] = [
            ReserveStock(self.store, reference, design),
            create_order,
            MarkDesignOrdered(self.store, reference, design.id),
        ]

        completed: List[Step] = []
        try:
            for step in steps:
                if fail_at_step == step.name():
                    raise SagaError(f"Artificial failure at step {step.name()}")
                step.run()
                completed.append(step)
        except Exception as e:
            self.store.log(f"{tag}SAGA FAILED: {e}")
            for step in reversed(completed):
                try:
                    step.run_compensation()
                except Exception as comp_exc:
                    self.store.log(f"{tag}COMPENSATION FAILED at {step.name()}: {comp_exc}")
            self.store.log(f"{tag}SAGA END (failed)")
            raise

        self.store.log(f"{tag}SAGA OK")
        return cast(Order, create_order.order)
