from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from charm_studio.errors import CharmStudioError, InsufficientStock, PlacementLimitExceeded, UnknownCharm
from charm_studio.models import Charm, Placement


def check_placement(placement: Placement, charm: Optional[Charm]) -> List[CharmStudioError]:
    if charm is None or not charm.active:
        return [UnknownCharm(placement.charm_id)]

    errors: List[CharmStudioError] = []
    if placement.quantity > charm.stock:
        errors.append(InsufficientStock(charm.id, charm.name, available=charm.stock, requested=placement.quantity))
    if placement.quantity > charm.max_per_bracelet:
        errors.append(PlacementLimitExceeded(charm.id, charm.name, limit=charm.max_per_bracelet))
    return errors


def validate_placements(placements: Iterable[Placement], charms_by_id: Mapping[str, Charm]) -> List[CharmStudioError]:
    errors: List[CharmStudioError] = []
    for placement in placements:
        errors.extend(check_placement(placement, charms_by_id.get(placement.charm_id)))
    return errors


@dataclass(slots=True)
class QuantityCheck:
    valid: bool
    errors: List[str] = field(default_factory=list)


def validate_charm_quantities(placements: Iterable[Placement], limits_by_charm_id: Dict[str, int]) -> QuantityCheck:
    """Every placement over its charm's per-bracelet limit; charms without a limit pass."""
    errors: List[str] = []
    for placement in placements:
        limit = limits_by_charm_id.get(placement.charm_id)
        if limit is not None and placement.quantity > limit:
            errors.append(f"Charm {placement.charm_id} exceeds maximum quantity of {limit}")
    return QuantityCheck(valid=not errors, errors=errors)
