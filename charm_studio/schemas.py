"""
Boundary schemas for raw request bodies.

Raw input is parsed once here; everything past this module works with typed
`Placement` values. Field errors are collected from pydantic and reported
together, one `FieldError` per offending field.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from charm_studio.errors import DesignValidationError, FieldError
from charm_studio.models import Placement

MAX_PLACEMENTS = 50

FIELD_BOUNDS: Dict[str, Tuple[float, Optional[float]]] = {
    "t": (0, 1),
    "offsetMm": (-50, 50),
    "rotationDeg": (-180, 180),
    "zIndex": (0, None),
    "quantity": (1, 10),
    "placements": (0, MAX_PLACEMENTS),
}


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class PlacementSchema(_Schema):
    charm_id: str = Field(..., alias="charmId", min_length=1)
    t: float = Field(..., ge=0, le=1, allow_inf_nan=False, strict=True)
    offset_mm: float = Field(0.0, alias="offsetMm", ge=-50, le=50, allow_inf_nan=False, strict=True)
    rotation_deg: float = Field(0.0, alias="rotationDeg", ge=-180, le=180, allow_inf_nan=False, strict=True)
    z_index: int = Field(0, alias="zIndex", ge=0, strict=True)
    quantity: int = Field(1, ge=1, le=10, strict=True)

    def to_placement(self) -> Placement:
        return Placement(
            charm_id=self.charm_id,
            t=self.t,
            offset_mm=self.offset_mm,
            rotation_deg=self.rotation_deg,
            z_index=self.z_index,
            quantity=self.quantity,
        )


class DesignCreateSchema(_Schema):
    bracelet_slug: str = Field(..., alias="braceletSlug", min_length=1)
    placements: List[PlacementSchema] = Field(default_factory=list, max_length=MAX_PLACEMENTS)

    def to_placements(self) -> List[Placement]:
        return [p.to_placement() for p in self.placements]


class DesignUpdateSchema(_Schema):
    design_id: str = Field(..., alias="designId", min_length=1)
    placements: List[PlacementSchema] = Field(default_factory=list, max_length=MAX_PLACEMENTS)

    def to_placements(self) -> List[Placement]:
        return [p.to_placement() for p in self.placements]


class ShippingAddressSchema(_Schema):
    name: str = Field(..., min_length=1)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., alias="postalCode", min_length=1)
    country: str = Field(..., min_length=2)


class CheckoutSchema(_Schema):
    design_id: str = Field(..., alias="designId", min_length=1)
    customer_email: Optional[str] = Field(None, alias="customerEmail", pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    shipping_address: Optional[ShippingAddressSchema] = Field(None, alias="shippingAddress")


_ALIASES = {
    "charm_id": "charmId",
    "offset_mm": "offsetMm",
    "rotation_deg": "rotationDeg",
    "z_index": "zIndex",
    "bracelet_slug": "braceletSlug",
    "design_id": "designId",
}


def field_errors(exc: ValidationError) -> List[FieldError]:
    errors: List[FieldError] = []
    for err in exc.errors():
        loc = [_ALIASES.get(str(part), str(part)) for part in err["loc"]]
        path = ".".join(loc) or "body"
        errors.append(FieldError(path, err["msg"], FIELD_BOUNDS.get(loc[-1]) if loc else None))
    return errors


S = TypeVar("S", bound=_Schema)


def parse(schema: Type[S], data: Any) -> S:
    """Validate `data` against `schema`, raising every field error at once."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise DesignValidationError(field_errors(e)) from e
