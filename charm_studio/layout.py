from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from charm_studio.errors import InvalidGeometry
from charm_studio.geometry import Pose, mm_to_px, parse_path, place_on_path
from charm_studio.models import Bracelet, Charm, Design, Placement

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RenderedPlacement:
    placement: Placement
    charm_name: str
    pose: Pose
    width_px: float
    height_px: float


def layout_design(design: Design, bracelet: Bracelet, charms_by_id: Dict[str, Charm]) -> List[RenderedPlacement]:
    """
    Pixel poses for every placement of a design, in drawing order.

    Drawing order is ascending z_index; placements sharing a z_index keep
    the order they were added in. Placements whose charm is missing from
    `charms_by_id` are skipped.
    """
    try:
        path = parse_path(bracelet.svg_path)
        # validates length_mm once for the whole design
        mm_to_px(1.0, bracelet.length_mm, path.length)
    except InvalidGeometry as e:
        logger.error("bracelet %s has corrupt geometry: %s", bracelet.slug, e)
        raise

    rendered: List[RenderedPlacement] = []
    for placement in sorted(design.placements, key=lambda p: p.z_index):
        charm = charms_by_id.get(placement.charm_id)
        if charm is None:
            continue
        pose = place_on_path(path, placement.t, placement.offset_mm, bracelet.length_mm, placement.rotation_deg)
        rendered.append(
            RenderedPlacement(
                placement=placement,
                charm_name=charm.name,
                pose=pose,
                width_px=mm_to_px(charm.width_mm, bracelet.length_mm, path.length),
                height_px=mm_to_px(charm.height_mm, bracelet.length_mm, path.length),
            )
        )
    return rendered
