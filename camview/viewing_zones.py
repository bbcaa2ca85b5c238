"""
Viewing zone builder.

A viewing zone is a planar quadrilateral around the vehicle, given as a flat
row of 12 values [x1,y1,z1, x2,y2,z2, x3,y3,z3, x4,y4,z4] in metres, in the
vehicle's local frame.

Zones file layout (JSON or YAML):
    zones:                 # one row of 12 values per zone, ZONE_COUNT rows
      - [x1, y1, z1, x2, y2, z2, x3, y3, z3, x4, y4, z4]
      ...
    colors:                # optional, parallel to zones, RGBA in [0, 1]
      - [1.0, 0.0, 1.0, 0.7]
      ...

Zone ids are 1-based table positions and labels are "Zone <id>". A zone
whose corners are all at the origin marks an unused slot; it is built like
any other zone and dropped only when the scene is composed.
"""

import numpy as np
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple
import logging

from .config_reader import PathLike, find_field, number_array, read_config
from .errors import MalformedNumber
from .transforms import readonly_array

logger = logging.getLogger(__name__)

ZONE_COUNT = 20
CORNER_VALUES = 12
ZERO_CORNER_TOLERANCE = 1e-6
DEFAULT_ZONE_COLOR = (1.0, 0.0, 1.0, 0.7)
DEFAULT_ALPHA = 0.7

Color = Tuple[float, float, float, float]


@dataclass(frozen=True)
class ViewingZone:
    """
    A labelled 4-corner region of interest.

    Attributes:
        zone_id: 1-based zone number
        label: Display label
        color: RGBA colour
        corners: 4x3 corner array (metres, vehicle-local frame)
    """
    zone_id: int
    label: str
    color: Color
    corners: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'corners', readonly_array(self.corners))

    def is_unused(self) -> bool:
        """
        True if every corner lies within ZERO_CORNER_TOLERANCE of the origin.

        This is a magnitude test on the raw coordinates: a genuine zone placed
        exactly on the origin would be dropped as well.
        """
        lengths = np.linalg.norm(self.corners, axis=1)
        return bool(np.all(lengths < ZERO_CORNER_TOLERANCE))

    def centroid(self) -> np.ndarray:
        """Mean of the four corners (label anchor)."""
        return self.corners.mean(axis=0)

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Axis-aligned (min, max) corners."""
        return self.corners.min(axis=0), self.corners.max(axis=0)


def _to_color(value: Any, index: int, source: Optional[str]) -> Color:
    rgba = number_array(value, f"colors[{index}]", source)
    if rgba.size == 3:
        rgba = np.append(rgba, DEFAULT_ALPHA)
    if rgba.size != 4:
        raise MalformedNumber(f"Expected 3 or 4 colour components, got {rgba.size}",
                              source=source, key=f"colors[{index}]")
    return tuple(float(c) for c in np.clip(rgba, 0.0, 1.0))


def build_zones(
    corner_table: Sequence[Sequence[float]],
    color_table: Optional[Sequence[Any]] = None,
    source: Optional[str] = None,
) -> List[ViewingZone]:
    """
    Build viewing zones from a corner table.

    Args:
        corner_table: One row of 12 values per zone
        color_table: Optional parallel RGBA (or RGB) rows; missing entries
            use DEFAULT_ZONE_COLOR
        source: File name, for error messages

    Returns:
        Zones in table order, ids starting at 1
    """
    color_table = list(color_table or [])
    zones = []
    for i, row in enumerate(corner_table):
        key = f"zones[{i}]"
        values = number_array(row, key, source, length=CORNER_VALUES)
        if i < len(color_table) and color_table[i] is not None:
            color = _to_color(color_table[i], i, source)
        else:
            color = DEFAULT_ZONE_COLOR
        zone_id = i + 1
        zones.append(ViewingZone(
            zone_id=zone_id,
            label=f"Zone {zone_id}",
            color=color,
            corners=values.reshape(4, 3),
        ))
    return zones


def load_viewing_zones(path: PathLike) -> List[ViewingZone]:
    """
    Load a viewing zones file.

    Raises:
        ConfigNotFound: If the file is absent
        MissingField: If the ``zones`` table is absent
        MalformedNumber: If a row does not hold exactly 12 numbers
    """
    source = str(path)
    data = read_config(path)

    corner_table = find_field(data, 'zones', source)
    if not isinstance(corner_table, list):
        raise MalformedNumber("Expected an array of zone rows", source=source, key='zones')
    color_table = data.get('colors') or []
    if not isinstance(color_table, list):
        raise MalformedNumber("Expected an array of colours", source=source, key='colors')

    zones = build_zones(corner_table, color_table, source=source)
    if len(zones) != ZONE_COUNT:
        logger.warning(f"{source} defines {len(zones)} zones, expected {ZONE_COUNT}")

    unused = sum(1 for z in zones if z.is_unused())
    logger.info(f"Loaded {len(zones)} viewing zones from {source} ({unused} unused)")
    return zones
