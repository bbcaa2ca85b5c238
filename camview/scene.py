"""
Scene composer.

Combines a calibration, a car model and a set of viewing zones into the
world-space entities handed to a renderer:

    - Vehicle: mesh placed by the car model's transform chain
    - Camera: centre marker at t * unit_scale, frustum under a uniform
      scale of frustum_scale_factor * unit_scale with its apex at the origin
    - Viewing zones: unit-scale conversion only (see ZONE_FRAME_CONTRACT)
    - Axes: arrowed X/Y/Z lines at the world origin

Composition is all-or-nothing. Any configuration error propagates before a
ComposedScene exists.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging

from .calibration import CalibrationData
from .car_model import CarModelConfig
from .errors import InvalidZoneSelection
from .transforms import apply_transform, readonly_array, uniform_scale
from .viewing_zones import ZONE_COUNT, Color, ViewingZone

logger = logging.getLogger(__name__)

# Zone corners are pre-aligned to the vehicle's transformed frame. They get
# the metres-to-display-units scale and nothing else; applying the vehicle's
# transform chain to them would transform them twice.
ZONE_FRAME_CONTRACT = "zone corners are pre-aligned to the vehicle's transformed frame"

# Frustum proportions in local units, apex at the origin looking along +Z
FRUSTUM_HALF_WIDTH = 0.2
FRUSTUM_HALF_HEIGHT = 0.15
FRUSTUM_DEPTH = 0.3

AXIS_COLORS = (
    (1.0, 0.0, 0.0, 1.0),  # X red
    (0.0, 1.0, 0.0, 1.0),  # Y green
    (0.0, 0.0, 1.0, 1.0),  # Z blue
)


def frustum_vertices() -> np.ndarray:
    """Apex followed by the four corners of the frustum's far rectangle."""
    w, h, d = FRUSTUM_HALF_WIDTH, FRUSTUM_HALF_HEIGHT, FRUSTUM_DEPTH
    return np.array([
        [0, 0, 0],
        [-w, -h, d],
        [w, -h, d],
        [w, h, d],
        [-w, h, d],
    ], dtype=np.float64)


# Apex-to-corner edges, then the far rectangle
FRUSTUM_EDGES = ((0, 1), (0, 2), (0, 3), (0, 4), (1, 2), (2, 3), (3, 4), (4, 1))


@dataclass(frozen=True)
class CameraPlacement:
    """
    Camera entities in world units.

    Attributes:
        center: Camera centre in display units (t * unit_scale)
        center_m: Camera centre in metres (t)
        frustum_pose: 4x4 uniform scale applied to the frustum node
        frustum_scale: Scale factor inside ``frustum_pose``
        marker_radius: Rendered marker radius, display units
        local_marker_radius: Radius of the frustum-local origin marker, so
            that local_marker_radius * frustum_scale == marker_radius
    """
    center: np.ndarray
    center_m: np.ndarray
    frustum_pose: np.ndarray
    frustum_scale: float
    marker_radius: float
    local_marker_radius: float

    def __post_init__(self):
        for name in ('center', 'center_m', 'frustum_pose'):
            object.__setattr__(self, name, readonly_array(getattr(self, name)))


@dataclass(frozen=True)
class ZonePlacement:
    """A retained viewing zone with its world transform and colours."""
    zone: ViewingZone
    transform: np.ndarray
    outline_color: Color
    fill_color: Color

    def __post_init__(self):
        object.__setattr__(self, 'transform', readonly_array(self.transform))

    @property
    def zone_id(self) -> int:
        return self.zone.zone_id

    @property
    def label(self) -> str:
        return self.zone.label

    def world_corners(self) -> np.ndarray:
        return apply_transform(self.transform, self.zone.corners)


@dataclass(frozen=True)
class AxesGeometry:
    """Arrowed coordinate axes at the world origin."""
    length: float
    arrow_size: float

    def segments(self) -> List[Tuple[np.ndarray, np.ndarray, Tuple[float, ...]]]:
        """
        Line segments as (start, end, rgba): a shaft and two arrow wings
        per axis.
        """
        L, a = self.length, self.arrow_size
        origin = np.zeros(3)
        tips = (np.array([L, 0, 0]), np.array([0, L, 0]), np.array([0, 0, L]))
        wings = (
            (np.array([L - a, a * 0.5, 0]), np.array([L - a, -a * 0.5, 0])),
            (np.array([a * 0.5, L - a, 0]), np.array([-a * 0.5, L - a, 0])),
            (np.array([0, a * 0.5, L - a]), np.array([0, -a * 0.5, L - a])),
        )
        segments = []
        for tip, (w1, w2), color in zip(tips, wings, AXIS_COLORS):
            segments.append((origin, tip, color))
            segments.append((tip, w1, color))
            segments.append((tip, w2, color))
        return segments


@dataclass(frozen=True)
class ComposedScene:
    """
    Final world-space scene. Built fresh per run and never mutated.

    Attributes:
        model_name: Name of the vehicle model
        vehicle_transform: 4x4 placement of the vehicle mesh
        camera: Camera centre and frustum placement
        zones: Retained zones, in id order
        axes: World axes geometry
        excluded_zone_ids: Considered zones dropped as unused
        zone_filter: Requested zone id, or None for all
    """
    model_name: str
    vehicle_transform: np.ndarray
    camera: CameraPlacement
    zones: Tuple[ZonePlacement, ...]
    axes: AxesGeometry
    excluded_zone_ids: Tuple[int, ...] = ()
    zone_filter: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'vehicle_transform', readonly_array(self.vehicle_transform))


def place_camera(calibration: CalibrationData) -> CameraPlacement:
    """Compute camera centre and frustum pose in world units."""
    vis = calibration.visualization
    frustum_scale = vis.frustum_scale
    center_m = np.array(calibration.translation, dtype=np.float64)
    return CameraPlacement(
        center=center_m * vis.unit_scale,
        center_m=center_m,
        frustum_pose=uniform_scale(frustum_scale),
        frustum_scale=frustum_scale,
        marker_radius=vis.camera_marker_radius,
        local_marker_radius=vis.camera_marker_radius / frustum_scale,
    )


def check_zone_filter(zone_filter: Optional[int]) -> None:
    """Raise InvalidZoneSelection unless the filter is None or 1..ZONE_COUNT."""
    if zone_filter is None:
        return
    is_int = isinstance(zone_filter, (int, np.integer)) and not isinstance(zone_filter, bool)
    if not is_int or not 1 <= zone_filter <= ZONE_COUNT:
        raise InvalidZoneSelection(
            f"Zone number must be between 1 and {ZONE_COUNT}, got {zone_filter!r}",
            key='zone',
        )


def place_zones(
    zones: Sequence[ViewingZone],
    unit_scale: float,
    zone_filter: Optional[int] = None,
) -> Tuple[Tuple[ZonePlacement, ...], Tuple[int, ...]]:
    """
    Select and place viewing zones.

    Only the zone matching ``zone_filter`` is considered when a filter is
    given. Considered zones with all-zero corners are excluded.

    Returns:
        (retained placements, ids of excluded unused zones)
    """
    check_zone_filter(zone_filter)
    zone_transform = uniform_scale(unit_scale)

    placements = []
    excluded = []
    for zone in zones:
        if zone_filter is not None and zone.zone_id != zone_filter:
            continue
        if zone.is_unused():
            logger.info(f"Skipping {zone.label} - all zero coordinates")
            excluded.append(zone.zone_id)
            continue
        r, g, b, a = zone.color
        placements.append(ZonePlacement(
            zone=zone,
            transform=zone_transform,
            outline_color=(r, g, b, 1.0),
            fill_color=(r, g, b, a),
        ))

    if zone_filter is not None and not placements and zone_filter not in excluded:
        logger.warning(f"Zone {zone_filter} is not defined in the zones table")

    return tuple(placements), tuple(excluded)


def compose_scene(
    calibration: CalibrationData,
    car_model: CarModelConfig,
    zones: Sequence[ViewingZone],
    zone_filter: Optional[int] = None,
) -> ComposedScene:
    """
    Compose the world-space scene.

    Args:
        calibration: Camera calibration
        car_model: Vehicle model entry
        zones: Viewing zones, as loaded
        zone_filter: Zone id to show alone, or None for all zones

    Returns:
        ComposedScene ready for the scene graph builder

    Raises:
        InvalidZoneSelection: If ``zone_filter`` is outside 1..ZONE_COUNT
    """
    if zone_filter is None:
        logger.info("Creating all viewing zones")
    else:
        logger.info(f"Creating only zone {zone_filter}")

    vis = calibration.visualization
    zone_placements, excluded = place_zones(zones, vis.unit_scale, zone_filter)
    camera = place_camera(calibration)

    scene = ComposedScene(
        model_name=car_model.name,
        vehicle_transform=car_model.matrix(),
        camera=camera,
        zones=zone_placements,
        axes=AxesGeometry(length=vis.axis_length, arrow_size=vis.axis_arrow_size),
        excluded_zone_ids=excluded,
        zone_filter=zone_filter,
    )

    logger.info(f"Created {len(zone_placements)} viewing zone(s)")
    logger.debug(f"Camera center (display units): {camera.center}")
    logger.debug(f"Frustum scale: {camera.frustum_scale}, "
                 f"local marker radius: {camera.local_marker_radius}")
    return scene
