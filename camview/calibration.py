"""
Calibration model: camera extrinsics, intrinsics and visualization scales.

Calibration file layout (JSON or YAML):
    extrinsics:            # 4 rows of 3, or 12 flat values
      - [r00, r01, r02]    # rows 0-2: rotation matrix R (row-major)
      - [r10, r11, r12]
      - [r20, r21, r22]
      - [tx, ty, tz]       # row 3: translation t, camera centre in metres
    intrinsics:
      principal_point_x: 960.0
      principal_point_y: 540.0
      focal_length_x: 1000.0
      focal_length_y: 1000.0
      radial_distortion: [k1, k2, k3, k4, k5, k6]
      tangential_distortion: [p1, p2]
    visualization:         # optional, each key defaults independently
      unit_scale: 1000.0
      frustum_scale_factor: 0.7
      camera_marker_radius: 20.0
      axis_length: 1500.0
      axis_arrow_size: 300.0

The rotation matrix is checked for orthonormality but never rejected: a
non-orthonormal matrix only produces a warning, and every derived quantity
clamps rather than asserts.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple
import logging

from .config_reader import (
    PathLike,
    find_field,
    number_array,
    optional_number,
    read_config,
    require_number,
)
from .errors import MalformedNumber
from .transforms import readonly_array, validate_rotation_matrix

logger = logging.getLogger(__name__)

RADIAL_COEFFICIENTS = 6
TANGENTIAL_COEFFICIENTS = 2


@dataclass(frozen=True)
class CameraIntrinsics:
    """Camera intrinsic parameters. Distortion is reported, not applied."""
    cx: float  # Principal point x (pixels)
    cy: float  # Principal point y (pixels)
    fx: float  # Focal length in x (pixels)
    fy: float  # Focal length in y (pixels)
    radial: Tuple[float, ...] = (0.0,) * RADIAL_COEFFICIENTS  # k1..k6
    tangential: Tuple[float, ...] = (0.0,) * TANGENTIAL_COEFFICIENTS  # p1, p2

    def camera_matrix(self) -> np.ndarray:
        """Pinhole camera matrix K."""
        return np.array([
            [self.fx, 0, self.cx],
            [0, self.fy, self.cy],
            [0, 0, 1]
        ], dtype=np.float64)

    @property
    def has_distortion(self) -> bool:
        return not np.allclose(self.radial + self.tangential, 0)


@dataclass(frozen=True)
class VisualizationParams:
    """
    Scale parameters for drawing the calibration.

    Attributes:
        unit_scale: Metres to display units (1000 for a millimetre scene)
        frustum_scale_factor: Frustum size relative to ``unit_scale``
        camera_marker_radius: Camera centre marker radius, display units
        axis_length: Length of each world axis, display units
        axis_arrow_size: Arrowhead wing length, display units
    """
    unit_scale: float = 1000.0
    frustum_scale_factor: float = 0.7
    camera_marker_radius: float = 20.0
    axis_length: float = 1500.0
    axis_arrow_size: float = 300.0

    @property
    def frustum_scale(self) -> float:
        """Total scale applied to the frustum node."""
        return self.frustum_scale_factor * self.unit_scale


@dataclass(frozen=True)
class CalibrationData:
    """
    Parsed camera calibration.

    Attributes:
        rotation: 3x3 rotation matrix R (row-major, not guaranteed orthonormal)
        translation: Camera centre t in the vehicle's local frame (metres)
        intrinsics: Camera intrinsic parameters
        visualization: Drawing scale parameters
        model_name: Model the calibration belongs to, if known
        source: File the calibration was read from
    """
    rotation: np.ndarray
    translation: np.ndarray
    intrinsics: CameraIntrinsics
    visualization: VisualizationParams = field(default_factory=VisualizationParams)
    model_name: Optional[str] = None
    source: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'rotation', readonly_array(self.rotation))
        object.__setattr__(self, 'translation', readonly_array(self.translation))

    def extrinsics_matrix(self) -> np.ndarray:
        """4x4 matrix [R | t; 0 0 0 1]."""
        M = np.eye(4)
        M[:3, :3] = self.rotation
        M[:3, 3] = self.translation
        return M

    def is_orthonormal(self, tol: float = 1e-6) -> bool:
        return validate_rotation_matrix(self.rotation, tol=tol)

    def rotation_angle_deg(self) -> float:
        """
        Rotation angle of R in degrees, from its trace.

        The cosine is clamped to [-1, 1] so an imperfect matrix still yields
        a finite angle.
        """
        cos_angle = (np.trace(self.rotation) - 1.0) / 2.0
        return float(np.rad2deg(np.arccos(np.clip(cos_angle, -1.0, 1.0))))

    def optical_axis(self) -> np.ndarray:
        """
        Unit viewing direction: the camera +Z axis mapped through R.

        Falls back to +Z if the mapped vector has no length.
        """
        direction = self.rotation @ np.array([0.0, 0.0, 1.0])
        norm = np.linalg.norm(direction)
        if norm < 1e-12:
            return np.array([0.0, 0.0, 1.0])
        return direction / norm


def _load_visualization(data: dict, source: str) -> VisualizationParams:
    vis_data = data.get('visualization') or {}
    defaults = VisualizationParams()
    values = {}
    for name in ('unit_scale', 'frustum_scale_factor', 'camera_marker_radius',
                 'axis_length', 'axis_arrow_size'):
        value = optional_number(vis_data, name, source, default=getattr(defaults, name))
        if not np.isfinite(value) or value <= 0:
            raise MalformedNumber(f"Must be positive, got {value}", source=source, key=name)
        values[name] = value
    return VisualizationParams(**values)


def load_calibration(path: PathLike, model_name: Optional[str] = None) -> CalibrationData:
    """
    Load a calibration file.

    Args:
        path: Calibration file path
        model_name: Name of the model the calibration belongs to

    Returns:
        Fully populated CalibrationData

    Raises:
        ConfigNotFound: If the file is absent
        MissingField: If a required field is absent
        MalformedNumber: If a value is not numeric or a scale is not positive
    """
    source = str(path)
    data = read_config(path)
    logger.info(f"Loading calibration from {source}")

    # Extrinsics: rows 0-2 rotation, row 3 translation
    extrinsics = number_array(find_field(data, 'extrinsics', source), 'extrinsics',
                              source, length=12).reshape(4, 3)
    R = extrinsics[:3, :].copy()
    t = extrinsics[3, :].copy()

    intr_data = find_field(data, 'intrinsics', source)
    intrinsics = CameraIntrinsics(
        cx=require_number(intr_data, 'principal_point_x', source),
        cy=require_number(intr_data, 'principal_point_y', source),
        fx=require_number(intr_data, 'focal_length_x', source),
        fy=require_number(intr_data, 'focal_length_y', source),
        radial=tuple(number_array(
            find_field(intr_data, 'radial_distortion', source),
            'radial_distortion', source, length=RADIAL_COEFFICIENTS,
        )),
        tangential=tuple(number_array(
            find_field(intr_data, 'tangential_distortion', source),
            'tangential_distortion', source, length=TANGENTIAL_COEFFICIENTS,
        )),
    )

    visualization = _load_visualization(data, source)

    calibration = CalibrationData(
        rotation=R,
        translation=t,
        intrinsics=intrinsics,
        visualization=visualization,
        model_name=model_name,
        source=source,
    )

    if not calibration.is_orthonormal():
        logger.warning(
            f"Rotation matrix in {source} is not orthonormal "
            f"(det={np.linalg.det(R):.6f}); using it as given"
        )

    logger.debug(f"Rotation matrix (R):\n{R}")
    logger.debug(f"Translation vector (t): {t}")
    logger.info(f"Camera center (m): {t[0]:.6f}, {t[1]:.6f}, {t[2]:.6f}")
    if intrinsics.has_distortion:
        logger.debug("Distortion coefficients present (reported only, not applied)")

    return calibration
