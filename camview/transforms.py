"""
Transform chain module.

Builds 4x4 homogeneous matrices from an ordered list of rotate / scale /
translate steps, as used to place the vehicle model.

Conventions:
    - Column vectors: p' = M @ p, with p = (x, y, z, 1)
    - Steps are composed by post-multiplication, M = M @ step_matrix(step),
      so each later step acts in the object's local frame after the
      earlier ones (the behaviour of a scene-graph transform stack)
    - Rotation angles are in degrees, about an axis that need not be
      normalised
"""

import numpy as np
from scipy.spatial.transform import Rotation
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple, Union
import logging

from .config_reader import optional_number, require_string

logger = logging.getLogger(__name__)

Vector3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Rotate:
    """Rotation by ``angle_deg`` degrees about ``axis``."""
    angle_deg: float
    axis: Vector3


@dataclass(frozen=True)
class Scale:
    """Uniform scale by ``factor`` on all three axes."""
    factor: float


@dataclass(frozen=True)
class Translate:
    """Translation by ``offset``."""
    offset: Vector3


TransformStep = Union[Rotate, Scale, Translate]
TransformChain = Tuple[TransformStep, ...]

# Accepted spellings of the step type field
STEP_TYPES = {
    'rotate': Rotate,
    'rotation': Rotate,
    'scale': Scale,
    'translate': Translate,
    'translation': Translate,
}


def readonly_array(value: Any) -> np.ndarray:
    """Float64 copy of ``value`` that cannot be written to."""
    arr = np.array(value, dtype=np.float64)
    arr.setflags(write=False)
    return arr


def uniform_scale(factor: float) -> np.ndarray:
    """4x4 uniform scale matrix."""
    M = np.eye(4)
    M[0, 0] = M[1, 1] = M[2, 2] = factor
    return M


def translation(offset: Iterable[float]) -> np.ndarray:
    """4x4 translation matrix."""
    M = np.eye(4)
    M[:3, 3] = np.asarray(offset, dtype=np.float64)
    return M


def rotation(angle_deg: float, axis: Iterable[float]) -> np.ndarray:
    """
    4x4 rotation matrix about an arbitrary axis.

    The axis is normalised first. A zero-length axis gives the identity,
    since no rotation direction is defined.

    Args:
        angle_deg: Rotation angle in degrees (right-hand rule)
        axis: Rotation axis (x, y, z)

    Returns:
        4x4 homogeneous rotation matrix
    """
    axis = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(axis)
    M = np.eye(4)
    if norm < 1e-12:
        logger.warning(f"Rotation of {angle_deg} deg about a zero-length axis ignored")
        return M
    rotvec = axis / norm * np.deg2rad(angle_deg)
    M[:3, :3] = Rotation.from_rotvec(rotvec).as_matrix()
    return M


def step_matrix(step: TransformStep) -> np.ndarray:
    """Return the 4x4 matrix of a single transform step."""
    if isinstance(step, Rotate):
        return rotation(step.angle_deg, step.axis)
    if isinstance(step, Scale):
        return uniform_scale(step.factor)
    if isinstance(step, Translate):
        return translation(step.offset)
    raise TypeError(f"Not a transform step: {step!r}")


def compose(steps: Iterable[TransformStep], initial: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Compose transform steps into one matrix.

    Args:
        steps: Steps in application order
        initial: Starting matrix (identity if omitted)

    Returns:
        4x4 matrix M with M = initial @ S1 @ S2 @ ... @ Sn
    """
    M = np.eye(4) if initial is None else np.array(initial, dtype=np.float64)
    for step in steps:
        M = M @ step_matrix(step)
    return M


def apply_transform(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    """
    Apply a 4x4 transform to points.

    Args:
        matrix: 4x4 homogeneous transform
        points: Nx3 (or single 3-vector) array of points

    Returns:
        Transformed points with the same shape as the input
    """
    pts = np.asarray(points, dtype=np.float64)
    single = pts.ndim == 1
    pts = np.atleast_2d(pts)
    homogeneous = np.hstack([pts, np.ones((pts.shape[0], 1))])
    result = (matrix @ homogeneous.T).T
    result = result[:, :3] / result[:, 3:4]
    return result[0] if single else result


def decode_step(obj: Mapping[str, Any], source: Optional[str] = None) -> Optional[TransformStep]:
    """
    Decode one transformation object from a car-model entry.

    The ``type`` field is required. ``angle``, ``x``, ``y``, ``z`` and
    ``value`` are optional and default to 0.0, so a scale step may omit the
    axis components and a rotate/translate step may omit ``value``.

    Returns:
        The decoded step, or None if the type is not recognised
    """
    step_type = require_string(obj, 'type', source).lower()
    cls = STEP_TYPES.get(step_type)
    if cls is None:
        logger.warning(f"Ignoring unknown transformation type '{step_type}' in {source}")
        return None

    angle = optional_number(obj, 'angle', source)
    xyz = (
        optional_number(obj, 'x', source),
        optional_number(obj, 'y', source),
        optional_number(obj, 'z', source),
    )
    value = optional_number(obj, 'value', source)

    if cls is Rotate:
        return Rotate(angle_deg=angle, axis=xyz)
    if cls is Scale:
        return Scale(factor=value)
    return Translate(offset=xyz)


def decode_chain(objs: Iterable[Mapping[str, Any]], source: Optional[str] = None) -> TransformChain:
    """Decode a list of transformation objects, dropping unknown types."""
    steps = []
    for obj in objs:
        step = decode_step(obj, source)
        if step is not None:
            steps.append(step)
    return tuple(steps)


def validate_rotation_matrix(R: np.ndarray, tol: float = 1e-6) -> bool:
    """
    Validate that a matrix is a proper rotation matrix.

    A proper rotation matrix must:
        1. Be orthogonal: R @ R.T = I
        2. Have determinant = +1 (not a reflection)

    Args:
        R: 3x3 matrix to validate
        tol: Numerical tolerance

    Returns:
        True if R is a valid rotation matrix
    """
    R = np.asarray(R)
    if R.shape != (3, 3):
        return False

    if not np.allclose(R @ R.T, np.eye(3), atol=tol):
        return False

    if not np.isclose(np.linalg.det(R), 1.0, atol=tol):
        return False

    return True
