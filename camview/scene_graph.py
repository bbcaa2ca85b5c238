"""
Renderer-neutral scene graph.

The composed scene is handed over as a tree of plain, immutable nodes. A
renderer walks the tree, multiplying MatrixTransform matrices (column-vector
convention, child points are mapped by the product of their ancestors'
matrices) and drawing the leaf primitives. Nothing here depends on how, or
whether, the nodes are displayed.
"""

import numpy as np
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union
import logging

from .car_model import CarModelConfig
from .scene import FRUSTUM_EDGES, ComposedScene, ZonePlacement, frustum_vertices

logger = logging.getLogger(__name__)

RGBA = Tuple[float, float, float, float]

CAMERA_MARKER_COLOR = (1.0, 0.0, 0.0, 1.0)
FRUSTUM_COLOR = (0.0, 1.0, 0.0, 1.0)
FRUSTUM_MARKER_COLOR = (0.0, 0.2, 1.0, 1.0)
LABEL_COLOR = (1.0, 1.0, 1.0, 1.0)
CAR_LABEL_COLOR = (1.0, 1.0, 0.0, 1.0)

# Camera label offset along Z, display units
CAMERA_LABEL_OFFSET = 100.0

# Model name label height above the model origin, in the mesh's own units
CAR_LABEL_HEIGHT = 1.2


@dataclass(frozen=True)
class MeshReference:
    """Mesh file to be loaded and drawn by the renderer."""
    path: str
    name: str = ""


@dataclass(frozen=True)
class Sphere:
    center: np.ndarray
    radius: float
    color: RGBA
    name: str = ""


@dataclass(frozen=True)
class LineSet:
    """Line segments given as vertex index pairs, one colour per segment."""
    vertices: np.ndarray
    segments: Tuple[Tuple[int, int], ...]
    colors: Tuple[RGBA, ...]
    name: str = ""


@dataclass(frozen=True)
class Polygon:
    """Filled planar polygon."""
    vertices: np.ndarray
    color: RGBA
    name: str = ""


@dataclass(frozen=True)
class Label:
    text: str
    position: np.ndarray
    color: RGBA = LABEL_COLOR
    name: str = ""


@dataclass(frozen=True)
class Group:
    """Plain grouping node. ``tag`` carries e.g. a zone id."""
    children: Tuple["Node", ...] = ()
    name: str = ""
    tag: Optional[int] = None


@dataclass(frozen=True)
class MatrixTransform:
    matrix: np.ndarray
    children: Tuple["Node", ...] = ()
    name: str = ""


Node = Union[Group, MatrixTransform, MeshReference, Sphere, LineSet, Polygon, Label]


def _frustum_node(local_marker_radius: float) -> Group:
    vertices = frustum_vertices()
    lines = LineSet(
        vertices=vertices,
        segments=FRUSTUM_EDGES,
        colors=(FRUSTUM_COLOR,) * len(FRUSTUM_EDGES),
        name="frustum",
    )
    marker = Sphere(
        center=np.zeros(3),
        radius=local_marker_radius,
        color=FRUSTUM_MARKER_COLOR,
        name="frustum origin",
    )
    return Group(children=(lines, marker), name="camera frustum")


def _zone_node(placement: ZonePlacement) -> MatrixTransform:
    corners = placement.zone.corners
    n = len(corners)
    fill = Polygon(vertices=corners.copy(), color=placement.fill_color,
                   name=f"{placement.label} fill")
    outline = LineSet(
        vertices=corners.copy(),
        segments=tuple((i, (i + 1) % n) for i in range(n)),
        colors=(placement.outline_color,) * n,
        name=f"{placement.label} outline",
    )
    label = Label(text=placement.label, position=placement.zone.centroid(),
                  name=f"{placement.label} label")
    group = Group(children=(fill, outline, label), name=placement.label,
                  tag=placement.zone_id)
    return MatrixTransform(matrix=placement.transform, children=(group,),
                           name=f"{placement.label} transform")


def _axes_node(scene: ComposedScene) -> LineSet:
    segments = scene.axes.segments()
    vertices = []
    for start, end, _ in segments:
        vertices.extend([start, end])
    return LineSet(
        vertices=np.array(vertices, dtype=np.float64),
        segments=tuple((2 * i, 2 * i + 1) for i in range(len(segments))),
        colors=tuple(color for _, _, color in segments),
        name="axes",
    )


def build_scene_graph(
    scene: ComposedScene,
    car_model: CarModelConfig,
    mesh_path: Optional[Union[str, Path]] = None,
) -> Group:
    """
    Build the scene graph root for a composed scene.

    Args:
        scene: Composed scene
        car_model: Vehicle model the scene was composed with
        mesh_path: Mesh file to reference; defaults to the model's resolved path

    Returns:
        Root group with the vehicle and its name label, camera marker,
        frustum, zones and axes
    """
    mesh = str(mesh_path) if mesh_path is not None else str(car_model.resolve_mesh_path())
    vehicle = MatrixTransform(
        matrix=scene.vehicle_transform,
        children=(
            MeshReference(path=mesh, name=car_model.name),
            Label(text=car_model.name, position=np.array([0.0, 0.0, CAR_LABEL_HEIGHT]),
                  color=CAR_LABEL_COLOR, name="model name"),
        ),
        name=f"{car_model.name} transform",
    )

    cam = scene.camera
    camera_marker = Sphere(center=cam.center, radius=cam.marker_radius,
                           color=CAMERA_MARKER_COLOR, name="camera center")
    x, y, z = cam.center_m
    camera_label = Label(
        text=f"Camera center:\n{x:.3f}, {y:.3f}, {z:.3f} (m)",
        position=cam.center + np.array([0.0, 0.0, CAMERA_LABEL_OFFSET]),
        color=CAMERA_MARKER_COLOR,
        name="camera center label",
    )
    frustum = MatrixTransform(
        matrix=cam.frustum_pose,
        children=(_frustum_node(cam.local_marker_radius),),
        name="camera pose",
    )

    zones = Group(children=tuple(_zone_node(p) for p in scene.zones), name="viewing zones")

    root = Group(
        children=(vehicle, frustum, camera_marker, camera_label, _axes_node(scene), zones),
        name="root",
    )
    logger.debug("Scene graph structure:\n" + describe_graph(root))
    return root


def iter_nodes(node: Node, depth: int = 0):
    """Depth-first (node, depth) traversal."""
    yield node, depth
    for child in getattr(node, 'children', ()):
        yield from iter_nodes(child, depth + 1)


def find_zone_groups(root: Node) -> List[Group]:
    """All zone groups (groups tagged with a zone id)."""
    return [n for n, _ in iter_nodes(root) if isinstance(n, Group) and n.tag is not None]


def describe_graph(root: Node) -> str:
    """Indented one-line-per-node summary of a scene graph."""
    lines = []
    for node, depth in iter_nodes(root):
        kind = type(node).__name__
        name = getattr(node, 'name', '')
        extra = ''
        children = getattr(node, 'children', None)
        if children is not None:
            extra = f" ({len(children)} children)"
        lines.append(f"{'  ' * depth}- {kind} {name}{extra}".rstrip())
    return "\n".join(lines)
