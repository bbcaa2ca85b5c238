"""
camview - camera calibration scene composition

Derives the geometry needed to check a vehicle-mounted camera's calibration
visually: the camera centre and viewing frustum, a set of numbered viewing
zones around the vehicle, and world axes, all placed relative to a vehicle
model.

Coordinate Conventions:
    - Calibration and zone coordinates are in metres, vehicle-local frame
    - The composed scene is in display units (unit_scale, 1000 for mm)
    - Zone corners are pre-aligned to the vehicle's transformed frame and get
      only the unit scale, never the vehicle's transform chain

Inputs:
    - Models registry (model name -> mesh path + transformations)
    - Per-model calibration file (extrinsics, intrinsics, visualization)
    - Per-model viewing zones file (20 corner rows + colours)
"""

from .errors import (
    CamviewError,
    ConfigNotFound,
    ConfigError,
    MalformedConfig,
    MissingField,
    MalformedNumber,
    MalformedModelEntry,
    ModelNotFound,
    InvalidZoneSelection,
)
from .config import SessionConfig, ModelPaths
from .config_reader import read_config
from .calibration import CalibrationData, CameraIntrinsics, VisualizationParams, load_calibration
from .transforms import Rotate, Scale, Translate, compose, apply_transform
from .car_model import CarModelConfig, load_car_model, list_models
from .viewing_zones import ViewingZone, build_zones, load_viewing_zones, ZONE_COUNT
from .scene import ComposedScene, CameraPlacement, ZonePlacement, AxesGeometry, compose_scene
from .scene_graph import build_scene_graph

__version__ = "1.0.0"
__all__ = [
    "CamviewError",
    "ConfigNotFound",
    "ConfigError",
    "MalformedConfig",
    "MissingField",
    "MalformedNumber",
    "MalformedModelEntry",
    "ModelNotFound",
    "InvalidZoneSelection",
    "SessionConfig",
    "ModelPaths",
    "read_config",
    "CalibrationData",
    "CameraIntrinsics",
    "VisualizationParams",
    "load_calibration",
    "Rotate",
    "Scale",
    "Translate",
    "compose",
    "apply_transform",
    "CarModelConfig",
    "load_car_model",
    "list_models",
    "ViewingZone",
    "build_zones",
    "load_viewing_zones",
    "ZONE_COUNT",
    "ComposedScene",
    "CameraPlacement",
    "ZonePlacement",
    "AxesGeometry",
    "compose_scene",
    "build_scene_graph",
]
