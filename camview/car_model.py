"""
Car model registry loader.

Registry layout (JSON or YAML):
    {
      "Sharan": {
        "path": "Sharan/Sharan.osgb",
        "transformations": [
          {"type": "rotate", "angle": -90.0, "x": 1.0, "y": 0.0, "z": 0.0},
          {"type": "scale", "value": 1.0}
        ]
      }
    }

Each entry and each transformation object is decoded on its own, so fields
of one model can never be picked up while reading another.
"""

import numpy as np
from pathlib import Path
from dataclasses import dataclass
from typing import List, Optional
import logging

from .config_reader import PathLike, read_config
from .errors import MalformedModelEntry, ModelNotFound
from .transforms import TransformChain, compose, decode_chain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CarModelConfig:
    """
    A vehicle model entry.

    Attributes:
        name: Model name (registry key)
        mesh_path: Mesh file path as written in the registry
        transformations: Placement steps, in application order
        registry: Registry file the entry came from
    """
    name: str
    mesh_path: str
    transformations: TransformChain = ()
    registry: Optional[str] = None

    def matrix(self) -> np.ndarray:
        """Composed 4x4 placement matrix of the vehicle mesh."""
        return compose(self.transformations)

    def resolve_mesh_path(self) -> Path:
        """Mesh path resolved against the registry's directory."""
        mesh = Path(self.mesh_path)
        if mesh.is_absolute() or self.registry is None:
            return mesh
        return Path(self.registry).parent / mesh


def list_models(registry_path: PathLike) -> List[str]:
    """Names of all models in a registry file."""
    return list(read_config(registry_path).keys())


def load_car_model(registry_path: PathLike, name: str) -> CarModelConfig:
    """
    Load one model entry from a registry file.

    Args:
        registry_path: Path to the models registry
        name: Model name to look up

    Returns:
        CarModelConfig for the model

    Raises:
        ConfigNotFound: If the registry file is absent
        ModelNotFound: If the name is not in the registry
        MalformedModelEntry: If the entry has no usable path or transformations
    """
    source = str(registry_path)
    registry = read_config(registry_path)

    if name not in registry:
        known = ', '.join(sorted(str(k) for k in registry)) or 'none'
        raise ModelNotFound(f"Unknown model '{name}' (known: {known})", source=source, key=name)

    entry = registry[name]
    if not isinstance(entry, dict):
        raise MalformedModelEntry("Model entry is not an object", source=source, key=name)

    mesh_path = entry.get('path')
    if not isinstance(mesh_path, str) or not mesh_path.strip():
        raise MalformedModelEntry("Model entry has no 'path'", source=source, key=name)

    transformations = entry.get('transformations')
    if not isinstance(transformations, list):
        raise MalformedModelEntry("Model entry has no 'transformations' array",
                                  source=source, key=name)
    for i, obj in enumerate(transformations):
        if not isinstance(obj, dict):
            raise MalformedModelEntry(f"Transformation {i} is not an object",
                                      source=source, key=name)

    chain = decode_chain(transformations, source=f"{source} [{name}]")
    model = CarModelConfig(
        name=name,
        mesh_path=mesh_path.strip(),
        transformations=chain,
        registry=source,
    )

    logger.info(f"Loaded car model '{name}': mesh {model.mesh_path}, "
                f"{len(chain)} of {len(transformations)} transformation(s) applied")
    for step in chain:
        logger.debug(f"  {step}")

    return model
