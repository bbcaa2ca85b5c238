"""
Session configuration for a camview run.

Handles loading of optional YAML session files and resolution of the three
input files for a model.
"""

import yaml
from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import logging

from .errors import ConfigNotFound, MalformedConfig

logger = logging.getLogger(__name__)

DEFAULT_MODELS_DIR = "carmodels"
DEFAULT_MODEL = "Sharan"
REGISTRY_FILENAME = "carmodels.json"
CALIBRATION_FILENAME = "calibration.json"
ZONES_FILENAME = "viewing_zones.json"


@dataclass(frozen=True)
class ModelPaths:
    """Resolved input files for one model."""
    registry: Path
    calibration: Path
    zones: Path


@dataclass
class SessionConfig:
    """
    Parameters of one run.

    Attributes:
        models_dir: Directory holding the registry and per-model folders
        model: Model name to load
        zone: Zone id to show alone (1-20), or None for all zones
        registry: Registry file override
        calibration: Calibration file override
        zones: Viewing zones file override
        output_dir: Directory for JSON/CSV reports, or None for no reports
    """
    models_dir: str = DEFAULT_MODELS_DIR
    model: str = DEFAULT_MODEL
    zone: Optional[int] = None
    registry: Optional[str] = None
    calibration: Optional[str] = None
    zones: Optional[str] = None
    output_dir: Optional[str] = None

    def paths(self) -> ModelPaths:
        """
        Resolve input files.

        Conventional layout:
            <models_dir>/carmodels.json
            <models_dir>/<model>/calibration.json
            <models_dir>/<model>/viewing_zones.json
        """
        base = Path(self.models_dir)
        return ModelPaths(
            registry=Path(self.registry) if self.registry else base / REGISTRY_FILENAME,
            calibration=(Path(self.calibration) if self.calibration
                         else base / self.model / CALIBRATION_FILENAME),
            zones=Path(self.zones) if self.zones else base / self.model / ZONES_FILENAME,
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "SessionConfig":
        """
        Load a session configuration from a YAML file.

        Relative paths are resolved against the file's directory.

        Example YAML structure:
            models_dir: carmodels
            model: Sharan
            zone: 9
            calibration: Sharan/calibration_2024.json
            output_dir: results
        """
        path = Path(config_path)
        if not path.exists():
            raise ConfigNotFound(config_path)

        with open(path, 'r') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise MalformedConfig(f"Unparsable session file: {e}", source=str(path)) from e

        if not isinstance(data, dict):
            raise MalformedConfig("Top level must be a mapping", source=str(path))

        logger.info(f"Loading session configuration from {config_path}")

        config_dir = path.parent

        def resolve(value: Optional[str]) -> Optional[str]:
            if value is None:
                return None
            return str(config_dir / value)

        zone = data.get('zone')
        if zone is not None and not isinstance(zone, int):
            raise MalformedConfig(f"Zone must be an integer, got {zone!r}",
                                  source=str(path), key='zone')

        return cls(
            models_dir=resolve(data.get('models_dir', DEFAULT_MODELS_DIR)),
            model=str(data.get('model', DEFAULT_MODEL)),
            zone=zone,
            registry=resolve(data.get('registry')),
            calibration=resolve(data.get('calibration')),
            zones=resolve(data.get('zones')),
            output_dir=resolve(data.get('output_dir')),
        )

    def to_yaml(self, config_path: str) -> None:
        """Save the session configuration to a YAML file."""
        data = {
            'models_dir': self.models_dir,
            'model': self.model,
            'zone': self.zone,
            'registry': self.registry,
            'calibration': self.calibration,
            'zones': self.zones,
            'output_dir': self.output_dir,
        }

        with open(config_path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Session configuration saved to {config_path}")
