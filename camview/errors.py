"""
Exception classes for configuration loading and scene composition.

Every fatal condition raised while reading calibration, viewing-zone or
car-model configuration derives from CamviewError, so the CLI can report it
with a single handler. The lenient cases (unknown transform type, missing
optional numeric field, unused all-zero zone) are never raised.
"""

from typing import Optional


class CamviewError(Exception):
    """Base class for all camview errors."""


class ConfigNotFound(CamviewError, FileNotFoundError):
    """A configuration file could not be opened."""

    def __init__(self, path: str):
        self.path = str(path)
        super().__init__(f"Configuration file not found: {self.path}")


class ConfigError(CamviewError, ValueError):
    """
    Structural problem in a configuration source.

    Attributes:
        source: File (or description) the problem was found in
        key: Offending key, if any
    """

    def __init__(self, message: str, source: Optional[str] = None, key: Optional[str] = None):
        self.source = source
        self.key = key
        details = []
        if key is not None:
            details.append(f"key '{key}'")
        if source is not None:
            details.append(f"in {source}")
        if details:
            message = f"{message} ({' '.join(details)})"
        super().__init__(message)


class MalformedConfig(ConfigError):
    """The file is not parsable as a structured configuration."""


class MissingField(ConfigError):
    """A required field is absent."""

    def __init__(self, key: str, source: Optional[str] = None):
        super().__init__("Missing required field", source=source, key=key)


class MalformedNumber(ConfigError):
    """A numeric field could not be converted, or is out of range."""


class MalformedModelEntry(ConfigError):
    """A car-model registry entry lacks its path or transformations."""


class ModelNotFound(ConfigError):
    """The requested model name is not in the registry."""


class InvalidZoneSelection(ConfigError):
    """A zone filter outside the valid id range was requested."""
