"""
Config reader for calibration, viewing-zone and car-model files.

Files are parsed into plain mappings with a structured parser (``json`` for
``.json`` files, ``yaml.safe_load`` otherwise) and fields are then pulled out
of one bounded object at a time, so a key can never be read from a sibling
object by accident.

Field extraction rules:
    - Required fields raise MissingField when absent
    - Optional numeric fields default to 0.0 when absent
    - Numeric strings are trimmed and stripped of '[', ']' and ',' before
      conversion; anything not convertible, or not finite, raises
      MalformedNumber
    - Unknown keys are ignored
"""

import json
import yaml
import numpy as np
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
import logging

from .errors import ConfigNotFound, MalformedConfig, MalformedNumber, MissingField

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_STRIP_CHARS = "[],"


def read_config(path: PathLike) -> Dict[str, Any]:
    """
    Read a configuration file into a mapping.

    Args:
        path: Path to a JSON or YAML file

    Returns:
        Top-level mapping of the file

    Raises:
        ConfigNotFound: If the file cannot be opened
        MalformedConfig: If the text cannot be parsed or is not a mapping
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise ConfigNotFound(str(path)) from e
    except UnicodeDecodeError as e:
        raise MalformedConfig(f"Not valid UTF-8 text: {e}", source=str(path)) from e

    try:
        if path.suffix.lower() == '.json':
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise MalformedConfig(f"Unparsable configuration: {e}", source=str(path)) from e

    if not isinstance(data, dict):
        raise MalformedConfig("Top level must be an object", source=str(path))

    logger.debug(f"Read {len(data)} top-level keys from {path}")
    return data


def find_field(obj: Mapping[str, Any], key: str, source: Optional[str] = None) -> Any:
    """Return ``obj[key]``, raising MissingField if the key is absent."""
    if not isinstance(obj, Mapping) or key not in obj:
        raise MissingField(key, source=source)
    return obj[key]


def require_string(obj: Mapping[str, Any], key: str, source: Optional[str] = None) -> str:
    """Extract a required string field, trimmed of surrounding whitespace."""
    value = find_field(obj, key, source)
    if not isinstance(value, str):
        raise MissingField(key, source=source)
    return value.strip()


def to_number(value: Any, key: str, source: Optional[str] = None) -> float:
    """
    Convert a scalar config value to float.

    Booleans, containers, None and non-finite values (NaN, Infinity) are
    rejected rather than coerced.
    """
    if isinstance(value, bool) or value is None:
        raise MalformedNumber(f"Not a number: {value!r}", source=source, key=key)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip()
        for ch in _STRIP_CHARS:
            cleaned = cleaned.replace(ch, "")
        try:
            number = float(cleaned.strip())
        except ValueError:
            raise MalformedNumber(f"Not a number: {value!r}", source=source, key=key) from None
    else:
        raise MalformedNumber(f"Not a number: {value!r}", source=source, key=key)
    if not np.isfinite(number):
        raise MalformedNumber(f"Not a finite number: {value!r}", source=source, key=key)
    return number


def require_number(obj: Mapping[str, Any], key: str, source: Optional[str] = None) -> float:
    """Extract a required numeric field."""
    return to_number(find_field(obj, key, source), key, source)


def optional_number(
    obj: Mapping[str, Any],
    key: str,
    source: Optional[str] = None,
    default: float = 0.0,
) -> float:
    """Extract an optional numeric field, returning ``default`` when absent."""
    if not isinstance(obj, Mapping):
        raise MalformedConfig(f"Expected an object holding '{key}', got {obj!r}",
                              source=source, key=key)
    if key not in obj or obj[key] is None:
        logger.debug(f"Optional field '{key}' absent in {source}, using {default}")
        return default
    return to_number(obj[key], key, source)


def number_array(
    value: Any,
    key: str,
    source: Optional[str] = None,
    length: Optional[int] = None,
) -> np.ndarray:
    """
    Flatten a (possibly nested) numeric array into a 1-D float array.

    Args:
        value: List of numbers, or list of lists of numbers
        key: Field name, for error messages
        source: File name, for error messages
        length: Expected number of values after flattening

    Returns:
        1-D float64 array
    """
    if not isinstance(value, (list, tuple)):
        raise MalformedNumber(f"Expected an array, got {value!r}", source=source, key=key)

    flat = []
    stack = [iter(value)]
    while stack:
        try:
            item = next(stack[-1])
        except StopIteration:
            stack.pop()
            continue
        if isinstance(item, (list, tuple)):
            stack.append(iter(item))
        else:
            flat.append(to_number(item, key, source))

    if length is not None and len(flat) != length:
        raise MalformedNumber(
            f"Expected {length} values, got {len(flat)}", source=source, key=key
        )
    return np.array(flat, dtype=np.float64)
