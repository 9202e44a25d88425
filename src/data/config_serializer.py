"""Serialization of settings and arbitrary objects for JSON snapshots.

Converts settings dictionaries, participant details and user objects into
plain JSON-compatible values before they are handed to the write queue.
"""

import dataclasses
import json
from enum import Enum
from pathlib import Path
from typing import Any

import numpy as np

from constants import JSON_INDENT


def to_serializable(value: Any) -> Any:
    """Recursively convert a value to JSON-compatible primitives.

    Handles:
    - Dataclasses (recursively serialized)
    - Mappings (keys converted to strings)
    - Tuples, lists and sets (converted to lists)
    - numpy arrays and scalars (converted to Python values)
    - Enums and paths (converted to their value / posix string)
    - Primitive types (passed through)

    Args:
        value: Object to convert

    Returns:
        Representation suitable for json.dumps
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: to_serializable(getattr(value, field.name))
            for field in dataclasses.fields(value)
        }

    elif isinstance(value, dict):
        return {str(key): to_serializable(item) for key, item in value.items()}

    elif isinstance(value, (list, tuple, set, frozenset)):
        return [to_serializable(item) for item in value]

    elif isinstance(value, np.ndarray):
        return value.tolist()

    elif isinstance(value, np.generic):
        return value.item()

    elif isinstance(value, Enum):
        return to_serializable(value.value)

    elif isinstance(value, Path):
        return value.as_posix()

    else:
        # Primitive types: int, float, str, bool, None
        return value


def to_json(value: Any) -> str:
    """Serialize a value to indented JSON text.

    Args:
        value: Object to serialize (converted with to_serializable first)

    Returns:
        JSON string

    Raises:
        TypeError: If the value contains objects that cannot be converted
    """
    return json.dumps(to_serializable(value), indent=JSON_INDENT, ensure_ascii=False)
