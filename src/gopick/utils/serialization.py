"""
Test list serialization.

Provides JSON serialization and deserialization for discovered tests. The
serialized format includes a version for forward compatibility.
"""

import json
from typing import Any, Dict, Iterable, List

from ..discovery.results import TestCase


# Current serialization format version
SERIALIZATION_VERSION = "1.0"


def serialize(tests: Iterable[TestCase]) -> Dict[str, Any]:
    """Serialize tests to a JSON-serializable dictionary.

    The serialized format includes:
    - version: Format version string for forward compatibility
    - tests: One dictionary per test, in discovery order

    Raises:
        TypeError: If an item is not a TestCase
    """
    items = []
    for test in tests:
        if not isinstance(test, TestCase):
            raise TypeError(f"Expected TestCase, got {type(test)}")
        items.append(test.to_dict())
    return {"version": SERIALIZATION_VERSION, "tests": items}


def deserialize(data: Dict[str, Any]) -> List[TestCase]:
    """Deserialize tests from a dictionary.

    Raises:
        ValueError: If data is missing required fields or has an unknown version
        TypeError: If data is not a dictionary
    """
    if not isinstance(data, dict):
        raise TypeError(f"Expected dict, got {type(data)}")

    if "version" not in data:
        raise ValueError("Serialized tests must have 'version' field")
    if "tests" not in data:
        raise ValueError("Serialized tests must have 'tests' field")

    version = data["version"]
    if version != SERIALIZATION_VERSION:
        raise ValueError(
            f"Unsupported serialization version: {version}. "
            f"Expected {SERIALIZATION_VERSION}"
        )

    try:
        return [TestCase.from_dict(item) for item in data["tests"]]
    except KeyError as e:
        raise ValueError(f"Missing required field in test: {e}") from e


def to_json(tests: Iterable[TestCase], **kwargs) -> str:
    """Serialize tests to a JSON string (kwargs go to ``json.dumps``)."""
    return json.dumps(serialize(tests), **kwargs)


def from_json(json_str: str) -> List[TestCase]:
    """Deserialize tests from a JSON string.

    Raises:
        ValueError: If the JSON is invalid or has an invalid structure
    """
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e
    return deserialize(data)
