"""
Unit tests for the utils module.

These tests verify:
Visualization:
1. render_tree groups tests by file and nests subtests under their parents
2. The output is deterministic (same tests -> same string)
3. render_list prints one name per line with its location

Serialization:
1. serialize returns a JSON-serializable dict with a version key
2. Deserializing a dict with an unknown version or missing field raises a clear error
"""

import json

import pytest

from gopick.discovery import TestCase
from gopick.utils import (
    SERIALIZATION_VERSION,
    deserialize,
    from_json,
    render_list,
    render_tree,
    serialize,
    to_json,
)


@pytest.fixture
def tests():
    return [
        TestCase("TestA", "a_test.go", 3),
        TestCase("TestA/L1", "a_test.go", 4),
        TestCase("TestA/L1/L2", "a_test.go", 5),
        TestCase("TestA/other", "a_test.go", 8),
        TestCase("TestB", "b_test.go", 3),
    ]


class TestVisualization:
    """Tests for text rendering."""

    def test_tree(self, tests):
        assert render_tree(tests) == "\n".join([
            "a_test.go",
            "└── TestA",
            "    ├── L1",
            "    │   └── L2",
            "    └── other",
            "b_test.go",
            "└── TestB",
        ])

    def test_tree_is_deterministic(self, tests):
        assert render_tree(tests) == render_tree(list(tests))

    def test_duplicate_names_render_once(self):
        tests = [TestCase("TestA", "a_test.go"), TestCase("TestA/x", "a_test.go"), TestCase("TestA/x", "a_test.go")]
        assert render_tree(tests).count("x") == 1

    def test_empty(self):
        assert render_tree([]) == ""
        assert render_list([]) == ""

    def test_list(self, tests):
        lines = render_list(tests).splitlines()
        assert lines[0] == "TestA\ta_test.go:3"
        assert lines[2] == "TestA/L1/L2\ta_test.go:5"

    def test_list_without_location(self, tests):
        assert render_list(tests[:2], show_location=False) == "TestA\nTestA/L1"


class TestSerialization:
    """Tests for JSON serialization of discovered tests."""

    def test_serialize_is_json_compatible(self, tests):
        data = serialize(tests)
        json.dumps(data)
        assert data["version"] == SERIALIZATION_VERSION
        assert data["tests"][1] == {"name": "TestA/L1", "file": "a_test.go", "line": 4, "benchmark": False}

    def test_json_round_trip(self, tests):
        assert from_json(to_json(tests)) == tests

    def test_serialize_rejects_other_types(self):
        with pytest.raises(TypeError):
            serialize(["TestA"])

    def test_unknown_version(self):
        with pytest.raises(ValueError, match="Unsupported serialization version"):
            deserialize({"version": "0.1", "tests": []})

    def test_missing_tests_field(self):
        with pytest.raises(ValueError, match="'tests'"):
            deserialize({"version": SERIALIZATION_VERSION})

    def test_missing_test_field(self):
        with pytest.raises(ValueError, match="Missing required field"):
            deserialize({"version": SERIALIZATION_VERSION, "tests": [{"file": "a_test.go"}]})

    def test_invalid_json(self):
        with pytest.raises(ValueError, match="Invalid JSON"):
            from_json("{not json")

    def test_not_a_dict(self):
        with pytest.raises(TypeError):
            deserialize([])
