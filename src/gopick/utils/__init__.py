"""
Utility functions for gopick.

This module provides utilities for presenting discovered tests:
- visualization: Text-based tree and list rendering
- serialization: JSON serialization/deserialization of test lists
"""

from .visualization import render_tree, render_list
from .serialization import (
    serialize,
    deserialize,
    to_json,
    from_json,
    SERIALIZATION_VERSION
)

__all__ = [
    'render_tree',
    'render_list',
    'serialize',
    'deserialize',
    'to_json',
    'from_json',
    'SERIALIZATION_VERSION'
]
