"""
Application layer.

Modules:
    column_options.py - annotation string parser
    record_fields.py  - record introspection and opaque value types
    flattener.py      - first record -> column plan
    materializer.py   - record + plan -> row cells
    map_keys.py       - dynamic-field key consistency
    decorator.py      - autofilter, freeze, hidden, dropdowns
    generator.py      - SheetGenerator orchestration
"""

from .column_options import parse_column_options
from .flattener import flatten
from .generator import SheetGenerator
from .map_keys import MapKeyTracker, are_all_map_keys_same
from .materializer import materialize
from .record_fields import register_opaque_type

__all__ = [
    "MapKeyTracker",
    "SheetGenerator",
    "are_all_map_keys_same",
    "flatten",
    "materialize",
    "parse_column_options",
    "register_opaque_type",
]
