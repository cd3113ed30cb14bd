"""
Shared test fixtures.

Record types live in the test modules themselves (module level, so their
annotations resolve); this file only provides workbook helpers.
"""

from __future__ import annotations

import io
import logging

import pytest
from openpyxl import load_workbook

from recordsheet.application import record_fields


@pytest.fixture
def reload_workbook():
    """Save a generator (or backend) to memory and load it back with openpyxl."""

    def _reload(generator):
        buffer = io.BytesIO()
        generator.save(buffer)
        buffer.seek(0)
        return load_workbook(buffer)

    return _reload


@pytest.fixture
def isolated_opaque_types(monkeypatch):
    """Let a test register opaque types without leaking them to other tests."""
    monkeypatch.setattr(record_fields, "_OPAQUE_TYPES", list(record_fields._OPAQUE_TYPES))
    record_fields.describe_fields.cache_clear()
    yield
    record_fields.describe_fields.cache_clear()


@pytest.fixture
def restore_logging():
    """Undo setup_logging() changes to the root logger."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)
