"""Public entry point."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any

from .application.generator import SheetGenerator
from .domain.config import GeneratorOptions


def marshal(
    collections: Mapping[str, Any],
    target: Path | str | IO[bytes],
    options: GeneratorOptions | None = None,
) -> Path | None:
    """Write named collections of records to an .xlsx path or binary stream.

    Nothing is written when any collection fails.
    """
    generator = SheetGenerator(options)
    generator.generate(collections)
    generator.save(target)
    return Path(target) if isinstance(target, (str, Path)) else None
