"""
Column annotation parser.

Turns the per-field annotation string into a ColumnOptions directive.

Grammar:
    displayName[,format:<fmt>][,width:<float>][,dropdown:<rows>][,dropdown-sheet:<name>|auto]

An empty annotation or "-" omits the field. A field with no annotation at
all is kept with an empty header.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping

from recordsheet.domain.errors import ParseError
from recordsheet.domain.models import ColumnOptions, DropdownSpec


__all__ = ["SKIP_MARKER", "parse_column_options"]

logger = logging.getLogger(__name__)

SKIP_MARKER = "-"


def _parse_width(raw: str, annotation: str) -> float:
    try:
        width = float(raw)
    except ValueError:
        raise ParseError("width", annotation, f"{raw!r} is not a number") from None
    if not math.isfinite(width) or width <= 0:
        raise ParseError("width", annotation, f"{raw!r} is not a positive width")
    return width


def _parse_row_count(raw: str, annotation: str) -> int:
    try:
        rows = int(raw)
    except ValueError:
        raise ParseError("dropdown", annotation, f"{raw!r} is not an integer") from None
    if rows <= 0:
        raise ParseError("dropdown", annotation, f"{raw!r} is not a positive row count")
    return rows


def parse_column_options(
    annotation: str | None,
    dropdown_values: Mapping[str, list[str]] | None = None,
) -> ColumnOptions:
    """
    Parse a field annotation into column options.

    Args:
        annotation: Raw annotation, or None when the field carries none
        dropdown_values: Allowed values per display name, used to fill
            inline dropdown values when a dropdown directive is present

    Returns:
        ColumnOptions for the field

    Raises:
        ParseError: If a width or dropdown value is malformed
    """
    if annotation is None:
        return ColumnOptions()

    if annotation in ("", SKIP_MARKER):
        return ColumnOptions(skip=True)

    name, *segments = annotation.split(",")

    number_format: str | None = None
    width: float | None = None
    row_count: int | None = None
    sheet: str | None = None

    for segment in segments:
        key, sep, value = segment.partition(":")
        if not sep:
            logger.debug("Ignoring directive without value %r in %r", segment, annotation)
            continue

        match key:
            case "format":
                number_format = value
            case "width":
                width = _parse_width(value, annotation)
            case "dropdown":
                row_count = _parse_row_count(value, annotation)
            case "dropdown-sheet":
                sheet = value or None
            case _:
                logger.debug("Ignoring unknown directive %r in %r", key, annotation)

    dropdown = None
    if row_count is not None or sheet is not None:
        values = ()
        if row_count is not None:
            values = tuple((dropdown_values or {}).get(name, ()))
        dropdown = DropdownSpec(
            row_count=row_count or 0,
            inline_values=values,
            sheet=sheet,
        )

    return ColumnOptions(
        display_name=name,
        number_format=number_format,
        width=width,
        dropdown=dropdown,
    )
