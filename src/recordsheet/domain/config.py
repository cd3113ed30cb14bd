"""
Generator configuration domain model.

Controls the sheet-level cosmetic options applied after a collection has
been written: autofilter, freeze panes, hidden sheets and dropdown value
tables.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recordsheet.domain.models import FreezePane


logger = logging.getLogger(__name__)


class GeneratorOptions(BaseModel):
    """
    Options recognised by the sheet generator.

    Mirrors the JSON configuration file accepted by
    ``recordsheet.infrastructure.config_loader.load_options``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    auto_filter: bool = Field(
        default=False,
        description="Add an autofilter over the header and all data rows",
    )

    freeze_first_row: bool = Field(
        default=False,
        description="Freeze the header row",
    )

    freeze_first_column: bool = Field(
        default=False,
        description="Freeze the first column (wins over freeze_first_row)",
    )

    hidden_sheets: frozenset[str] = Field(
        default_factory=frozenset,
        description="Names of sheets to mark hidden",
    )

    dropdown_values: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Allowed values per column display name for dropdown columns",
    )

    dropdown_sheet_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Sheet holding the allowed values, per column display name",
    )

    @field_validator("dropdown_values")
    @classmethod
    def validate_dropdown_values(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        """Reject dropdown tables with no values."""
        for column, values in v.items():
            if not values:
                raise ValueError(f"dropdown value list for '{column}' is empty")
        return v

    @field_validator("hidden_sheets", "dropdown_sheet_overrides")
    @classmethod
    def validate_sheet_names(cls, v, info):
        """Sheet names must be non-blank."""
        names = v.values() if isinstance(v, dict) else v
        for name in names:
            if not str(name).strip():
                raise ValueError(f"{info.field_name} contains a blank sheet name")
        return v

    @property
    def freeze(self) -> FreezePane:
        """Resolve the freeze mode; first column takes precedence."""
        if self.freeze_first_column:
            if self.freeze_first_row:
                logger.debug(
                    "Both freeze_first_column and freeze_first_row set; "
                    "freezing first column only"
                )
            return FreezePane.FIRST_COLUMN
        if self.freeze_first_row:
            return FreezePane.FIRST_ROW
        return FreezePane.NONE

    def is_hidden(self, sheet_name: str) -> bool:
        return sheet_name in self.hidden_sheets
