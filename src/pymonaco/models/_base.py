"""Base model for live feed entries.

Every feed model inherits from :class:`MonacoBaseModel` which provides:

* ``alias_generator=to_pascal`` so the feed's PascalCase keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that strips empty-string values
  so the field default is used.
* A ``raw`` dict that captures the original entry.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_pascal

from pymonaco.ingestion.normalize import parse_utc


def _coerce_utc(value: Any) -> Any:
    parsed = parse_utc(value)
    # Leave unparseable values alone so pydantic reports them.
    return parsed if parsed is not None else value


FeedTimestamp = Annotated[datetime, BeforeValidator(_coerce_utc)]
"""Annotated type that parses feed ISO timestamps as UTC-aware datetimes."""


class MonacoBaseModel(BaseModel):
    """Base for live feed models.

    Handles:
    * PascalCase → snake_case via ``alias_generator=to_pascal``
    * Empty strings → dropped so the field default is used instead
    * Stashes the original feed dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_pascal,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original feed entry."""

    @model_validator(mode="before")
    @classmethod
    def _clean_feed_values(cls, values: Any) -> Any:
        """Strip empty values and stash the raw entry."""
        if not isinstance(values, dict):
            return values
        original = dict(values)
        cleaned = {key: value for key, value in original.items() if value is not None and value != ""}
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
