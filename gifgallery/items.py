"""Pydantic models for gallery items and the manifest written for the gallery page."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from gifgallery.extractors.pageurls import title_from_page_url

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9]+")


# ---------------------------------------------------------------------------
# Gallery item
# ---------------------------------------------------------------------------

class GalleryItem(BaseModel):
    """One GIF in the gallery.

    Attributes use snake_case; the JSON manifest uses the camelCase aliases
    that the gallery page reads.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    page_url: str = Field(alias="pageUrl")
    title: str = ""
    gif_url: str = Field(alias="gifUrl")
    preview_url: str = Field(alias="previewUrl")
    still_url: str = Field(default="", alias="stillUrl")

    @field_validator("id")
    @classmethod
    def check_id(cls, v: str) -> str:
        if not _IDENTIFIER_RE.fullmatch(v):
            raise ValueError(f"not an alphanumeric GIF id: {v!r}")
        return v

    def to_json_dict(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------

class Manifest(BaseModel):
    """Snapshot of a channel: build metadata plus the ordered gallery items."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: str = Field(alias="channel")
    built_at: datetime | None = Field(default=None, alias="builtAt")
    count: int = 0
    items: tuple[GalleryItem, ...] = Field(default=(), alias="gifs")

    @model_validator(mode="after")
    def check_items(self) -> Manifest:
        if self.count != len(self.items):
            raise ValueError(
                f"count is {self.count} but manifest holds {len(self.items)} items",
            )
        ids = [item.id for item in self.items]
        if len(set(ids)) != len(ids):
            raise ValueError("duplicate GIF ids in manifest")
        return self

    def to_json_dict(self) -> dict[str, Any]:
        """Return the manifest as written to disk: ``channel, builtAt, count, gifs``."""
        return {
            "channel": self.source,
            "builtAt": format_timestamp(self.built_at),
            "count": self.count,
            "gifs": [item.to_json_dict() for item in self.items],
        }


def format_timestamp(value: datetime | None) -> str | None:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Defensive reading (mirrors what the gallery page does with gifs.json)
# ---------------------------------------------------------------------------

def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def coerce_item(raw: Any) -> GalleryItem | None:
    """Build a :class:`GalleryItem` from an untrusted manifest entry.

    Every field is coerced to a string.  An empty title is derived from the
    page URL the same way the build does it.  Returns None for entries that
    are not objects or carry an invalid id.

    This is stricter than the browser gallery, which keeps every entry and
    stringifies missing fields to ``"undefined"``.  Here a missing field
    becomes ``""`` and entries with ids the build could never produce are
    dropped, so a loaded manifest satisfies the same invariants as a built
    one.
    """
    if not isinstance(raw, dict):
        return None
    page_url = _as_str(raw.get("pageUrl"))
    title = _as_str(raw.get("title")) or title_from_page_url(page_url)
    try:
        return GalleryItem(
            id=_as_str(raw.get("id")),
            page_url=page_url,
            title=title,
            gif_url=_as_str(raw.get("gifUrl")),
            preview_url=_as_str(raw.get("previewUrl")),
            still_url=_as_str(raw.get("stillUrl")),
        )
    except ValidationError as exc:
        logger.debug("Skipping malformed manifest entry %r: %s", raw.get("id"), exc)
        return None
