"""YAML build profiles."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

PROFILE_KEYS: frozenset[str] = frozenset(
    {"channel_url", "output", "user_agent", "timeout", "max_retries", "log_level"},
)


def load_profile(path: str | Path) -> dict[str, Any]:
    """Load a YAML profile and return the recognised build settings.

    Example profile::

        channel_url: https://giphy.com/channel/perrysgifs
        output: site/data/gifs.json
        timeout: 20

    Unknown keys are ignored; a document that is not a mapping yields ``{}``.
    """
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if k in PROFILE_KEYS and v is not None}
