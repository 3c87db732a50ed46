"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def channel_html() -> str:
    return _read_fixture("channel.html")


@pytest.fixture
def empty_html() -> str:
    return "<html><body><p>Nothing to see here.</p></body></html>"
