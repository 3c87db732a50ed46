"""Tests for gifgallery.manifest - building, writing and reading manifests."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from gifgallery.manifest import (
    ManifestError,
    WriteError,
    build_items,
    build_manifest,
    filter_items,
    load_manifest,
    select_page_url,
    write_manifest,
)
from gifgallery.materialize import materialize

CHANNEL = "https://giphy.com/channel/perrysgifs"
BUILT = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# build_manifest() - pure HTML -> Manifest
# ---------------------------------------------------------------------------

class TestBuildManifest:
    def test_empty_html_gives_empty_manifest(self, empty_html):
        manifest = build_manifest(empty_html, CHANNEL)
        assert manifest.count == 0
        assert manifest.items == ()

    def test_source_and_timestamp(self, channel_html):
        manifest = build_manifest(channel_html, CHANNEL, built_at=BUILT)
        assert manifest.source == CHANNEL
        assert manifest.built_at == BUILT

    def test_default_timestamp_is_utc_now(self, empty_html):
        manifest = build_manifest(empty_html, CHANNEL)
        assert manifest.built_at is not None
        assert manifest.built_at.tzinfo is not None

    def test_fixture_ids_in_first_seen_order(self, channel_html):
        manifest = build_manifest(channel_html, CHANNEL)
        assert [item.id for item in manifest.items] == ["Hero01", "ABC123", "XyZ789", "Wave42"]
        assert manifest.count == 4

    def test_fixture_titles(self, channel_html):
        manifest = build_manifest(channel_html, CHANNEL)
        assert [item.title for item in manifest.items] == [
            "hero banner",
            "funny cat dance",
            "happy friday dog",
            "waving hello",
        ]

    def test_end_to_end_scenario(self):
        html = """
            <a href="https://giphy.com/gifs/funny-cat-ABC123">a</a>
            <a href="https://giphy.com/gifs/broken-bad_id">b</a>
            <a href="https://giphy.com/gifs/happy-dog-DEF456">c</a>
            <a href="https://giphy.com/gifs/funny-cat-ABC123">dup</a>
        """
        manifest = build_manifest(html, CHANNEL)
        assert manifest.count == 2
        assert [item.id for item in manifest.items] == ["ABC123", "DEF456"]

    def test_distinct_urls_same_id_collapse(self):
        html = (
            '<a href="https://giphy.com/gifs/cat-ABC123">a</a>'
            '<a href="https://giphy.com/gifs/another-title-ABC123">b</a>'
        )
        manifest = build_manifest(html, CHANNEL)
        assert [item.id for item in manifest.items] == ["ABC123"]
        assert manifest.items[0].page_url == "https://giphy.com/gifs/cat-ABC123"

    def test_idempotent_ignoring_timestamp(self, channel_html):
        first = build_manifest(channel_html, CHANNEL)
        second = build_manifest(channel_html, CHANNEL)
        assert first.items == second.items

    def test_build_items_matches_manifest(self, channel_html):
        assert tuple(build_items(channel_html)) == build_manifest(channel_html, CHANNEL).items


class TestSelectPageUrl:
    def test_exact_id_preferred_over_substring(self):
        urls = [
            "https://giphy.com/gifs/first-AB-other",
            "https://giphy.com/gifs/second-AB",
        ]
        # "-AB" also appears inside the first segment
        assert select_page_url("AB", urls) == "https://giphy.com/gifs/second-AB"

    def test_substring_fallback(self):
        # No URL parses to AB12 exactly, but one segment contains "-AB12"
        urls = ["https://giphy.com/gifs/cat-AB12-x_y"]
        assert select_page_url("AB12", urls) == "https://giphy.com/gifs/cat-AB12-x_y"

    def test_synthesized_when_nothing_matches(self):
        assert select_page_url("ZZ9", ["https://giphy.com/gifs/cat-AB12"]) == (
            "https://giphy.com/gifs/ZZ9"
        )

    def test_empty_candidates(self):
        assert select_page_url("ZZ9", []) == "https://giphy.com/gifs/ZZ9"


class TestFilterItems:
    def _items(self):
        return [
            materialize("ABC123", "https://giphy.com/gifs/funny-cat-ABC123"),
            materialize("DEF456", "https://giphy.com/gifs/happy-dog-DEF456"),
        ]

    def test_empty_query_returns_all(self):
        assert len(filter_items(self._items(), "")) == 2

    def test_matches_title_case_insensitively(self):
        result = filter_items(self._items(), "  CAT ")
        assert [item.id for item in result] == ["ABC123"]

    def test_matches_id(self):
        assert [item.id for item in filter_items(self._items(), "def4")] == ["DEF456"]

    def test_no_match(self):
        assert filter_items(self._items(), "zebra") == []


# ---------------------------------------------------------------------------
# write_manifest() / load_manifest()
# ---------------------------------------------------------------------------

class TestWriteManifest:
    def test_writes_expected_json(self, channel_html, tmp_path: Path):
        manifest = build_manifest(channel_html, CHANNEL, built_at=BUILT)
        path = write_manifest(manifest, tmp_path / "data" / "gifs.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert list(data) == ["channel", "builtAt", "count", "gifs"]
        assert data["channel"] == CHANNEL
        assert data["builtAt"] == "2024-05-01T12:00:00.000Z"
        assert data["count"] == len(data["gifs"]) == 4
        assert data["gifs"][1] == {
            "id": "ABC123",
            "pageUrl": "https://giphy.com/gifs/funny-cat-dance-ABC123",
            "title": "funny cat dance",
            "gifUrl": "https://media.giphy.com/media/ABC123/giphy.gif",
            "previewUrl": "https://media.giphy.com/media/ABC123/giphy_s.gif",
            "stillUrl": "https://media.giphy.com/media/ABC123/200.gif",
        }

    def test_overwrites_previous_manifest(self, channel_html, empty_html, tmp_path: Path):
        path = tmp_path / "gifs.json"
        write_manifest(build_manifest(channel_html, CHANNEL), path)
        write_manifest(build_manifest(empty_html, CHANNEL), path)
        assert json.loads(path.read_text(encoding="utf-8"))["count"] == 0
        assert [p.name for p in tmp_path.iterdir()] == ["gifs.json"]

    def test_unwritable_destination_raises_write_error(self, empty_html, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(WriteError) as exc_info:
            write_manifest(build_manifest(empty_html, CHANNEL), blocker / "gifs.json")
        assert exc_info.value.path == str(blocker / "gifs.json")

    def test_replace_failure_cleans_temp_file(self, empty_html, tmp_path: Path):
        with patch("gifgallery.manifest.os.replace", side_effect=OSError("disk full")), \
             pytest.raises(WriteError):
            write_manifest(build_manifest(empty_html, CHANNEL), tmp_path / "gifs.json")
        assert list(tmp_path.iterdir()) == []


class TestLoadManifest:
    def test_round_trip(self, channel_html, tmp_path: Path):
        manifest = build_manifest(channel_html, CHANNEL, built_at=BUILT)
        path = write_manifest(manifest, tmp_path / "gifs.json")
        loaded = load_manifest(path)
        assert loaded.items == manifest.items
        assert loaded.built_at == BUILT
        assert loaded.source == CHANNEL

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ManifestError):
            load_manifest(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "gifs.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ManifestError):
            load_manifest(path)

    def test_non_object(self, tmp_path: Path):
        path = tmp_path / "gifs.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ManifestError):
            load_manifest(path)

    def test_non_list_gifs_treated_as_empty(self, tmp_path: Path):
        path = tmp_path / "gifs.json"
        path.write_text(json.dumps({"channel": CHANNEL, "gifs": {"a": 1}}), encoding="utf-8")
        loaded = load_manifest(path)
        assert loaded.count == 0
        assert loaded.built_at is None

    def test_malformed_entries_dropped_and_count_recomputed(self, tmp_path: Path):
        path = tmp_path / "gifs.json"
        path.write_text(
            json.dumps({
                "channel": CHANNEL,
                "builtAt": "garbage",
                "count": 99,
                "gifs": [
                    {"id": "A1", "pageUrl": "https://giphy.com/gifs/cat-A1", "title": ""},
                    "not an object",
                    {"id": "bad id"},
                    {"id": "A1", "pageUrl": "https://giphy.com/gifs/other-A1"},
                ],
            }),
            encoding="utf-8",
        )
        loaded = load_manifest(path)
        assert loaded.count == 1
        assert loaded.items[0].title == "cat"
        assert loaded.built_at is None
