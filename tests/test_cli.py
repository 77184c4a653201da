"""Tests for the command-line entry point."""

import json

from m3u_relay.main import main, select_entries
from m3u_relay.models import Entry

PLAYLIST = (
    "#EXTM3U\n"
    '#EXTINF:-1 group-title="News",World News\n'
    "http://x/1\n"
    '#EXTINF:-1 group-title="Sports",Football Live\n'
    "http://x/2\n"
    '#EXTINF:-1 group-title="news",Local News\n'
    "http://x/3\n"
)


def _entry(index, name, group):
    return Entry(id=f"entry-{index}", display_name=name, group_name=group, media_url=f"http://x/{index}")


class TestSelectEntries:
    entries = [
        _entry(0, "World News", "News"),
        _entry(1, "Football Live", "Sports"),
        _entry(2, "Local news", "Local"),
    ]

    def test_no_filters_keeps_everything(self):
        assert select_entries(self.entries) == self.entries

    def test_groups_are_case_insensitive(self):
        assert [e.id for e in select_entries(self.entries, groups=["news", "LOCAL"])] == ["entry-0", "entry-2"]

    def test_search_matches_display_name(self):
        assert [e.id for e in select_entries(self.entries, search="NEWS")] == ["entry-0", "entry-2"]

    def test_filters_combine(self):
        assert [e.id for e in select_entries(self.entries, groups=["Local"], search="news")] == ["entry-2"]


class TestCommands:
    def test_export_writes_selected_entries(self, tmp_path):
        source = tmp_path / "in.m3u"
        source.write_text(PLAYLIST, encoding="utf-8")
        target = tmp_path / "out" / "news.m3u"

        main(["export", str(source), "--groups", "News", "--output", str(target)])

        assert target.read_text(encoding="utf-8") == (
            "#EXTM3U\n"
            '#EXTINF:-1 group-title="News",World News\n'
            "http://x/1\n"
            '#EXTINF:-1 group-title="news",Local News\n'
            "http://x/3\n"
        )

    def test_parse_writes_json(self, tmp_path):
        source = tmp_path / "in.m3u"
        source.write_text(PLAYLIST, encoding="utf-8")
        target = tmp_path / "result.json"

        main(["parse", str(source), "--json", str(target)])

        payload = json.loads(target.read_text(encoding="utf-8"))
        assert payload["totalEntries"] == 3
        assert [g["name"] for g in payload["groups"]] == ["News", "Sports", "news"]
        assert payload["entries"][1]["mediaUrl"] == "http://x/2"

    def test_missing_playlist_is_reported(self, tmp_path, caplog):
        main(["parse", str(tmp_path / "missing.m3u")])
        assert "Playlist not found" in caplog.text
