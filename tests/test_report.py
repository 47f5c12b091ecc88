"""Tests for size formatting, summaries and the browser's listings."""

from depgraph import DepInfos
from optimise import Optimisation
from report import biggest, human_size, summary_text
from store import populate_from_records
from tui_browser import build_rows, listing


def _make_di():
    nodes = [
        (b"/gcroots/x", 0, True),
        (b"/nix/store/aaaa-small", 10, False),
        (b"/nix/store/bbbb-big", 5000, False),
        (b"/nix/store/cccc-dep", 300, False),
        (b"/nix/store/dddd-orphan", 99999, False),
    ]
    edges = [(0, 1), (0, 2), (2, 3)]
    return DepInfos.read_from_store(populate_from_records(nodes, edges))


class TestHumanSize:
    def test_bytes(self):
        assert human_size(0) == "0 B"
        assert human_size(1023) == "1023 B"

    def test_units(self):
        assert human_size(1024) == "1.0 KiB"
        assert human_size(1536 * 1024) == "1.5 MiB"
        assert human_size(3 * 1024 ** 3) == "3.0 GiB"
        assert human_size(2 * 1024 ** 5) == "2048.0 TiB"


class TestListings:
    def test_biggest_ignores_roots_and_unreachable(self):
        assert biggest(_make_di(), 10) == [2, 3, 1]
        assert biggest(_make_di(), 1) == [2]

    def test_summary(self):
        text = summary_text(_make_di(), Optimisation.NO)
        assert "5.2 KiB" in text.plain
        assert text.plain.endswith("optimised: no")

    def test_listing_top_level_is_roots(self):
        assert listing(_make_di(), None) == [0]

    def test_listing_children_largest_first(self):
        assert listing(_make_di(), 0) == [2, 1]

    def test_build_rows(self):
        di = _make_di()
        rows = build_rows(di, listing(di, 0))
        assert rows == [(2, "big", "4.9 KiB", 1), (1, "small", "10 B", 0)]
