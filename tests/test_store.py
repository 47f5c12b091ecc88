"""Tests for the store-access collaborators."""

import json

import pytest

from depgraph import DepInfos, StoreError
from store import STATUS_MALFORMED, STATUS_UNREADABLE, populate_from_dump


def _write_dump(tmp_path, data):
    path = tmp_path / "dump.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestDump:
    def test_reads_nodes_and_edges(self, tmp_path):
        dump = _write_dump(tmp_path, {
            "nodes": [
                {"path": "/gcroots/x", "size": 0, "is_root": True},
                {"path": "/nix/store/aaaa-foo", "size": 12},
            ],
            "edges": [[0, 1]],
        })
        di = DepInfos.read_from_store(populate_from_dump(dump))
        assert di.roots == [0]
        assert di.derivation(1).path == b"/nix/store/aaaa-foo"
        assert di.derivation(1).size == 12
        assert di.reachable_size() == 12

    def test_missing_file(self, tmp_path):
        with pytest.raises(StoreError) as exc:
            DepInfos.read_from_store(populate_from_dump(tmp_path / "nope.json"))
        assert exc.value.status == STATUS_UNREADABLE

    def test_not_json(self, tmp_path):
        path = tmp_path / "dump.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError) as exc:
            DepInfos.read_from_store(populate_from_dump(path))
        assert exc.value.status == STATUS_MALFORMED

    def test_missing_fields(self, tmp_path):
        dump = _write_dump(tmp_path, {"nodes": [{"path": "/nix/store/aaaa-foo"}]})
        with pytest.raises(StoreError) as exc:
            DepInfos.read_from_store(populate_from_dump(dump))
        assert exc.value.status == STATUS_MALFORMED
