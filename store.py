#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Store-access collaborators: callables that fill a GraphHandle and return a status.

0 is success; any other value is passed through to the caller as StoreError.status.
"""

import json
import os
from typing import Iterable, Sequence, Tuple

from depgraph import GraphHandle, Populate
from logger_utils import get_logger

logger = get_logger("storedu.store")

STATUS_OK = 0
STATUS_BAD_EDGE = 1
STATUS_UNREADABLE = 2
STATUS_MALFORMED = 3

NodeRecord = Tuple[bytes, int, bool]
EdgeRecord = Tuple[int, int]


def _fill(handle: GraphHandle, nodes: Iterable[NodeRecord], edges: Iterable[EdgeRecord]) -> int:
    for path, size, is_root in nodes:
        handle.register_node(path, size, is_root)
    for src, dst in edges:
        try:
            handle.register_edge(src, dst)
        except IndexError as e:
            logger.error(f"Rejected edge: {e}")
            return STATUS_BAD_EDGE
    return STATUS_OK


def populate_from_records(nodes: Sequence[NodeRecord], edges: Sequence[EdgeRecord]) -> Populate:
    """Serve in-memory (path, size, is_root) tuples and (from, to) index pairs."""
    def populate(handle: GraphHandle) -> int:
        return _fill(handle, nodes, edges)
    return populate


def populate_from_dump(dump_path) -> Populate:
    """
    Serve a JSON export of the form
    {"nodes": [{"path": ..., "size": ..., "is_root": ...}], "edges": [[from, to], ...]}.
    """
    def populate(handle: GraphHandle) -> int:
        try:
            with open(dump_path, "r", encoding="utf-8", errors="surrogateescape") as f:
                data = json.load(f)
        except OSError as e:
            logger.error(f"Failed to read store dump {dump_path}: {e}")
            return STATUS_UNREADABLE
        except ValueError as e:
            logger.error(f"Store dump {dump_path} is not valid JSON: {e}")
            return STATUS_MALFORMED
        try:
            nodes = [
                (os.fsencode(n["path"]), int(n["size"]), bool(n.get("is_root", False)))
                for n in data["nodes"]
            ]
            edges = [(int(src), int(dst)) for src, dst in data.get("edges", [])]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Store dump {dump_path} is malformed: {e}")
            return STATUS_MALFORMED
        return _fill(handle, nodes, edges)
    return populate
