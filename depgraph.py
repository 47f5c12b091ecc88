#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Dependency graph of the store: derivations, roots and reachability."""

import os
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Set

import networkx as nx

from config import TRANSIENT_ROOT_PREFIXES
from logger_utils import get_logger

logger = get_logger("storedu.depgraph")

# Nodes are the ints 0..n-1, in insertion order; the payload lives under this key.
DRV = "drv"


@dataclass(order=True)
class Derivation:
    path: bytes
    size: int
    is_root: bool = False

    @classmethod
    def dummy(cls) -> "Derivation":
        return cls(path=b"", size=0, is_root=False)

    def name(self) -> bytes:
        """
        Return `blah` when the path is `/nix/store/<hash>-blah`.
        On failure, may return a bigger slice of the path. Roots keep their whole path.
        """
        whole = self.path
        if self.is_root:
            return whole
        slash = whole.rfind(b"/")
        if slash < 0:
            return whole
        whole = whole[slash + 1:]
        dash = whole.find(b"-")
        if dash < 0:
            return whole
        return whole[dash + 1:]

    def is_transient_root(self) -> bool:
        return self.path.startswith(TRANSIENT_ROOT_PREFIXES)

    def path_as_os_str(self) -> Optional[str]:
        """The path as a filesystem path, or None if it does not begin with '/'."""
        if not self.path.startswith(b"/"):
            return None
        return os.fsdecode(self.path)

    def __repr__(self):
        p = self.path.decode("utf-8", errors="replace")
        return f"Derivation {{ path: {p}, size: {self.size}{', root' if self.is_root else ''} }}"


class StoreError(Exception):
    """The store-access collaborator reported a nonzero status."""

    def __init__(self, status: int):
        super().__init__(f"store access failed with status {status}")
        self.status = status


def new_graph() -> nx.MultiDiGraph:
    return nx.MultiDiGraph()


def add_derivation(graph: nx.MultiDiGraph, drv: Derivation) -> int:
    idx = graph.number_of_nodes()
    graph.add_node(idx, **{DRV: drv})
    return idx


class GraphHandle:
    """
    What a store collaborator gets to fill a graph.

    Everything handed in is copied; node indices are assigned in call order.
    """

    def __init__(self, graph: nx.MultiDiGraph):
        self._graph = graph

    def register_node(self, path: bytes, size: int, is_root: bool) -> int:
        path = bytes(path)
        nul = path.find(b"\0")
        if nul >= 0:
            path = path[:nul]
        return add_derivation(self._graph, Derivation(path=path, size=int(size), is_root=bool(is_root)))

    def register_edge(self, src: int, dst: int):
        n = self._graph.number_of_nodes()
        if not (0 <= src < n and 0 <= dst < n):
            raise IndexError(f"edge {src} -> {dst} refers to an unknown node (have {n})")
        self._graph.add_edge(src, dst)


Populate = Callable[[GraphHandle], int]


class Dfs:
    """
    Restartable depth-first walk over outgoing edges.

    `next()` returns the next newly discovered node index, or None when done.
    """

    def __init__(self, graph: nx.MultiDiGraph, starts: List[int]):
        self.graph = graph
        self.stack: List[int] = []
        self.discovered: Set[int] = set()
        for idx in starts:
            if idx not in self.discovered:
                self.discovered.add(idx)
                self.stack.append(idx)

    def next(self) -> Optional[int]:
        if not self.stack:
            return None
        idx = self.stack.pop()
        for succ in self.graph.successors(idx):
            if succ not in self.discovered:
                self.discovered.add(succ)
                self.stack.append(succ)
        return idx

    def __iter__(self) -> Iterator[int]:
        while True:
            idx = self.next()
            if idx is None:
                return
            yield idx

    def move_to(self, start: int):
        """Continue from start, keeping the discovered set."""
        self.stack.clear()
        if start not in self.discovered:
            self.discovered.add(start)
            self.stack.append(start)

    def reset(self, starts: List[int]):
        self.stack.clear()
        self.discovered.clear()
        for idx in starts:
            if idx not in self.discovered:
                self.discovered.add(idx)
                self.stack.append(idx)


@dataclass
class DepInfos:
    graph: nx.MultiDiGraph
    roots: List[int] = field(default_factory=list)

    @classmethod
    def read_from_store(cls, populate: Populate) -> "DepInfos":
        """
        Return the dependency graph of the store.
        Connection specifics are left to `populate`, which fills the handle and returns a status.
        """
        graph = new_graph()
        status = populate(GraphHandle(graph))
        if status != 0:
            logger.error(f"Store collaborator failed with status {status}")
            raise StoreError(status)
        logger.info(f"Read {graph.number_of_nodes()} nodes and {graph.number_of_edges()} edges from the store")
        return cls.new_from_graph(graph)

    @classmethod
    def new_from_graph(cls, graph: nx.MultiDiGraph) -> "DepInfos":
        roots = [idx for idx, drv in graph.nodes(data=DRV) if drv.is_root]
        di = cls(graph=graph, roots=roots)
        assert di.roots_attr_coherent(), "roots do not match the root flags and graph structure"
        return di

    def derivation(self, idx: int) -> Derivation:
        return self.graph.nodes[idx][DRV]

    def children(self, idx: int) -> List[int]:
        return list(self.graph.successors(idx))

    def reachable_size(self) -> int:
        """Sum of the sizes of all derivations reachable from a root, each counted once."""
        return sum(self.derivation(idx).size for idx in self.dfs())

    def total_size(self) -> int:
        return sum(drv.size for _, drv in self.graph.nodes(data=DRV))

    def dfs(self) -> Dfs:
        """A Dfs suitable to visit all reachable nodes."""
        return Dfs(self.graph, list(self.roots))

    def roots_name(self) -> Set[bytes]:
        """Paths of the roots, mainly for tests."""
        return {self.derivation(idx).path for idx in self.roots}

    def roots_attr_coherent(self) -> bool:
        """
        Whether `roots` is exactly the set of nodes flagged is_root,
        and all of them have no incoming edge.
        """
        from_nodes = {idx for idx, drv in self.graph.nodes(data=DRV) if drv.is_root}
        from_attr = set(self.roots)
        from_structure = {idx for idx, deg in self.graph.in_degree() if deg == 0}
        return from_attr == from_nodes and from_nodes <= from_structure
