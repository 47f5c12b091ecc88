#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Hardlink-aware size refinement and detection of optimised stores."""

import enum
import os
import pathlib
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from config import LINKS_DIR_NAME, LINKS_SAMPLE_LIMIT, SHARED_PREFIX
from depgraph import DepInfos, Derivation, add_derivation
from link_index import FileType, is_symlink, walk_tree
from logger_utils import get_logger

logger = get_logger("storedu.optimise")


class Optimisation(enum.Enum):
    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"


class OwnerKind(enum.Enum):
    ONE = "one"
    SEVERAL = "several"


@dataclass
class Owner:
    # ONE: node is the only derivation seen holding the inode.
    # SEVERAL: node is the shared node holding the file's size.
    kind: OwnerKind
    node: int


def refine_optimized_store(di: DepInfos, progress: Optional[Callable[[int, int], None]] = None):
    """
    Stat all the files in the store looking for hardlinked files,
    and adapt the sizes of the nodes to take this into account.

    Each file found in several derivations gets a `shared:` node holding its size;
    every derivation containing it gets an edge to that node and stops counting it.
    Not idempotent: running it twice subtracts shared sizes twice.
    Raises OSError on the first filesystem error; nodes changed so far stay changed.
    """
    # For every visited file, its inode is a key. ONE(n): seen once, from n.
    # SEVERAL(n): n is a node with the file's size, every store path holding the
    # file has an edge to n and no longer counts the file in its own size.
    inode_to_owner: Dict[int, Owner] = {}

    graph = di.graph
    indices = list(graph.nodes)
    total = len(indices)
    logger.info(f"Refining sizes over {total} nodes")
    shared_count = 0
    for i, idx in enumerate(indices):
        if progress is not None:
            progress(i, total)
        drv = di.derivation(idx)
        # roots are not necessarily readable, and anyway they are symlinks
        if drv.is_root:
            continue
        # dummy nodes like {memory:...}
        path = drv.path_as_os_str()
        if path is None:
            continue
        # a symlink to a directory would enumerate files outside this derivation
        if is_symlink(path):
            continue

        for entry in walk_tree(path):
            # only files are hardlinked
            if entry.file_type is not FileType.FILE:
                continue
            owner = inode_to_owner.get(entry.inode)
            if owner is None:
                inode_to_owner[entry.inode] = Owner(OwnerKind.ONE, idx)
                continue
            if owner.kind is OwnerKind.ONE:
                original = owner.node
                shared = add_derivation(graph, Derivation(
                    path=SHARED_PREFIX + di.derivation(original).name(),
                    size=entry.size,
                    is_root=False,
                ))
                graph.add_edge(original, shared)
                di.derivation(original).size -= entry.size
                owner.kind = OwnerKind.SEVERAL
                owner.node = shared
                shared_count += 1
            graph.add_edge(idx, owner.node)
            drv.size -= entry.size
    if progress is not None:
        progress(total, total)
    logger.info(f"Refinement created {shared_count} shared nodes")


def store_is_optimised(di: DepInfos) -> Optimisation:
    """
    Determine whether at least one path has been optimised in the store.
    Designed to be cheap, and to give up with UNKNOWN when it cannot be.
    Raises OSError when the links directory cannot be listed.
    """
    # The links directory is inferred: it sits next to the store entries.
    if not di.roots:
        return Optimisation.UNKNOWN
    root = di.roots[0]
    # roots are not in the store, let's get a real drv
    children = di.children(root)
    assert children, "root without child"
    path = di.derivation(children[0]).path_as_os_str()
    if path is None:
        return Optimisation.UNKNOWN
    store_dir = pathlib.Path(path).parent
    if store_dir == pathlib.Path(path):
        return Optimisation.UNKNOWN
    links = store_dir / LINKS_DIR_NAME

    with os.scandir(links) as it:
        for count, entry in enumerate(it):
            if count >= LINKS_SAMPLE_LIMIT:
                logger.debug(f"{links} holds more than {LINKS_SAMPLE_LIMIT} entries, giving up")
                return Optimisation.UNKNOWN
            if not entry.is_file(follow_symlinks=False):
                logger.warning(f"Strange, {entry.path} is not a file")
                return Optimisation.UNKNOWN
            if entry.stat(follow_symlinks=False).st_nlink > 1:
                # this file is optimised !
                return Optimisation.YES
    return Optimisation.NO
