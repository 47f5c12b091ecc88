#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Filesystem enumeration and hardlink metadata for storedu."""

import enum
import os
import pathlib
import stat
from dataclasses import dataclass
from typing import Iterator, List, Union

PathLike = Union[str, bytes, os.PathLike]


class FileType(enum.Enum):
    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass
class WalkEntry:
    path: pathlib.Path
    inode: int
    size: int
    file_type: FileType


@dataclass
class HardlinkEntry:
    path: pathlib.Path
    nlink: int
    inode: int
    is_hardlink: bool  # True if nlink > 1


def _file_type(mode: int) -> FileType:
    if stat.S_ISREG(mode):
        return FileType.FILE
    if stat.S_ISDIR(mode):
        return FileType.DIR
    if stat.S_ISLNK(mode):
        return FileType.SYMLINK
    return FileType.OTHER


def _entry(path: pathlib.Path) -> WalkEntry:
    st = path.lstat()
    return WalkEntry(path=path, inode=st.st_ino, size=st.st_size, file_type=_file_type(st.st_mode))


def _raise(error: OSError):
    raise error


def walk_tree(root: PathLike) -> Iterator[WalkEntry]:
    """
    Lazily yield an entry for root and for everything below it.

    Symlinks are reported, never followed. A root that is a plain file yields
    only itself. Any OSError met on the way propagates to the caller.
    """
    root_path = pathlib.Path(os.fsdecode(root))
    top = _entry(root_path)
    yield top
    if top.file_type is not FileType.DIR:
        return
    for dirpath, dirs, files in os.walk(root_path, onerror=_raise, followlinks=False):
        base = pathlib.Path(dirpath)
        for name in dirs + files:
            yield _entry(base / name)


def is_symlink(path: PathLike) -> bool:
    """lstat-based symlink check; raises if path does not exist."""
    return stat.S_ISLNK(os.lstat(path).st_mode)


def link_count(path: PathLike) -> int:
    return os.lstat(path).st_nlink


def scan_hardlinks(base_path: PathLike) -> List[HardlinkEntry]:
    """
    Recursively scan for all regular files under base_path, reporting their link counts.

    Args:
        base_path: The store entry (file or directory) to scan.

    Returns:
        List of HardlinkEntry objects, in walk order.
    """
    entries = []
    for entry in walk_tree(base_path):
        if entry.file_type is not FileType.FILE:
            continue
        nlink = link_count(entry.path)
        entries.append(HardlinkEntry(
            path=entry.path,
            nlink=nlink,
            inode=entry.inode,
            is_hardlink=nlink > 1,
        ))
    return entries
