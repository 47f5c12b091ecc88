#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
TUI browser for storedu using Textual, providing nnn-like navigation of the dependency graph.

The top level lists the roots; opening a node lists the nodes it depends on,
largest first. Sizes are the refined ones when the store was refined.
"""

import argparse
import sys
from typing import List, Optional, Tuple

from rich.console import Console
from rich.progress import Progress
from rich.text import Text
from textual.app import App, ComposeResult
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Static

from config import SHARED_PREFIX, TUI_KEYBINDS
from depgraph import DepInfos, StoreError
from logger_utils import get_logger
from optimise import Optimisation, refine_optimized_store, store_is_optimised
from report import human_size, summary_text
from store import populate_from_dump

logger = get_logger("storedu.tui")

Row = Tuple[int, str, str, int]


def listing(di: DepInfos, parent: Optional[int]) -> List[int]:
    """Indices shown under parent (roots when parent is None), largest first."""
    indices = list(di.roots) if parent is None else di.children(parent)
    indices.sort(key=lambda idx: (-di.derivation(idx).size, idx))
    return indices


def build_rows(di: DepInfos, indices: List[int]) -> List[Row]:
    rows = []
    for idx in indices:
        drv = di.derivation(idx)
        name = drv.name().decode("utf-8", errors="replace")
        rows.append((idx, name, human_size(drv.size), len(di.children(idx))))
    return rows


class StoreBrowserTUI(App):
    CSS_PATH = None
    BINDINGS = TUI_KEYBINDS

    cursor_index: int = reactive(0)

    def __init__(self, di: DepInfos, optimised: Optimisation = Optimisation.UNKNOWN, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.di = di
        self.optimised = optimised
        self.current: Optional[int] = None
        self.history: List[Tuple[Optional[int], int]] = []
        self.items: List[int] = []

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static(summary_text(self.di, self.optimised), id="summary")
        yield DataTable(id="nodetable")
        yield Static("", id="detail")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.add_columns("#", "Name", "Size", "Deps")
        self.load_node(None)
        table.focus()

    def load_node(self, parent: Optional[int], preserve_cursor_index: Optional[int] = None):
        """Loads the nodes below parent into the DataTable."""
        self.current = parent
        self.items = listing(self.di, parent)
        logger.debug(f"[load_node] parent={parent}, {len(self.items)} items")

        table = self.query_one(DataTable)
        table.clear()
        for pos, (idx, name, size, deps) in enumerate(build_rows(self.di, self.items)):
            name_text = Text(name)
            if self.di.derivation(idx).path.startswith(SHARED_PREFIX):
                name_text.stylize("magenta")
            elif self.di.derivation(idx).is_root:
                name_text.stylize("bold blue")
            table.add_row(str(pos + 1), name_text, size, str(deps) if deps else "")

        if preserve_cursor_index is not None and 0 <= preserve_cursor_index < len(self.items):
            self.cursor_index = preserve_cursor_index
        else:
            self.cursor_index = 0
        if self.items:
            table.move_cursor(row=self.cursor_index)

        if parent is None:
            self.sub_title = "roots"
        else:
            self.sub_title = self.di.derivation(parent).path.decode("utf-8", errors="replace")
        self._show_detail()

    def _show_detail(self):
        detail = self.query_one("#detail", Static)
        if not self.items or self.cursor_index >= len(self.items):
            detail.update("")
            return
        drv = self.di.derivation(self.items[self.cursor_index])
        path = drv.path.decode("utf-8", errors="replace")
        detail.update(Text(f"{path}  ({drv.size} bytes{', root' if drv.is_root else ''})"))

    def action_move_up(self):
        table = self.query_one(DataTable)
        if self.cursor_index > 0:
            self.cursor_index -= 1
            table.move_cursor(row=self.cursor_index)

    def action_move_down(self):
        table = self.query_one(DataTable)
        if self.cursor_index < len(self.items) - 1:
            self.cursor_index += 1
            table.move_cursor(row=self.cursor_index)

    def action_descend(self):
        if not self.items:
            self.bell()
            return
        idx = self.items[self.cursor_index]
        if not self.di.children(idx):
            self.bell()
            return
        self.history.append((self.current, self.cursor_index))
        self.load_node(idx)

    def action_go_back(self):
        if not self.history:
            self.bell()
            return
        parent, cursor = self.history.pop()
        self.load_node(parent, preserve_cursor_index=cursor)

    def action_quit(self):
        self.exit()

    def on_data_table_row_highlighted(self, event) -> None:
        self.cursor_index = event.cursor_row
        self._show_detail()

    def on_data_table_row_selected(self, event) -> None:
        # the table swallows enter itself
        self.cursor_index = event.cursor_row
        self.action_descend()

    def on_unmount(self) -> None:
        logger.info("storedu TUI session ended.")


def load(dump, refine: str, console: Console) -> Tuple[DepInfos, Optimisation]:
    """Read the dump, check for optimisation and refine sizes as requested."""
    di = DepInfos.read_from_store(populate_from_dump(dump))
    try:
        optimised = store_is_optimised(di)
    except OSError as e:
        logger.warning(f"Could not tell whether the store is optimised: {e}")
        optimised = Optimisation.UNKNOWN
    logger.info(f"Store optimised: {optimised.value}")

    if refine == "always" or (refine == "auto" and optimised is Optimisation.YES):
        with Progress(console=console, transient=True) as progress:
            task = progress.add_task("Looking for hardlinks", total=di.graph.number_of_nodes())

            def advance(done, total):
                progress.update(task, completed=done, total=total)

            refine_optimized_store(di, progress=advance)
    return di, optimised


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="storedu", description="Browse store disk usage, hardlink-aware.")
    parser.add_argument("dump", help="JSON export of the store graph")
    parser.add_argument("--refine", choices=["auto", "always", "never"], default="auto",
                        help="account for hardlinked files (auto: only if the store looks optimised)")
    args = parser.parse_args(argv)

    console = Console(stderr=True)
    try:
        di, optimised = load(args.dump, args.refine, console)
    except StoreError as e:
        console.print(f"[bold red]{e}[/bold red]")
        return e.status
    except OSError as e:
        logger.error(f"Refinement aborted: {e}")
        console.print(f"[bold red]Refinement aborted: {e}[/bold red]")
        return 1

    StoreBrowserTUI(di, optimised).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
