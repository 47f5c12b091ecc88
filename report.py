# -*- coding: utf-8 -*-
"""Size formatting and summaries over a DepInfos."""

from typing import List

from rich.text import Text

from depgraph import DepInfos
from optimise import Optimisation

_UNITS = ["B", "KiB", "MiB", "GiB", "TiB"]


def human_size(n: int) -> str:
    value = float(n)
    for unit in _UNITS:
        if abs(value) < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{n} B"


def biggest(di: DepInfos, limit: int) -> List[int]:
    """Reachable non-root node indices, largest first."""
    reachable = [idx for idx in di.dfs() if not di.derivation(idx).is_root]
    reachable.sort(key=lambda idx: (-di.derivation(idx).size, idx))
    return reachable[:limit]


def summary_text(di: DepInfos, optimised: Optimisation) -> Text:
    text = Text()
    text.append("Reachable: ")
    text.append(human_size(di.reachable_size()), style="bold")
    text.append(f" in {len(di.roots)} roots, optimised: ")
    style = {Optimisation.YES: "green", Optimisation.NO: "red"}.get(optimised, "yellow")
    text.append(optimised.value, style=style)
    return text
