# -*- coding: utf-8 -*-
"""
Central configuration for storedu.
Contains static paths, name markers, keybinds, and other constants.
"""

import os
import getpass

# Name markers carried in Derivation.path
SHARED_PREFIX = b"shared:"
TRANSIENT_ROOT_PREFIXES = (b"{memory:", b"{temp:")

# Hardlink-optimisation bookkeeping, a sibling of the store entries
LINKS_DIR_NAME = ".links"
# The optimisation check gives up after this many entries
LINKS_SAMPLE_LIMIT = 10

# Keybinds for the TUI
TUI_KEYBINDS = [
    ("h", "go_back", "Back"),
    ("j", "move_down", "Move down"),
    ("k", "move_up", "Move up"),
    ("l", "descend", "Open"),
    ("enter", "descend", "Open"),
    ("q", "quit", "Quit"),
]

# Log file path
LOG_PATH = os.environ.get("STOREDU_LOG", f"/tmp/storedu_{getpass.getuser()}.log")
