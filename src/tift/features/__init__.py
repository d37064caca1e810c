"""Feature machines and filters plugged into the engine proxy."""

from tift.features.bookmarks import BookmarkList, BookmarkManager
from tift.features.info import InfoFilter, print_info
from tift.features.inventory import InventoryFilter
from tift.features.pauser import PauseFilter, create_pause_filter
from tift.features.pickers import (
    create_colour_scheme_picker,
    create_dev_mode_picker,
    create_option_picker,
    create_ui_scheme_picker,
)
from tift.features.restarter import create_restarter
from tift.features.simple import create_simple_option
from tift.features.undoredo import UndoRedoFilter

__all__ = [
    "BookmarkList",
    "BookmarkManager",
    "InfoFilter",
    "InventoryFilter",
    "PauseFilter",
    "UndoRedoFilter",
    "create_colour_scheme_picker",
    "create_dev_mode_picker",
    "create_option_picker",
    "create_pause_filter",
    "create_restarter",
    "create_simple_option",
    "create_ui_scheme_picker",
    "print_info",
]
