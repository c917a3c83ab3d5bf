"""
Version information for the Behavior Tree Editor
"""

__version__ = "0.3.0"
__version_info__ = (0, 3, 0)

APP_NAME = "Behavior Tree Editor"

# Version history
VERSION_HISTORY = """
Version 0.3.0
=============
Undo/redo replay through whole-tree snapshots.

New Features:
- Redo (Ctrl+Y) next to Undo (Ctrl+Z)
- Undo depth configurable with BTEDITOR_MAX_UNDO_STEPS
- Detached subtrees are kept when saving and loading

Bug Fixes:
- Deleting a link no longer records two undo steps
- Loading a file with an unknown node kind skips that subtree with one warning

Version 0.2.0
=============
Property panels and persistence.

New Features:
- Script panel (alias + code) for Action, Condition and Assert nodes
- Loop panel ("endless" when the count is 0) and Wait panel (milliseconds)
- JSON save/load of the tree
- Warnings shown in the status bar

Version 0.1.0
=============
Initial release of the visual behavior tree editor.

Features:
- Root, Sequence, Selector, Condition, Action, Loop, Wait and Assert nodes
- Drag nodes from the stencil onto the canvas
- Ctrl + drag between nodes to link parent -> child
- Orthogonal edge routing with arrowheads
- Grid background, Ctrl + wheel zoom
"""


def get_version():
    """Return the current version string"""
    return __version__


def get_version_info():
    """Return the version as a tuple"""
    return __version_info__


def get_version_string():
    return f"{APP_NAME} v{__version__}"


def print_version():
    """Print version information"""
    print(get_version_string())
    print()
    print(VERSION_HISTORY)


if __name__ == "__main__":
    print_version()
