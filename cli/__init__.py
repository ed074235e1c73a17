"""
roomstate CLI - planning poker room projection tools

Commands:
- roomstate replay - Rebuild room state from a recorded event stream
- roomstate events tail/inspect - Recorded event stream inspection
- roomstate version - Version information
"""

from roomstate import __version__

__all__ = ["__version__"]
