"""Line matching and working tree traversal."""

from .matcher import Emit, match_line, scan_lines
from .walker import TreeWalker, WalkOutcome

__all__ = ["Emit", "TreeWalker", "WalkOutcome", "match_line", "scan_lines"]
