"""flowcraft - typed workflow graphs with undo/redo editing.

Builds directed graphs of start, transform and end nodes, runs them into an
execution trace, and keeps a snapshot history of every edit.
"""

__version__ = "0.1.0"
