"""focusboard — focus-zone kanban board with dense card ordering."""

__version__ = "0.1.0"
