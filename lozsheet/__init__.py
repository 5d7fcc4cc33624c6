"""lozsheet: state engine for a single-page character sheet."""

__version__ = "1.0.0"
