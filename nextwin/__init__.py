"""NextWin daily picks and bet analysis service."""

__version__ = "0.1.0"
