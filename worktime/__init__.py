"""worktime: a local, single-user work-time tracker."""

from .cli import main

__version__ = "0.1.0"

__all__ = ["main", "__version__"]
