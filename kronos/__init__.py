# kronos/__init__.py
"""
Kronos package initializer.
Defines package version and exposes the API core.
"""
__version__ = "0.1.0"

from kronos.engine import Engine  # noqa: E402
from kronos.errors import BoundaryNotFound, KronosError, ParseError, TransportError  # noqa: E402

__all__ = ["__version__", "Engine", "KronosError", "TransportError", "ParseError", "BoundaryNotFound"]
