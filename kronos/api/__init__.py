# File: kronos/api/__init__.py
"""kronos.api: клиент NationStates API с общим ограничителем частоты запросов."""

from .boundary import BoundaryScanner
from .cache import NationCountCache, TagCache
from .lookup import EmbassyLookup, LastUpdateLookup, normalize_region
from .models import Happening
from .transport import RateLimitedTransport

__all__ = [
    "RateLimitedTransport",
    "TagCache",
    "NationCountCache",
    "BoundaryScanner",
    "EmbassyLookup",
    "LastUpdateLookup",
    "Happening",
    "normalize_region",
]
