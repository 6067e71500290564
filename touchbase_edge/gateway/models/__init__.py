"""
Data model definitions package.

Aggregates request-routing, cache and API models for use in other modules.
"""

from .cache import CacheEntry
from .oauth import TokenExchangeRequest
from .routing import OutboundCredential, OutboundRequest, PathClass

__all__ = [
    "CacheEntry",
    "OutboundCredential",
    "OutboundRequest",
    "PathClass",
    "TokenExchangeRequest",
]
