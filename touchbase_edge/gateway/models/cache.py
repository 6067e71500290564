"""
Cache entry model.
"""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict


class CacheEntry(BaseModel):
    """
    Snapshot of a backend response stored in the edge cache.

    Entries are never updated in place; a refreshed value replaces the whole entry.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    headers: List[Tuple[str, str]]
    body: bytes
    stored_at: float
