"""Domain models: re-exports all public model classes.

The models are organized across two submodules by domain concern:
    - search.py  : ResultItem, AggregateResult and CacheEntry
    - email.py   : EmailDocument rendered from an AggregateResult
"""

from __future__ import annotations

from src.models.email import EmailDocument
from src.models.search import AggregateResult, CacheEntry, ResultItem

__all__ = [
    "AggregateResult",
    "CacheEntry",
    "EmailDocument",
    "ResultItem",
]
