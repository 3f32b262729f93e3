"""Merge per-provider result lists into one AggregateResult."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from src.models.search import AggregateResult, ResultItem


def combine(per_provider: Mapping[str, Sequence[ResultItem]]) -> AggregateResult:
    """Build an AggregateResult from ``{provider_name: items}``.

    Pure: no I/O and no failure path.  Provider keys are copied exactly and
    in mapping order; each item list keeps its original order.
    """
    return AggregateResult(
        results={provider: list(items) for provider, items in per_provider.items()}
    )
