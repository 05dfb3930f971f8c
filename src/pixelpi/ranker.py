"""Ordering and aggregation of per-image pi estimates."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import numpy as np

from .exceptions import InvalidInputError
from .models import EstimateRecord, SummaryStatistics


def _collect(
    records: Mapping[str, EstimateRecord] | Iterable[EstimateRecord],
) -> list[EstimateRecord]:
    """Materialise records and reject duplicate or mismatched identifiers."""
    if isinstance(records, Mapping):
        collected = []
        for key, record in records.items():
            if key != record.identifier:
                msg = f"Key {key!r} does not match record identifier {record.identifier!r}"
                raise InvalidInputError(msg)
            collected.append(record)
        return collected

    collected = list(records)
    seen: set[str] = set()
    for record in collected:
        if record.identifier in seen:
            msg = f"Duplicate image identifier {record.identifier!r}"
            raise InvalidInputError(msg)
        seen.add(record.identifier)
    return collected


def _sort(collected: list[EstimateRecord]) -> list[EstimateRecord]:
    return sorted(collected, key=lambda r: (r.error, r.identifier))


def _summarise(collected: list[EstimateRecord]) -> SummaryStatistics:
    if not collected:
        msg = "Cannot summarise an empty record set"
        raise InvalidInputError(msg)

    estimates = np.array([r.estimate for r in collected], dtype=np.float64)
    std = float(np.std(estimates, ddof=1)) if len(estimates) > 1 else 0.0
    return SummaryStatistics(count=len(estimates), mean=float(np.mean(estimates)), std=std)


def rank(
    records: Mapping[str, EstimateRecord] | Iterable[EstimateRecord],
) -> list[EstimateRecord]:
    """Order records by ascending absolute error.

    Ties are broken by identifier so the order is the same on every run.
    Ranking an already ranked list returns it unchanged.

    Args:
        records: Mapping of identifier to record, or an iterable of records.

    Returns:
        New list of records sorted by (error, identifier).

    Raises:
        InvalidInputError: If an identifier occurs more than once.
    """
    return _sort(_collect(records))


def top_k(ranked: list[EstimateRecord], k: int) -> list[EstimateRecord]:
    """First k records of a ranking.

    k larger than the ranking returns the whole ranking.

    Raises:
        InvalidInputError: If k is negative.
    """
    if k < 0:
        msg = f"k must be >= 0, got {k}"
        raise InvalidInputError(msg)
    return list(ranked[:k])


def summary_statistics(
    records: Mapping[str, EstimateRecord] | Iterable[EstimateRecord],
) -> SummaryStatistics:
    """Mean and sample standard deviation of the estimates.

    Args:
        records: Mapping of identifier to record, or an iterable of records.

    Returns:
        SummaryStatistics over all estimates.

    Raises:
        InvalidInputError: If there are no records or identifiers repeat.
    """
    return _summarise(_collect(records))


def rank_and_summarise(
    records: Mapping[str, EstimateRecord] | Iterable[EstimateRecord],
) -> tuple[list[EstimateRecord], SummaryStatistics]:
    """Rank records and summarise their estimates from a single collection pass.

    Returns:
        Tuple of (rank(records), summary_statistics(records)).

    Raises:
        InvalidInputError: If identifiers repeat or there are no records.
    """
    collected = _collect(records)
    return _sort(collected), _summarise(collected)
