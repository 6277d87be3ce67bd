"""
Diversity-balanced aggregation.

Items are grouped, each group is reduced to its weighted mean, and the groups
are combined with weights equal to their share of the item count, each share
capped at ``max_group_share``:

    A = Σ_g  mean_g × min(n_g / N, max_group_share)

Weight removed by the cap is dropped, not handed to other groups, so an
over-represented group loses influence instead of having it smoothed away.
When only one group is present it is not competing with anyone and the
result is simply that group's mean.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Hashable, Iterable

import numpy as np

from pulse.config import MAX_REGION_SHARE


@dataclass(frozen=True)
class ScoredItem:
    value: float
    weight: float
    group: Hashable


@dataclass
class AggregationResult:
    value: float
    group_means: dict[Hashable, float] = field(default_factory=dict)
    group_counts: dict[Hashable, int] = field(default_factory=dict)
    group_shares: dict[Hashable, float] = field(default_factory=dict)

    @property
    def weight_mass(self) -> float:
        return sum(self.group_shares.values())


def _weighted_mean(values: list[float], weights: list[float]) -> float:
    total = sum(weights)
    if total <= 0:
        return float(np.mean(values))
    return float(np.average(values, weights=weights))


def aggregate_groups(scored_items: Iterable[ScoredItem],
                     max_group_share: float = MAX_REGION_SHARE) -> AggregationResult:
    """Aggregate ``scored_items`` and report per-group means and capped shares."""
    if not 0.0 < max_group_share <= 1.0:
        raise ValueError(f"max_group_share must be in (0, 1], got {max_group_share}")

    values: dict[Hashable, list[float]] = defaultdict(list)
    weights: dict[Hashable, list[float]] = defaultdict(list)
    n = 0
    for item in scored_items:
        if not (math.isfinite(item.value) and math.isfinite(item.weight)):
            continue
        values[item.group].append(item.value)
        weights[item.group].append(max(0.0, item.weight))
        n += 1

    if n == 0:
        return AggregationResult(value=0.0)

    means = {g: _weighted_mean(values[g], weights[g]) for g in values}
    counts = {g: len(values[g]) for g in values}

    if len(means) == 1:
        group, mean = next(iter(means.items()))
        return AggregationResult(
            value=mean, group_means=means, group_counts=counts, group_shares={group: 1.0},
        )

    shares = {g: min(counts[g] / n, max_group_share) for g in means}
    total = sum(means[g] * shares[g] for g in means)
    return AggregationResult(
        value=float(total), group_means=means, group_counts=counts, group_shares=shares,
    )


def aggregate(scored_items: Iterable[ScoredItem],
              max_group_share: float = MAX_REGION_SHARE) -> float:
    """Diversity-balanced aggregate of ``scored_items``."""
    return aggregate_groups(scored_items, max_group_share).value
