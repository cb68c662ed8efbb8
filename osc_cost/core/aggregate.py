"""Fold priced resources into one Aggregate per category."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from .resources import Aggregate, Resource, Resources

_LOGGER = logging.getLogger(__name__)


def _add(total: Optional[float], value: Optional[float]) -> float:
    return (total or 0.0) + (value or 0.0)


def _contribution_count(resource: Resource) -> int:
    if isinstance(resource, Aggregate):
        return resource.count
    return 1


def aggregate(resources: Iterable[Resource]) -> Resources:
    """Group resources by category label and sum their prices.

    The first contribution to a label adopts its raw prices, so a category in
    which nothing was priced stays unpriced (None) instead of becoming 0.
    Aggregates passed in are folded by their own label and carried count,
    which makes aggregate(aggregate(xs)) == aggregate(xs).
    """
    by_category: Dict[str, Aggregate] = {}
    for resource in resources:
        label = resource.category
        current = by_category.get(label)
        if current is None:
            by_category[label] = Aggregate(
                osc_cost_version=resource.osc_cost_version,
                account_id=resource.account_id,
                read_date_rfc3339=resource.read_date_rfc3339,
                region=resource.region,
                resource_id=resource.resource_id,
                price_per_hour=resource.price_per_hour,
                price_per_month=resource.price_per_month,
                aggregated_resource_type=label,
                count=_contribution_count(resource),
            )
            continue
        current.price_per_hour = _add(current.price_per_hour, resource.price_per_hour)
        current.price_per_month = _add(current.price_per_month, resource.price_per_month)
        current.count += _contribution_count(resource)

    _LOGGER.debug("Aggregated resources into %d categories", len(by_category))
    return Resources(list(by_category.values()))
