# ========================
# src/competitiveness/outliers.py
# ========================

"""
Outlier Detection Module

Ranks products by how far their price sits above their group's mean,
in units of the group's population standard deviation.
"""

import logging
from typing import Any, Callable, Iterable, List

from .models import Product, OutlierRecord
from .transformation import aggregate, by_price, by_dosage_form, key_sort_function

logger = logging.getLogger(__name__)


def detect_outliers(rows: Iterable[Product],
                    group_key_fn: Callable[[Product], Any],
                    limit: int,
                    value_fn: Callable[[Product], float] = by_price) -> List[OutlierRecord]:
    """
    Score every product against its group and return the top of the ranking.

    Groups whose prices are all identical have no spread, so their members get
    a z-score of None. Those records rank after every scored record.

    Args:
        rows: Cleaned products.
        group_key_fn: Maps a product to its group key.
        limit: Maximum number of records to return (>= 0).
        value_fn: Price being scored (price by default).

    Returns:
        list[OutlierRecord]: Highest z-scores first.

    Raises:
        ValueError: If limit is not a non-negative integer or a function is not callable.
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValueError(f"limit must be a non-negative integer, got {limit!r}")
    if not callable(group_key_fn):
        raise ValueError(f"group_key_fn must be callable, got {group_key_fn!r}")

    rows = list(rows)
    group_stats = {stats.key: stats for stats in aggregate(rows, group_key_fn, value_fn=value_fn)}

    records = []
    for product in rows:
        key = group_key_fn(product)
        stats = group_stats[key]
        price = float(value_fn(product))
        z_score = (price - stats.avg) / stats.stddev if stats.stddev > 0 else None
        records.append(OutlierRecord(product=product, group_key=key, price=price, z_score=z_score))

    key_order = key_sort_function(group_stats)
    records.sort(key=lambda record: _ranking_key(record, key_order))

    scored = sum(1 for r in records if r.z_score is not None)
    logger.info(
        f"Scored {scored}/{len(records)} products across {len(group_stats)} groups; "
        f"returning top {min(limit, len(records))}"
    )
    return records[:limit]


def _ranking_key(record: OutlierRecord, key_order: Callable[[Any], Any]):
    # z-score descending, unscored last, then group and product id for determinism
    group = key_order(record.group_key)
    if record.z_score is None:
        return (1, 0.0, group, record.product.product_id)
    return (0, -record.z_score, group, record.product.product_id)


def dosage_form_outliers(products: Iterable[Product], limit: int) -> List[OutlierRecord]:
    """Most overpriced products relative to others of the same dosage form."""
    return detect_outliers(products, by_dosage_form, limit)
