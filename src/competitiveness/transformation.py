# ========================
# src/competitiveness/transformation.py
# ========================

"""
Aggregation Module

Grouped price statistics over a cleaned catalog, plus the named market
queries built on top of them.
"""

import math
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .models import Product, GroupStats

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "unknown"

SORT_FIELDS = ('key', 'count', 'avg', 'min', 'max', 'stddev')

# HHI interpretation bands over percentage shares
HHI_LOW_THRESHOLD = 1500
HHI_HIGH_THRESHOLD = 2500


def by_price(product: Product) -> float:
    return product.price


def by_price_per_unit(product: Product) -> float:
    return product.price_per_unit


def by_dosage_form(product: Product) -> str:
    return product.dosage_form or UNKNOWN_LABEL


def by_manufacturer(product: Product) -> str:
    return product.manufacturer or UNKNOWN_LABEL


def by_ingredient_mix(product: Product) -> str:
    """Combination products carry more than one active ingredient."""
    return "combination" if product.num_active_ingredients > 1 else "single"


def by_market_status(product: Product) -> str:
    return "discontinued" if product.is_discontinued else "active"


def key_sort_function(keys: Iterable[Any]) -> Callable[[Any], Any]:
    """
    Build a sort key that orders group keys by value, None last.

    Keys of mutually incomparable types (e.g. 5 and "tablet") are ordered
    by their text form instead.
    """
    present = [key for key in keys if key is not None]
    try:
        sorted(present)
    except TypeError:
        return lambda key: (key is None, '' if key is None else str(key))
    return lambda key: (key is None, key)


def aggregate(rows: Iterable[Any],
              group_key_fn: Callable[[Any], Any],
              value_fn: Callable[[Any], float] = by_price,
              sort_by: Optional[str] = None,
              descending: bool = False) -> List[GroupStats]:
    """
    Compute count, mean, min, max and population standard deviation per group.

    Args:
        rows: Records to aggregate, typically Products.
        group_key_fn: Maps a record to its group key.
        value_fn: Maps a record to the value being summarised (price by default).
        sort_by: Optional GroupStats field to order by; ties are broken by
                 key ascending. Without it groups come out in first-seen order.
        descending: Sort direction for sort_by.

    Returns:
        list[GroupStats]: One entry per group, at full precision.

    Raises:
        ValueError: If a function is not callable or sort_by is unknown.
    """
    if not callable(group_key_fn):
        raise ValueError(f"group_key_fn must be callable, got {group_key_fn!r}")
    if not callable(value_fn):
        raise ValueError(f"value_fn must be callable, got {value_fn!r}")
    if sort_by is not None and sort_by not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field '{sort_by}'. Expected one of {SORT_FIELDS}")

    groups: Dict[Any, List[float]] = {}
    for row in rows:
        groups.setdefault(group_key_fn(row), []).append(float(value_fn(row)))

    results = [_summarise(key, values) for key, values in groups.items()]

    if sort_by is not None:
        # Two stable passes: key ascending first, then the requested field
        key_order = key_sort_function(stats.key for stats in results)
        results.sort(key=lambda stats: key_order(stats.key))
        if sort_by != 'key':
            results.sort(key=lambda stats: getattr(stats, sort_by), reverse=descending)
        elif descending:
            results.reverse()

    logger.debug(f"Aggregated {sum(s.count for s in results)} rows into {len(results)} groups")
    return results


def _summarise(key: Any, values: Sequence[float]) -> GroupStats:
    count = len(values)
    low, high = min(values), max(values)

    if low == high:
        # Uniform groups must report exactly zero spread
        return GroupStats(key=key, count=count, avg=low, min=low, max=high, stddev=0.0)

    mean = min(max(math.fsum(values) / count, low), high)
    variance = math.fsum((value - mean) ** 2 for value in values) / count
    return GroupStats(
        key=key,
        count=count,
        avg=mean,
        min=low,
        max=high,
        stddev=math.sqrt(variance),
    )


# ---------------------------------------------------------------------------
# NAMED MARKET QUERIES
# ---------------------------------------------------------------------------

def price_by_dosage_form(products: Iterable[Product]) -> List[GroupStats]:
    """Price distribution per dosage form, most common form first."""
    return aggregate(products, by_dosage_form, sort_by='count', descending=True)


def manufacturer_concentration(products: Iterable[Product], limit: Optional[int] = None) -> List[GroupStats]:
    """Catalog size and pricing per manufacturer, largest first."""
    if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool) or limit < 0):
        raise ValueError(f"limit must be a non-negative integer, got {limit!r}")
    results = aggregate(products, by_manufacturer, sort_by='count', descending=True)
    return results if limit is None else results[:limit]


def manufacturer_hhi(products: Iterable[Product]) -> Dict[str, Any]:
    """
    Herfindahl-Hirschman Index over manufacturers' shares of catalog entries.

    < 1500 is low concentration, 1500 up to 2500 moderate, 2500 and above high.
    """
    groups = aggregate(products, by_manufacturer)
    total = sum(stats.count for stats in groups)

    if total == 0:
        return {
            'total_products': 0,
            'manufacturers': 0,
            'hhi': 0,
            'interpretation': _interpret_hhi(0),
        }

    hhi = sum(((stats.count / total) * 100) ** 2 for stats in groups)
    return {
        'total_products': total,
        'manufacturers': len(groups),
        'hhi': round(hhi, 0),
        'interpretation': _interpret_hhi(hhi),
    }


def _interpret_hhi(hhi: float) -> str:
    if hhi < HHI_LOW_THRESHOLD:
        return "LOW concentration"
    elif hhi < HHI_HIGH_THRESHOLD:
        return "MODERATE concentration"
    return "HIGH concentration"


def combination_vs_single(products: Iterable[Product]) -> List[GroupStats]:
    return aggregate(products, by_ingredient_mix, sort_by='key')


def unit_price_by_dosage_form(products: Iterable[Product]) -> List[GroupStats]:
    """Per-unit price ranking of dosage forms, most expensive first."""
    return aggregate(products, by_dosage_form, value_fn=by_price_per_unit,
                     sort_by='avg', descending=True)


def discontinued_vs_active(products: Iterable[Product]) -> List[GroupStats]:
    return aggregate(products, by_market_status, sort_by='key')
