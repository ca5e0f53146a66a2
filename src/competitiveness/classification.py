# ========================
# src/competitiveness/classification.py
# ========================

"""
Therapeutic Classification Module

Maps free-text active ingredients to therapeutic classes by keyword
containment. Classification is set valued: one product may fall into
several classes, and that fan-out is reported as-is.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

from .models import Product, KeywordMapping, ClassifiedProduct, GroupStats
from .transformation import aggregate, UNKNOWN_LABEL

logger = logging.getLogger(__name__)

DEFAULT_KEYWORD_MAPPINGS: Tuple[Tuple[str, str], ...] = (
    ("amox", "antibiotic"),
    ("azithro", "antibiotic"),
    ("cef", "antibiotic"),
    ("cipro", "antibiotic"),
    ("doxy", "antibiotic"),
    ("paracetamol", "analgesic"),
    ("ibuprofen", "analgesic"),
    ("diclofenac", "analgesic"),
    ("tramadol", "analgesic"),
    ("metformin", "antidiabetic"),
    ("glimepiride", "antidiabetic"),
    ("insulin", "antidiabetic"),
    ("amlodipine", "antihypertensive"),
    ("losartan", "antihypertensive"),
    ("telmisartan", "antihypertensive"),
    ("atorvastatin", "lipid-lowering"),
    ("rosuvastatin", "lipid-lowering"),
    ("omeprazole", "antacid"),
    ("pantoprazole", "antacid"),
    ("ranitidine", "antacid"),
    ("cetirizine", "antihistamine"),
    ("levocetirizine", "antihistamine"),
    ("montelukast", "antiasthmatic"),
    ("salbutamol", "antiasthmatic"),
    ("sertraline", "antidepressant"),
    ("escitalopram", "antidepressant"),
    ("fluconazole", "antifungal"),
    ("vitamin", "supplement"),
)


class KeywordTable:
    """
    Immutable keyword -> therapeutic class table.

    Several keywords may point at the same class. Keywords are compared in
    lowercase.
    """

    def __init__(self, mappings: Iterable[Union[KeywordMapping, Tuple[str, str]]]):
        cleaned = []
        for mapping in mappings:
            if not isinstance(mapping, KeywordMapping):
                keyword, therapeutic_class = mapping
                mapping = KeywordMapping(keyword, therapeutic_class)
            keyword = str(mapping.keyword or "").strip().lower()
            therapeutic_class = str(mapping.therapeutic_class or "").strip()
            if not keyword:
                raise ValueError(f"Keyword must not be blank: {mapping!r}")
            if not therapeutic_class:
                raise ValueError(f"Therapeutic class must not be blank: {mapping!r}")
            cleaned.append(KeywordMapping(keyword, therapeutic_class))
        self._mappings = tuple(cleaned)

    @classmethod
    def default(cls) -> 'KeywordTable':
        return cls(DEFAULT_KEYWORD_MAPPINGS)

    @property
    def mappings(self) -> Tuple[KeywordMapping, ...]:
        return self._mappings

    @property
    def classes(self) -> FrozenSet[str]:
        return frozenset(m.therapeutic_class for m in self._mappings)

    def __iter__(self) -> Iterator[KeywordMapping]:
        return iter(self._mappings)

    def __len__(self) -> int:
        return len(self._mappings)

    def __repr__(self) -> str:
        return f"KeywordTable({len(self._mappings)} keywords, {len(self.classes)} classes)"


def load_keyword_table(file_path: Union[str, Path]) -> KeywordTable:
    """
    Load a keyword table from JSON or CSV.

    JSON may be an object of {keyword: class} or a list of
    {"keyword": ..., "therapeutic_class": ...} objects. CSV needs the
    columns keyword and therapeutic_class.

    Args:
        file_path: Path to a .json or .csv file.

    Returns:
        KeywordTable: The loaded table.
    """
    path = Path(file_path)
    try:
        with open(path, 'r', newline='', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                data = json.load(f)
                if isinstance(data, dict):
                    pairs = list(data.items())
                else:
                    pairs = [(item['keyword'], item['therapeutic_class']) for item in data]
            elif path.suffix.lower() == '.csv':
                pairs = [(row['keyword'], row['therapeutic_class']) for row in csv.DictReader(f)]
            else:
                raise ValueError(f"Unsupported keyword table format: {path.suffix}")
    except FileNotFoundError:
        logger.error(f"Keyword table '{path}' was not found")
        raise
    except (KeyError, TypeError) as e:
        logger.error(f"Malformed keyword table {path}: {e}")
        raise ValueError(f"Malformed keyword table {path}: {e}") from e

    table = KeywordTable(pairs)
    logger.info(f"Loaded {table!r} from {path}")
    return table


def classify(product: Product, keyword_table: KeywordTable) -> FrozenSet[str]:
    """
    Therapeutic classes whose keywords occur in the product's active ingredients.

    Returns:
        frozenset[str]: Possibly empty, possibly more than one class.
    """
    ingredients = (product.active_ingredients or "").lower()
    if not ingredients:
        return frozenset()
    return frozenset(
        mapping.therapeutic_class
        for mapping in keyword_table
        if mapping.keyword in ingredients
    )


def classify_catalog(products: Iterable[Product], keyword_table: KeywordTable) -> List[ClassifiedProduct]:
    """
    One row per (product, class) pair. Unmatched products are left out.

    A product matching two keywords of the same class appears once for that
    class; a product matching keywords of different classes appears once per
    class.
    """
    rows = []
    for product in products:
        for therapeutic_class in sorted(classify(product, keyword_table)):
            rows.append(ClassifiedProduct(product, therapeutic_class))
    return rows


def class_price_summary(products: Iterable[Product],
                        keyword_table: KeywordTable,
                        sort_by: Optional[str] = 'count') -> List[GroupStats]:
    """Per-class price statistics over matched products only."""
    rows = classify_catalog(products, keyword_table)
    return aggregate(
        rows,
        lambda row: row.therapeutic_class,
        value_fn=lambda row: row.product.price,
        sort_by=sort_by,
        descending=sort_by not in (None, 'key'),
    )


def class_summary_with_unknown(products: Iterable[Product], keyword_table: KeywordTable) -> List[GroupStats]:
    """
    Summary view: every product is counted, unmatched ones under "unknown".
    """
    rows: List[ClassifiedProduct] = []
    unmatched = 0
    for product in products:
        classes = classify(product, keyword_table)
        if not classes:
            unmatched += 1
            classes = frozenset([UNKNOWN_LABEL])
        rows.extend(ClassifiedProduct(product, c) for c in sorted(classes))

    logger.info(f"Class summary: {unmatched} products without a keyword match")
    return aggregate(
        rows,
        lambda row: row.therapeutic_class,
        value_fn=lambda row: row.product.price,
        sort_by='count',
        descending=True,
    )


def class_counts(rows: Iterable[ClassifiedProduct]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for row in rows:
        counts[row.therapeutic_class] = counts.get(row.therapeutic_class, 0) + 1
    return counts
