# ========================
# src/competitiveness/cleaning.py
# ========================

"""
Data Normalization Module

Cleans raw catalog rows into immutable Product records and derives
per-unit prices and milligram strengths.
"""

import re
import math
import logging
from dataclasses import asdict
from typing import Dict, Iterable, Optional, Any, Tuple, Union, Mapping

from .models import Product, TEXT_FIELDS

logger = logging.getLogger(__name__)

# Strength patterns are prefix anchored and matched against lowercased text.
# Only the gram pattern accepts a decimal part.
MG_PATTERN = re.compile(r'^\d+\s*mg')
G_PATTERN = re.compile(r'^\d+(\.\d+)?\s*g')
MCG_PATTERN = re.compile(r'^\d+\s*(mcg|ug)')

TRUE_VALUES = {'true', 't', '1', 'yes', 'y'}


def parse_strength_mg(value: Any) -> Optional[float]:
    """
    Best-effort conversion of a strength string to milligrams.

    The numeric part is taken by stripping every non-digit character (digits
    and '.' for grams) from the whole string, so composite strengths merge
    their numbers: "500mg/5ml" parses as 5005. Volumes, decimal milligram
    values and anything else unrecognised yield None, never zero.

    Args:
        value: Raw strength text such as "500mg", "0.5 g" or "250 mcg".

    Returns:
        float or None: Strength in milligrams.
    """
    if not isinstance(value, str):
        return None

    text = value.strip().lower()
    if not text:
        return None

    try:
        if MG_PATTERN.match(text):
            return float(re.sub(r'[^\d]', '', text))
        if G_PATTERN.match(text):
            return float(re.sub(r'[^\d.]', '', text)) * 1000
        if MCG_PATTERN.match(text):
            return float(re.sub(r'[^\d]', '', text)) / 1000
    except ValueError:
        # e.g. "0.5g/2.5ml" strips to "0.52.5"
        logger.debug(f"Strength digits not numeric: {value!r}")
        return None

    return None


def compute_price_per_unit(price: float, pack_size: Optional[int]) -> float:
    """Price divided by pack size, or the price itself when there is no pack size."""
    if pack_size is not None and pack_size > 0:
        return round(price / pack_size, 4)
    return price


class ProductNormalizer:
    """
    Applies the cleaning rules to raw catalog rows.
    Rows without a usable price or product id are dropped, not repaired.
    """

    def __init__(self):
        """Initialize the normalizer."""
        self._reset_statistics()
        logger.info("ProductNormalizer initialized")

    def _reset_statistics(self) -> None:
        self.records_processed = 0
        self.records_dropped = 0
        self.drop_reasons: Dict[str, int] = {}

    def normalize(self, records: Iterable[Union[Mapping[str, Any], Product]]) -> Tuple[Product, ...]:
        """
        Clean a whole collection.

        Args:
            records: Raw row dictionaries, or Products from a previous run.

        Returns:
            tuple[Product]: The retained products, in input order.
        """
        self._reset_statistics()

        products = []
        for record in records:
            product = self.normalize_record(record)
            if product is not None:
                products.append(product)

        logger.info(
            f"Normalized {self.records_processed} records: "
            f"{len(products)} kept, {self.records_dropped} dropped"
        )
        return tuple(products)

    def normalize_record(self, record: Union[Mapping[str, Any], Product]) -> Optional[Product]:
        """
        Applies all cleaning rules to a single row.

        Args:
            record: A dictionary representing a single catalog row, or a Product.

        Returns:
            Product or None: The cleaned product, or None if the row is dropped.
        """
        self.records_processed += 1

        if isinstance(record, Product):
            record = asdict(record)

        price = self._clean_price(record.get('price'))
        if price is None:
            self._drop('invalid_price', record)
            return None

        product_id = self._clean_int(record.get('product_id'))
        if product_id is None:
            self._drop('invalid_product_id', record)
            return None

        text = {field: self._clean_text(record.get(field)) for field in TEXT_FIELDS}
        if text['dosage_form'] is not None:
            text['dosage_form'] = text['dosage_form'].lower()

        pack_size = self._clean_pack_size(record.get('pack_size'))
        num_active = self._clean_int(record.get('num_active_ingredients'))

        return Product(
            product_id=product_id,
            price=price,
            price_per_unit=compute_price_per_unit(price, pack_size),
            is_discontinued=self._clean_bool(record.get('is_discontinued')),
            pack_size=pack_size,
            num_active_ingredients=num_active if num_active is not None and num_active >= 0 else 0,
            primary_strength_mg=parse_strength_mg(text['primary_strength']),
            **text
        )

    def _drop(self, reason: str, record: Mapping[str, Any]) -> None:
        self.records_dropped += 1
        self.drop_reasons[reason] = self.drop_reasons.get(reason, 0) + 1
        logger.debug(f"Record dropped ({reason}): {dict(record)}")

    def _clean_text(self, value: Any) -> Optional[str]:
        """Strip surrounding whitespace; blank text becomes None."""
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def _clean_price(self, value: Any) -> Optional[float]:
        """Converts a price to a positive finite float, or None."""
        if isinstance(value, bool):
            return None
        try:
            price = float(value.strip() if isinstance(value, str) else value)
        except (ValueError, TypeError):
            return None
        if not math.isfinite(price) or price <= 0:
            return None
        return price

    def _clean_int(self, value: Any) -> Optional[int]:
        """Converts whole numbers ("12", 12, 12.0) to int."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        try:
            number = float(value.strip() if isinstance(value, str) else value)
        except (ValueError, TypeError):
            return None
        if not math.isfinite(number) or not number.is_integer():
            return None
        return int(number)

    def _clean_pack_size(self, value: Any) -> Optional[int]:
        pack_size = self._clean_int(value)
        return pack_size if pack_size is not None and pack_size > 0 else None

    def _clean_bool(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in TRUE_VALUES

    def get_statistics(self) -> Dict[str, Any]:
        """Get statistics of the last normalize() run."""
        return {
            'records_processed': self.records_processed,
            'records_dropped': self.records_dropped,
            'records_cleaned': self.records_processed - self.records_dropped,
            'drop_reasons': dict(self.drop_reasons),
            'success_rate': (self.records_processed - self.records_dropped) / self.records_processed * 100 if self.records_processed > 0 else 0
        }
