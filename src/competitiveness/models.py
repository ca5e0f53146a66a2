# ========================
# src/competitiveness/models.py
# ========================

"""
Data Model

Immutable record types shared by every stage of the analysis.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

# Fields that carry free text and are trimmed by the normalizer
TEXT_FIELDS = (
    'brand_name',
    'manufacturer',
    'dosage_form',
    'pack_unit',
    'primary_ingredient',
    'primary_strength',
    'active_ingredients',
    'therapeutic_class',
    'packaging_raw',
    'manufacturer_raw',
)


@dataclass(frozen=True)
class Product:
    """One cleaned catalog entry. Every retained product has price > 0."""
    product_id: int
    price: float
    price_per_unit: float
    brand_name: Optional[str] = None
    manufacturer: Optional[str] = None
    is_discontinued: bool = False
    dosage_form: Optional[str] = None
    pack_size: Optional[int] = None
    pack_unit: Optional[str] = None
    num_active_ingredients: int = 0
    primary_ingredient: Optional[str] = None
    primary_strength: Optional[str] = None
    primary_strength_mg: Optional[float] = None
    active_ingredients: Optional[str] = None
    therapeutic_class: Optional[str] = None
    packaging_raw: Optional[str] = None
    manufacturer_raw: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class KeywordMapping:
    """A keyword whose presence in active_ingredients implies a therapeutic class."""
    keyword: str
    therapeutic_class: str


@dataclass(frozen=True)
class GroupStats:
    """
    Grouped price statistics at full precision.

    stddev is the population standard deviation (divisor N).
    """
    key: Any
    count: int
    avg: float
    min: float
    max: float
    stddev: float

    def to_dict(self, key_name: str = 'key') -> Dict[str, Any]:
        """Display form, rounded to 2 decimal places."""
        return {
            key_name: self.key,
            'count': self.count,
            'avg': round(self.avg, 2),
            'min': round(self.min, 2),
            'max': round(self.max, 2),
            'stddev': round(self.stddev, 2),
        }


@dataclass(frozen=True)
class ClassifiedProduct:
    """A (product, therapeutic class) pair; one product may yield several."""
    product: Product
    therapeutic_class: str


@dataclass(frozen=True)
class OutlierRecord:
    """A product's standardized price deviation within its group."""
    product: Product
    group_key: Any
    price: float
    z_score: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product.product_id,
            'brand_name': self.product.brand_name,
            'manufacturer': self.product.manufacturer,
            'group': self.group_key,
            'price': round(self.price, 2),
            'z_score': round(self.z_score, 4) if self.z_score is not None else None,
        }
