# ========================
# src/competitiveness/__init__.py
# ========================

"""
Market Competitiveness Package

Descriptive pricing statistics over a pharmaceutical product catalog:
- ingestion: Catalog CSV reading
- cleaning: Normalization and derived fields
- transformation: Grouped statistics and market queries
- classification: Keyword-based therapeutic classes
- outliers: Per-group z-score ranking
- storage: Report output
- orchestrator: Pipeline coordination
"""

from .models import Product, KeywordMapping, GroupStats, ClassifiedProduct, OutlierRecord
from .ingestion import CatalogReader
from .cleaning import ProductNormalizer, parse_strength_mg
from .transformation import aggregate
from .classification import KeywordTable, classify, load_keyword_table
from .outliers import detect_outliers
from .storage import ReportWriter
from .orchestrator import CompetitivenessPipeline, MarketReport, analyze

__all__ = [
    'Product',
    'KeywordMapping',
    'GroupStats',
    'ClassifiedProduct',
    'OutlierRecord',
    'CatalogReader',
    'ProductNormalizer',
    'parse_strength_mg',
    'aggregate',
    'KeywordTable',
    'classify',
    'load_keyword_table',
    'detect_outliers',
    'ReportWriter',
    'CompetitivenessPipeline',
    'MarketReport',
    'analyze'
]

__version__ = "1.0.0"
