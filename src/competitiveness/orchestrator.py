# ========================
# src/competitiveness/orchestrator.py
# ========================

"""
Pipeline Orchestrator Module

Runs the market analysis end to end: read, normalize, query, save.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .models import Product, GroupStats, OutlierRecord
from .ingestion import CatalogReader
from .cleaning import ProductNormalizer
from .transformation import (
    price_by_dosage_form,
    manufacturer_concentration,
    manufacturer_hhi,
    combination_vs_single,
    unit_price_by_dosage_form,
    discontinued_vs_active,
)
from .classification import (
    KeywordTable,
    load_keyword_table,
    classify_catalog,
    class_counts,
    class_price_summary,
    class_summary_with_unknown,
)
from .outliers import dosage_form_outliers
from .storage import ReportWriter
from ..utils.performance_monitor import monitor_performance
from ..utils.config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketReport:
    """Every query result computed from one cleaned catalog."""
    product_count: int
    price_by_dosage_form: List[GroupStats]
    manufacturer_concentration: List[GroupStats]
    manufacturer_hhi: Dict[str, Any]
    combination_vs_single: List[GroupStats]
    unit_price_by_dosage_form: List[GroupStats]
    discontinued_vs_active: List[GroupStats]
    therapeutic_class_prices: List[GroupStats]
    therapeutic_class_summary: List[GroupStats]
    class_assignments: Dict[str, int]
    dosage_form_outliers: List[OutlierRecord]
    products_with_strength: int

    def summary(self) -> Dict[str, Any]:
        return {
            'product_count': self.product_count,
            'dosage_forms': len(self.price_by_dosage_form),
            'manufacturers': self.manufacturer_hhi['manufacturers'],
            'manufacturer_hhi': self.manufacturer_hhi,
            'therapeutic_classes': len(self.therapeutic_class_prices),
            'class_assignments': self.class_assignments,
            'outlier_records': len(self.dosage_form_outliers),
            'products_with_strength': self.products_with_strength,
        }


def analyze(products: Tuple[Product, ...],
            keyword_table: KeywordTable,
            outlier_limit: int = 10,
            top_manufacturers: Optional[int] = None) -> MarketReport:
    """
    Run every market query over an already cleaned catalog.

    Each query reads the same immutable tuple; none of them depend on each other.
    """
    classified = classify_catalog(products, keyword_table)

    return MarketReport(
        product_count=len(products),
        price_by_dosage_form=price_by_dosage_form(products),
        manufacturer_concentration=manufacturer_concentration(products, top_manufacturers),
        manufacturer_hhi=manufacturer_hhi(products),
        combination_vs_single=combination_vs_single(products),
        unit_price_by_dosage_form=unit_price_by_dosage_form(products),
        discontinued_vs_active=discontinued_vs_active(products),
        therapeutic_class_prices=class_price_summary(products, keyword_table),
        therapeutic_class_summary=class_summary_with_unknown(products, keyword_table),
        class_assignments=class_counts(classified),
        dosage_form_outliers=dosage_form_outliers(products, outlier_limit),
        products_with_strength=sum(1 for p in products if p.primary_strength_mg is not None),
    )


class CompetitivenessPipeline:
    """
    Orchestrates the market competitiveness analysis.
    Coordinates reading, normalizing, querying and storing.
    """

    def __init__(self,
                 input_file: str,
                 output_dir: str,
                 config: Optional[Config] = None,
                 keyword_table: Optional[KeywordTable] = None):
        """
        Initialize the pipeline.

        Args:
            input_file (str): Path to the catalog CSV
            output_dir (str): Directory for report files
            config (Config): Configuration object
            keyword_table (KeywordTable): Overrides the configured keyword table
        """
        self.input_file = input_file
        self.output_dir = output_dir
        self.config = config or Config()

        self.reader = CatalogReader(self.input_file)
        self.normalizer = ProductNormalizer()
        self.writer = ReportWriter(self.output_dir)
        self.keyword_table = keyword_table or self._load_keyword_table()

        logger.info("CompetitivenessPipeline initialized:")
        logger.info(f"  Input: {self.input_file}")
        logger.info(f"  Output: {self.output_dir}")
        logger.info(f"  Keywords: {self.keyword_table!r}")

    def _load_keyword_table(self) -> KeywordTable:
        if self.config.KEYWORD_TABLE_FILE:
            return load_keyword_table(self.config.KEYWORD_TABLE_FILE)
        return KeywordTable.default()

    def run(self) -> dict:
        """
        Execute the complete pipeline from start to finish.

        Returns:
            dict: Summary of processing results and saved files
        """
        logger.info(f"Starting competitiveness analysis for '{self.input_file}'...")

        with monitor_performance("Competitiveness analysis") as monitor:
            with monitor.stage('read'):
                raw_rows = self.reader.read_all(self.config.DEFAULT_CHUNK_SIZE)
            monitor.update_progress(len(raw_rows))

            with monitor.stage('normalize', rows=len(raw_rows)):
                products = self.normalizer.normalize(raw_rows)

            logger.info("Running market queries...")
            with monitor.stage('analyze', rows=len(products)):
                report = analyze(
                    products,
                    self.keyword_table,
                    outlier_limit=self.config.OUTLIER_LIMIT,
                    top_manufacturers=self.config.TOP_MANUFACTURERS_LIMIT,
                )

            logger.info("Saving reports...")
            quality_stats = self.normalizer.get_statistics()
            with monitor.stage('save'):
                saved_files = self.writer.save_all(report, {'data_quality': quality_stats})

        results = {
            'pipeline_status': 'completed',
            'input_file': self.input_file,
            'output_directory': self.output_dir,
            'saved_files': saved_files,
            'processing_stats': self._get_processing_stats(report),
            'data_quality_stats': quality_stats,
            'performance': monitor.summary,
        }

        logger.info("Pipeline finished successfully.")
        self._log_final_summary(results)

        return results

    def _get_processing_stats(self, report: MarketReport) -> dict:
        input_path = Path(self.input_file)
        return {
            **report.summary(),
            'records_processed': self.normalizer.records_processed,
            'input_file_size': input_path.stat().st_size if input_path.exists() else 0,
        }

    def _log_final_summary(self, results: dict) -> None:
        logger.info("="*60)
        logger.info("ANALYSIS SUMMARY")
        logger.info("="*60)

        processing_stats = results['processing_stats']
        quality_stats = results['data_quality_stats']

        logger.info(f"Input file: {results['input_file']}")
        logger.info(f"Records processed: {processing_stats['records_processed']:,}")
        logger.info(f"Products retained: {processing_stats['product_count']:,}")
        logger.info(f"Data quality rate: {quality_stats['success_rate']:.1f}%")
        logger.info(f"Manufacturer HHI: {processing_stats['manufacturer_hhi']['hhi']}")
        logger.info(f"Output files generated: {len(results['saved_files'])}")

        for report_name, file_path in results['saved_files'].items():
            logger.info(f"  - {report_name}: {file_path}")

        logger.info("="*60)

    def validate_input(self) -> bool:
        """
        Validate input file exists and is readable.

        Returns:
            bool: True if input is valid
        """
        input_path = Path(self.input_file)
        if not input_path.exists():
            logger.error(f"Input file does not exist: {self.input_file}")
            return False

        if not input_path.is_file():
            logger.error(f"Input path is not a file: {self.input_file}")
            return False

        try:
            with open(self.input_file, 'r', encoding='utf-8-sig') as f:
                header = f.readline()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read input file: {e}")
            return False

        if 'price' not in header:
            logger.error(f"Input file has no price column: {self.input_file}")
            return False

        logger.info(f"Input validation passed: {self.input_file}")
        return True
