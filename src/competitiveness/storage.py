# ========================
# src/competitiveness/storage.py
# ========================

"""
Report Storage Module

Writes market report tables to CSV and the run summary to JSON.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

STATS_HEADERS = ['count', 'avg', 'min', 'max', 'stddev']

# report attribute -> (file name, group column)
GROUPED_REPORTS = {
    'price_by_dosage_form': ('price_by_dosage_form.csv', 'dosage_form'),
    'manufacturer_concentration': ('manufacturer_concentration.csv', 'manufacturer'),
    'combination_vs_single': ('combination_vs_single.csv', 'ingredient_mix'),
    'unit_price_by_dosage_form': ('unit_price_by_dosage_form.csv', 'dosage_form'),
    'discontinued_vs_active': ('discontinued_vs_active.csv', 'market_status'),
    'therapeutic_class_prices': ('therapeutic_class_prices.csv', 'therapeutic_class'),
    'therapeutic_class_summary': ('therapeutic_class_summary.csv', 'therapeutic_class'),
}

OUTLIER_FILE = 'dosage_form_outliers.csv'
OUTLIER_HEADERS = ['product_id', 'brand_name', 'manufacturer', 'group', 'price', 'z_score']


class ReportWriter:
    """
    Saves a MarketReport to the output directory.
    """

    def __init__(self, output_dir: str = "data/processed"):
        """
        Initialize the report writer.

        Args:
            output_dir (str): Directory to save output files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"ReportWriter initialized with output directory: {self.output_dir}")

    def save_all(self, report, extra_summary: Dict[str, Any] = None) -> Dict[str, str]:
        """
        Save every table of the report plus a JSON summary.

        Args:
            report: MarketReport produced by analyze()
            extra_summary (dict): Additional fields merged into the summary JSON

        Returns:
            dict: Mapping of report name to saved file path
        """
        saved_files = {}

        try:
            for name, (file_name, key_name) in GROUPED_REPORTS.items():
                saved_files[name] = self.save_group_stats(getattr(report, name), file_name, key_name)

            saved_files['dosage_form_outliers'] = self.save_outliers(report.dosage_form_outliers)

            summary = report.summary()
            if extra_summary:
                summary.update(extra_summary)
            saved_files['summary'] = self._save_summary(summary)

            logger.info(f"All reports saved successfully to {len(saved_files)} files")
            return saved_files

        except Exception as e:
            logger.error(f"Error saving reports: {e}")
            raise

    def save_group_stats(self, stats: List, file_name: str, key_name: str) -> str:
        """Save a list of GroupStats, rounded for display."""
        file_path = self.output_dir / file_name
        rows = [s.to_dict(key_name) for s in stats]
        self._write_csv(file_path, [key_name] + STATS_HEADERS, rows)
        return str(file_path)

    def save_outliers(self, records: List) -> str:
        file_path = self.output_dir / OUTLIER_FILE
        if not records:
            logger.warning("No outlier records to save")
        self._write_csv(file_path, OUTLIER_HEADERS, [r.to_dict() for r in records])
        return str(file_path)

    def _save_summary(self, summary_data: Dict) -> str:
        """Save the run summary as JSON."""
        file_path = self.output_dir / "analysis_summary.json"

        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(summary_data, f, indent=2, ensure_ascii=False, default=str)

        logger.info(f"Summary saved to {file_path}")
        return str(file_path)

    def _write_csv(self, file_path: Path, headers: List[str], data_items: List[Dict]) -> None:
        """Write data to CSV file."""
        try:
            with open(file_path, 'w', newline='', encoding='utf-8') as f:
                writer = csv.DictWriter(f, fieldnames=headers)
                writer.writeheader()
                writer.writerows(data_items)

            logger.info(f"Saved {len(data_items)} records to {file_path}")

        except Exception as e:
            logger.error(f"Error writing CSV file {file_path}: {e}")
            raise


def read_report(file_path: str) -> List[Dict[str, str]]:
    """Load a saved CSV report back as row dictionaries."""
    with open(file_path, 'r', newline='', encoding='utf-8') as f:
        return list(csv.DictReader(f))
