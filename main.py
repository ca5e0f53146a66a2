#!/usr/bin/env python3
# ========================
# main.py
# ========================

"""
Main Entry Point for the Market Competitiveness Analysis

Generates (or reads) a product catalog, runs every market query and writes
the report files.
"""

import sys
import logging
import argparse
from pathlib import Path

from src.competitiveness import CompetitivenessPipeline
from src.utils import Config, setup_logging, CatalogGenerator


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pharmaceutical market competitiveness analysis")
    parser.add_argument('--input', help="Catalog CSV (defaults to CATALOG_INPUT_FILE)")
    parser.add_argument('--output-dir', help="Report directory (defaults to CATALOG_OUTPUT_DIR)")
    parser.add_argument('--generate', type=int, metavar='N',
                        help="Write a sample catalog of N rows to the input path first")
    parser.add_argument('--keywords', help="JSON or CSV keyword -> therapeutic class table")
    parser.add_argument('--outlier-limit', type=int, help="Number of outliers to report")
    parser.add_argument('--log-level', help="Logging level")
    return parser.parse_args(argv)


def main(argv=None):
    """Main execution function."""
    args = parse_args(argv)

    overrides = {}
    if args.outlier_limit is not None:
        overrides['OUTLIER_LIMIT'] = args.outlier_limit
    if args.keywords:
        overrides['KEYWORD_TABLE_FILE'] = args.keywords
    if args.log_level:
        overrides['LOG_LEVEL'] = args.log_level
    config = Config(overrides)

    setup_logging(
        log_level=config.LOG_LEVEL,
        log_file="analysis.log",
        log_dir="logs"
    )

    logger = logging.getLogger(__name__)
    logger.info("="*60)
    logger.info("MARKET COMPETITIVENESS ANALYSIS")
    logger.info("="*60)

    invalid = [name for name, ok in config.validate_config().items() if not ok]
    if invalid:
        logger.error(f"Invalid configuration values: {invalid}")
        return 1

    try:
        config.ensure_directories()

        input_file = args.input or config.DEFAULT_INPUT_FILE
        output_dir = args.output_dir or config.DEFAULT_OUTPUT_DIR

        generation_stats = None
        if args.generate or not Path(input_file).exists():
            num_rows = args.generate or config.DEFAULT_SAMPLE_ROWS
            logger.info(f"Step 1: Generating sample catalog ({num_rows:,} rows)...")
            generator = CatalogGenerator(seed=42)
            generation_stats = generator.generate_dataset(
                file_path=input_file,
                num_rows=num_rows,
                error_rate=config.SAMPLE_ERROR_RATE
            )
        else:
            logger.info(f"Step 1: Using existing catalog {input_file}")

        logger.info("Step 2: Running analysis...")
        pipeline = CompetitivenessPipeline(
            input_file=input_file,
            output_dir=output_dir,
            config=config
        )

        if not pipeline.validate_input():
            logger.error("Input validation failed. Exiting.")
            return 1

        results = pipeline.run()

        _print_execution_summary(results, generation_stats)

        logger.info("Analysis completed successfully!")
        return 0

    except Exception as e:
        logger.error(f"Analysis failed: {e}", exc_info=True)
        return 1


def _print_execution_summary(results: dict, generation_stats: dict = None) -> None:
    """Print final execution summary."""
    print("\n" + "="*70)
    print("ANALYSIS SUMMARY")
    print("="*70)

    if generation_stats:
        print("Sample catalog:")
        print(f"   - Rows generated: {generation_stats['total_rows']:,}")
        print(f"   - Rows with injected defects: {generation_stats['records_with_errors']:,}")

    processing_stats = results['processing_stats']
    quality_stats = results['data_quality_stats']
    hhi = processing_stats['manufacturer_hhi']

    print("\nCatalog:")
    print(f"   - Rows read: {quality_stats['records_processed']:,}")
    print(f"   - Products retained: {quality_stats['records_cleaned']:,}")
    print(f"   - Rows dropped: {quality_stats['records_dropped']:,} {quality_stats['drop_reasons']}")
    print(f"   - Dosage forms: {processing_stats['dosage_forms']}")
    print(f"   - Manufacturers: {processing_stats['manufacturers']} (HHI {hhi['hhi']}, {hhi['interpretation']})")
    print(f"   - Therapeutic classes matched: {processing_stats['therapeutic_classes']}")

    print("\nReports:")
    for report_name, file_path in results['saved_files'].items():
        print(f"   - {report_name.replace('_', ' ').title()}: {Path(file_path).name}")

    print("="*70)


if __name__ == '__main__':
    sys.exit(main())
