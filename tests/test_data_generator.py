# ========================
# tests/test_data_generator.py
# ========================

import unittest
import tempfile
import shutil
import os
import sys

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.competitiveness.cleaning import ProductNormalizer
from src.competitiveness.ingestion import CatalogReader
from src.utils.data_generator import CatalogGenerator, CATALOG_HEADER


class TestCatalogGenerator(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_same_seed_same_catalog(self):
        first = CatalogGenerator(seed=11).generate_rows(50, error_rate=0.2)
        second = CatalogGenerator(seed=11).generate_rows(50, error_rate=0.2)
        self.assertEqual(first, second)

    def test_clean_rows_all_survive_normalization(self):
        rows = CatalogGenerator(seed=2).generate_rows(200)
        normalizer = ProductNormalizer()
        products = normalizer.normalize(rows)

        self.assertEqual(len(products), 200)
        self.assertEqual(normalizer.records_dropped, 0)

    def test_generate_dataset_statistics(self):
        path = os.path.join(self.temp_dir, 'raw', 'catalog.csv')
        stats = CatalogGenerator(seed=4).generate_dataset(path, 500, error_rate=0.5)

        self.assertEqual(stats['total_rows'], 500)
        self.assertEqual(sum(stats['error_types'].values()), stats['records_with_errors'])
        self.assertAlmostEqual(stats['error_rate_actual'], stats['records_with_errors'] / 500)

        rows = CatalogReader(path).read_all()
        self.assertEqual(len(rows), 500)
        self.assertEqual(list(rows[0].keys()), CATALOG_HEADER)

    def test_injected_price_errors_are_dropped(self):
        path = os.path.join(self.temp_dir, 'catalog.csv')
        stats = CatalogGenerator(seed=8).generate_dataset(path, 400, error_rate=1.0)

        normalizer = ProductNormalizer()
        normalizer.normalize(CatalogReader(path).read_all())

        bad_prices = sum(stats['error_types'].get(kind, 0)
                         for kind in ('missing_price', 'negative_price', 'zero_price'))
        self.assertEqual(normalizer.drop_reasons.get('invalid_price', 0), bad_prices)


if __name__ == '__main__':
    unittest.main()
