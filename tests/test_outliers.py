# ========================
# tests/test_outliers.py
# ========================

import math
import unittest
import sys
import os

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.competitiveness.models import Product
from src.competitiveness.cleaning import ProductNormalizer
from src.competitiveness.outliers import detect_outliers, dosage_form_outliers
from src.competitiveness.transformation import by_dosage_form, by_manufacturer
from src.utils.data_generator import CatalogGenerator


def make_product(product_id, price, dosage_form):
    return Product(product_id=product_id, price=price, price_per_unit=price, dosage_form=dosage_form)


class TestOutlierDetector(unittest.TestCase):

    def setUp(self):
        self.products = (
            make_product(1, 10.0, 'tablet'),
            make_product(2, 10.0, 'tablet'),
            make_product(3, 10.0, 'tablet'),
            make_product(4, 50.0, 'tablet'),
            make_product(5, 5.0, 'capsule'),
            make_product(6, 5.0, 'capsule'),
        )

    def test_ranking_and_z_scores(self):
        result = detect_outliers(self.products, by_dosage_form, limit=10)

        self.assertEqual(len(result), 6)
        top = result[0]
        self.assertEqual(top.product.product_id, 4)
        self.assertEqual(top.group_key, 'tablet')
        self.assertEqual(top.price, 50.0)
        # mean 20, population stddev sqrt(300)
        self.assertAlmostEqual(top.z_score, 30 / math.sqrt(300))

        self.assertEqual([r.product.product_id for r in result[1:4]], [1, 2, 3])
        for record in result[1:4]:
            self.assertAlmostEqual(record.z_score, -10 / math.sqrt(300))

    def test_uniform_group_has_absent_z_scores_ranked_last(self):
        result = detect_outliers(self.products, by_dosage_form, limit=10)

        capsules = result[4:]
        self.assertEqual([r.group_key for r in capsules], ['capsule', 'capsule'])
        self.assertTrue(all(r.z_score is None for r in capsules))

    def test_no_nan_or_infinity(self):
        products = ProductNormalizer().normalize(CatalogGenerator(seed=5).generate_rows(400, error_rate=0.3))

        for key_fn in (by_dosage_form, by_manufacturer):
            for record in detect_outliers(products, key_fn, limit=len(products)):
                if record.z_score is not None:
                    self.assertTrue(math.isfinite(record.z_score))

    def test_limit(self):
        self.assertEqual(len(detect_outliers(self.products, by_dosage_form, limit=2)), 2)
        self.assertEqual(detect_outliers(self.products, by_dosage_form, limit=0), [])

    def test_invalid_limit_raises(self):
        for limit in (-1, 1.5, None, '3', True):
            with self.assertRaises(ValueError, msg=f"limit={limit!r}"):
                detect_outliers(self.products, by_dosage_form, limit=limit)

    def test_invalid_key_function_raises(self):
        with self.assertRaises(ValueError):
            detect_outliers(self.products, 'dosage_form', limit=3)

    def test_empty_input(self):
        self.assertEqual(detect_outliers((), by_dosage_form, limit=5), [])

    def test_unscored_ties_ordered_by_numeric_group(self):
        products = [
            Product(product_id=1, price=4.0, price_per_unit=4.0, pack_size=10),
            Product(product_id=2, price=4.0, price_per_unit=4.0, pack_size=9),
            Product(product_id=3, price=4.0, price_per_unit=4.0, pack_size=2),
        ]
        result = detect_outliers(products, lambda product: product.pack_size, limit=3)

        self.assertEqual([r.group_key for r in result], [2, 9, 10])

    def test_dosage_form_outliers(self):
        result = dosage_form_outliers(self.products, 1)
        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].product.product_id, 4)

    def test_to_dict(self):
        record = detect_outliers(self.products, by_dosage_form, limit=1)[0]
        row = record.to_dict()
        self.assertEqual(row['product_id'], 4)
        self.assertEqual(row['group'], 'tablet')
        self.assertEqual(row['z_score'], round(30 / math.sqrt(300), 4))

        unscored = detect_outliers(self.products, by_dosage_form, limit=10)[-1]
        self.assertIsNone(unscored.to_dict()['z_score'])


if __name__ == '__main__':
    unittest.main()
