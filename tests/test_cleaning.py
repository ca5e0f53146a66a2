# ========================
# tests/test_cleaning.py
# ========================

import unittest
import sys
import os

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.competitiveness.cleaning import ProductNormalizer, parse_strength_mg, compute_price_per_unit
from src.competitiveness.models import Product
from src.utils.data_generator import CatalogGenerator


def raw_row(**overrides):
    row = {
        'product_id': '101',
        'brand_name': '  Amoxil 500  ',
        'manufacturer': ' Cipla Ltd ',
        'price': '120.50',
        'is_discontinued': 'FALSE',
        'dosage_form': ' TABLET ',
        'pack_size': '10',
        'pack_unit': 'tablets',
        'num_active_ingredients': '1',
        'primary_ingredient': 'Amoxycillin',
        'primary_strength': '500mg',
        'active_ingredients': ' Amoxycillin (500mg) ',
        'therapeutic_class': 'Anti Infective',
        'packaging_raw': 'strip of 10 tablets',
        'manufacturer_raw': 'CIPLA LTD',
    }
    row.update(overrides)
    return row


class TestProductNormalizer(unittest.TestCase):

    def setUp(self):
        self.normalizer = ProductNormalizer()

    def test_valid_record(self):
        """Text is trimmed, only the dosage form is lowercased."""
        product = self.normalizer.normalize_record(raw_row())

        self.assertIsNotNone(product)
        self.assertEqual(product.product_id, 101)
        self.assertEqual(product.brand_name, 'Amoxil 500')
        self.assertEqual(product.manufacturer, 'Cipla Ltd')
        self.assertEqual(product.dosage_form, 'tablet')
        self.assertEqual(product.active_ingredients, 'Amoxycillin (500mg)')
        self.assertEqual(product.manufacturer_raw, 'CIPLA LTD')
        self.assertEqual(product.price, 120.5)
        self.assertEqual(product.pack_size, 10)
        self.assertAlmostEqual(product.price_per_unit, 12.05)
        self.assertEqual(product.primary_strength_mg, 500.0)
        self.assertFalse(product.is_discontinued)

    def test_invalid_prices_are_dropped(self):
        for price in [None, '', '   ', 'abc', '0', 0, '-5', -0.01, 'nan', 'inf']:
            product = self.normalizer.normalize_record(raw_row(price=price))
            self.assertIsNone(product, f"Failed for price: {price!r}")

    def test_invalid_product_id_is_dropped(self):
        self.assertIsNone(self.normalizer.normalize_record(raw_row(product_id='abc')))
        self.assertIsNone(self.normalizer.normalize_record(raw_row(product_id=None)))

    def test_price_per_unit_falls_back_to_price(self):
        for pack_size in [None, '', '0', '-3', 'box']:
            product = self.normalizer.normalize_record(raw_row(pack_size=pack_size))
            self.assertIsNone(product.pack_size, f"Failed for pack_size: {pack_size!r}")
            self.assertEqual(product.price_per_unit, 120.5)

    def test_price_per_unit_rounded_to_four_places(self):
        product = self.normalizer.normalize_record(raw_row(price='10', pack_size='3'))
        self.assertEqual(product.price_per_unit, 3.3333)

    def test_blank_text_becomes_none(self):
        product = self.normalizer.normalize_record(raw_row(brand_name='   ', dosage_form=''))
        self.assertIsNone(product.brand_name)
        self.assertIsNone(product.dosage_form)

    def test_boolean_and_count_parsing(self):
        cases = [('TRUE', True), ('yes', True), ('1', True), ('false', False), ('0', False), ('', False), (None, False)]
        for value, expected in cases:
            product = self.normalizer.normalize_record(raw_row(is_discontinued=value))
            self.assertEqual(product.is_discontinued, expected, f"Failed for: {value!r}")

        self.assertEqual(self.normalizer.normalize_record(raw_row(num_active_ingredients='3')).num_active_ingredients, 3)
        self.assertEqual(self.normalizer.normalize_record(raw_row(num_active_ingredients='abc')).num_active_ingredients, 0)
        self.assertEqual(self.normalizer.normalize_record(raw_row(num_active_ingredients='-1')).num_active_ingredients, 0)

    def test_unparseable_strength_is_absent_not_zero(self):
        product = self.normalizer.normalize_record(raw_row(primary_strength='as directed'))
        self.assertIsNone(product.primary_strength_mg)

    def test_normalize_collection_and_statistics(self):
        rows = [raw_row(product_id='1'), raw_row(product_id='2', price='-1'),
                raw_row(product_id='3', price=None), raw_row(product_id='x')]

        products = self.normalizer.normalize(rows)

        self.assertIsInstance(products, tuple)
        self.assertEqual([p.product_id for p in products], [1])
        stats = self.normalizer.get_statistics()
        self.assertEqual(stats['records_processed'], 4)
        self.assertEqual(stats['records_dropped'], 3)
        self.assertEqual(stats['records_cleaned'], 1)
        self.assertEqual(stats['drop_reasons'], {'invalid_price': 2, 'invalid_product_id': 1})

    def test_statistics_reset_between_runs(self):
        self.normalizer.normalize([raw_row(price='0')])
        self.normalizer.normalize([raw_row()])
        self.assertEqual(self.normalizer.get_statistics()['records_dropped'], 0)

    def test_empty_input(self):
        self.assertEqual(self.normalizer.normalize([]), ())
        self.assertEqual(self.normalizer.get_statistics()['success_rate'], 0)

    def test_every_retained_price_is_positive(self):
        rows = CatalogGenerator(seed=7).generate_rows(300, error_rate=0.6)
        products = self.normalizer.normalize(rows)

        self.assertGreater(len(products), 0)
        self.assertLess(len(products), 300)
        for product in products:
            self.assertGreater(product.price, 0)

    def test_normalize_is_idempotent(self):
        rows = CatalogGenerator(seed=11).generate_rows(200, error_rate=0.5)
        first = self.normalizer.normalize(rows)
        second = self.normalizer.normalize(first)

        self.assertEqual(first, second)
        self.assertTrue(all(isinstance(p, Product) for p in second))


class TestStrengthParsing(unittest.TestCase):

    def test_documented_examples(self):
        cases = [
            ('500mg', 500.0),
            ('0.5 g', 500.0),
            ('500mcg', 0.5),
            ('5 ml', None),
        ]
        for text, expected in cases:
            self.assertEqual(parse_strength_mg(text), expected, f"Failed for: {text!r}")

    def test_units_and_spacing(self):
        cases = [
            ('500 mg', 500.0),
            ('500MG', 500.0),
            (' 40mg ', 40.0),
            ('1g', 1000.0),
            ('2 g', 2000.0),
            ('250 ug', 0.25),
            ('1500 mcg', 1.5),
        ]
        for text, expected in cases:
            self.assertAlmostEqual(parse_strength_mg(text), expected, msg=f"Failed for: {text!r}")

    def test_unrecognised_formats(self):
        for text in ['', '   ', None, 'as directed', 'mg', '10 iu', '2.5mg', '5ml', 12]:
            self.assertIsNone(parse_strength_mg(text), f"Failed for: {text!r}")

    def test_composite_strength_merges_digits(self):
        """Known limitation: every digit in the string is kept."""
        self.assertEqual(parse_strength_mg('500mg/5ml'), 5005.0)
        self.assertEqual(parse_strength_mg('10 mg + 20 mg'), 1020.0)

    def test_composite_gram_strength_with_two_decimals_is_absent(self):
        self.assertIsNone(parse_strength_mg('0.5g/2.5ml'))

    def test_compute_price_per_unit(self):
        self.assertEqual(compute_price_per_unit(100.0, 4), 25.0)
        self.assertEqual(compute_price_per_unit(100.0, None), 100.0)
        self.assertEqual(compute_price_per_unit(100.0, 0), 100.0)


if __name__ == '__main__':
    unittest.main()
