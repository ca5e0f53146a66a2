# ========================
# tests/test_ingestion.py
# ========================

import unittest
import tempfile
import os
import sys
import csv

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.competitiveness.ingestion import CatalogReader

HEADER = ['product_id', 'brand_name', 'manufacturer', 'price', 'dosage_form', 'pack_size']


class TestCatalogIngestion(unittest.TestCase):
    """Test the catalog ingestion module."""

    def _write_csv(self, rows, encoding='utf-8'):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False, newline='', encoding=encoding) as f:
            writer = csv.writer(f)
            writer.writerows(rows)
            path = f.name
        self.addCleanup(os.unlink, path)
        return path

    def test_chunked_reading(self):
        """Rows are yielded in chunks of the requested size."""
        path = self._write_csv([
            HEADER,
            ['1', 'Amoxil', 'Cipla Ltd', '120.5', 'Tablet', '10'],
            ['2', 'Crocin', 'GSK', '30', 'tablet', '15'],
            ['3', 'Benadryl', 'J&J', '', 'Syrup', ''],
            ['4', 'Augmentin', 'GSK', '210', 'Tablet', '6'],
        ])

        reader = CatalogReader(path)
        chunks = list(reader.read_in_chunks(chunk_size=2))

        self.assertEqual(len(chunks), 2)
        self.assertEqual(len(chunks[0]), 2)
        self.assertEqual(len(chunks[1]), 2)
        self.assertEqual(reader.header, HEADER)

        first_record = chunks[0][0]
        self.assertEqual(first_record['product_id'], '1')
        self.assertEqual(first_record['brand_name'], 'Amoxil')
        # Values stay raw strings
        self.assertEqual(chunks[1][0]['price'], '')

    def test_read_all(self):
        path = self._write_csv([HEADER] + [[str(i), 'B', 'M', '10', 'Tablet', '1'] for i in range(7)])

        rows = CatalogReader(path).read_all(chunk_size=3)

        self.assertEqual(len(rows), 7)
        self.assertEqual([r['product_id'] for r in rows], [str(i) for i in range(7)])

    def test_file_not_found(self):
        reader = CatalogReader("non_existent_catalog.csv")

        with self.assertRaises(FileNotFoundError):
            list(reader.read_in_chunks(chunk_size=10))

    def test_empty_file(self):
        path = self._write_csv([])

        chunks = list(CatalogReader(path).read_in_chunks(chunk_size=10))
        self.assertEqual(len(chunks), 0)

    def test_byte_order_mark_is_ignored(self):
        path = self._write_csv([HEADER, ['1', 'B', 'M', '10', 'Tablet', '1']], encoding='utf-8-sig')

        rows = CatalogReader(path).read_all()
        self.assertIn('product_id', rows[0])

    def test_custom_delimiter(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False, newline='') as f:
            f.write("product_id;price\n1;10.5\n")
            path = f.name
        self.addCleanup(os.unlink, path)

        rows = CatalogReader(path, delimiter=';').read_all()
        self.assertEqual(rows, [{'product_id': '1', 'price': '10.5'}])

    def test_invalid_chunk_size(self):
        path = self._write_csv([HEADER])
        with self.assertRaises(ValueError):
            list(CatalogReader(path).read_in_chunks(chunk_size=0))


if __name__ == '__main__':
    unittest.main()
