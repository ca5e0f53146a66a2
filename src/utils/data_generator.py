# ========================
# src/utils/data_generator.py
# ========================

"""
Sample Catalog Generation

Builds realistic, deliberately messy product catalogs for demos and load runs.
"""

import csv
import random
import logging
from typing import List, Dict, Any, Optional
from pathlib import Path

logger = logging.getLogger(__name__)

CATALOG_HEADER = [
    'product_id', 'brand_name', 'manufacturer', 'price', 'is_discontinued',
    'dosage_form', 'pack_size', 'pack_unit', 'num_active_ingredients',
    'primary_ingredient', 'primary_strength', 'active_ingredients',
    'therapeutic_class', 'packaging_raw', 'manufacturer_raw'
]


class CatalogGenerator:
    """
    Generates sample pharmaceutical catalogs with controlled error injection.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the generator.

        Args:
            seed (int): Random seed for reproducible catalogs
        """
        self._random = random.Random(seed)
        self._initialize_data_patterns()
        logger.info(f"CatalogGenerator initialized with seed: {seed}")

    def _initialize_data_patterns(self) -> None:
        """Ingredient, form and manufacturer pools with realistic pricing."""
        self.ingredients = [
            {"name": "Amoxycillin", "strengths": ["250mg", "500mg"], "base_price": 60, "class": "Anti Infective"},
            {"name": "Azithromycin", "strengths": ["250mg", "500mg"], "base_price": 110, "class": "Anti Infective"},
            {"name": "Paracetamol", "strengths": ["500mg", "650mg", "1 g"], "base_price": 20, "class": "Pain Relief"},
            {"name": "Ibuprofen", "strengths": ["200mg", "400mg"], "base_price": 25, "class": "Pain Relief"},
            {"name": "Metformin", "strengths": ["500mg", "1000mg", "0.5 g"], "base_price": 35, "class": "Diabetes"},
            {"name": "Amlodipine", "strengths": ["5mg", "10mg"], "base_price": 40, "class": "Cardiac"},
            {"name": "Atorvastatin", "strengths": ["10mg", "20mg", "40mg"], "base_price": 90, "class": "Cardiac"},
            {"name": "Pantoprazole", "strengths": ["20mg", "40mg"], "base_price": 70, "class": "Gastro"},
            {"name": "Cetirizine", "strengths": ["5mg", "10mg"], "base_price": 18, "class": "Respiratory"},
            {"name": "Salbutamol", "strengths": ["100mcg", "2mg", "5 ml"], "base_price": 55, "class": "Respiratory"},
            {"name": "Cyanocobalamin", "strengths": ["500mcg", "1500 ug"], "base_price": 120, "class": "Vitamins"},
            {"name": "Fluconazole", "strengths": ["150mg", "200mg"], "base_price": 30, "class": "Anti Infective"},
        ]

        self.dosage_forms = [
            {"name": "Tablet", "pack_sizes": [10, 15, 30], "unit": "tablets", "multiplier": 1.0,
             "variants": ["Tablet", "tablet", " TABLET "]},
            {"name": "Capsule", "pack_sizes": [10, 20], "unit": "capsules", "multiplier": 1.2,
             "variants": ["Capsule", "capsule ", "CAPSULE"]},
            {"name": "Syrup", "pack_sizes": [None, 1], "unit": "ml", "multiplier": 1.5,
             "variants": ["Syrup", "syrup"]},
            {"name": "Injection", "pack_sizes": [1, 5], "unit": "vials", "multiplier": 4.0,
             "variants": ["Injection", " injection"]},
            {"name": "Cream", "pack_sizes": [None], "unit": "gm", "multiplier": 1.3,
             "variants": ["Cream", "cream"]},
        ]

        self.manufacturers = [
            ("Sun Pharmaceutical Industries Ltd", 0.18),
            ("Cipla Ltd", 0.15),
            ("Mankind Pharma Ltd", 0.14),
            ("Intas Pharmaceuticals Ltd", 0.12),
            ("Alkem Laboratories Ltd", 0.11),
            ("Lupin Ltd", 0.1),
            ("Torrent Pharmaceuticals Ltd", 0.08),
            ("Zydus Cadila", 0.07),
            ("Abbott", 0.05),
        ]

    def generate_dataset(self,
                         file_path: str,
                         num_rows: int,
                         error_rate: float = 0.1) -> Dict[str, Any]:
        """
        Generate a catalog CSV with controlled error injection.

        Args:
            file_path (str): Output CSV file path
            num_rows (int): Number of rows to generate
            error_rate (float): Fraction of rows with intentional defects

        Returns:
            dict: Generation statistics
        """
        logger.info(f"Generating {num_rows:,} catalog rows with {error_rate:.1%} error rate...")

        stats = {
            'total_rows': num_rows,
            'error_rate': error_rate,
            'records_with_errors': 0,
            'error_types': {}
        }

        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=CATALOG_HEADER)
            writer.writeheader()

            for i in range(num_rows):
                writer.writerow(self._generate_single_record(i + 1, error_rate, stats))

                if (i + 1) % 10000 == 0:
                    logger.debug(f"Generated {i + 1:,} records")

        stats['error_rate_actual'] = stats['records_with_errors'] / num_rows if num_rows else 0.0

        logger.info(f"Catalog generated: {file_path}")
        logger.info(f"Error breakdown: {stats['error_types']}")

        return stats

    def _generate_single_record(self, product_id: int, error_rate: float, stats: Dict[str, Any]) -> Dict[str, Any]:
        rng = self._random

        primary = rng.choice(self.ingredients)
        ingredients = [primary]
        if rng.random() < 0.3:
            ingredients.append(rng.choice([i for i in self.ingredients if i is not primary]))

        form = rng.choice(self.dosage_forms)
        pack_size = rng.choice(form["pack_sizes"])
        manufacturer = rng.choices(
            [m[0] for m in self.manufacturers],
            weights=[m[1] for m in self.manufacturers]
        )[0]

        strength = rng.choice(primary["strengths"])
        base = sum(i["base_price"] for i in ingredients) * form["multiplier"]
        price = round(base * (pack_size or 1) / 10 * rng.uniform(0.7, 1.4), 2)

        active = " + ".join(f"{i['name']} ({rng.choice(i['strengths'])})" for i in ingredients)
        brand = f"{primary['name'][:5].title()}{rng.choice(['', 'X', 'Plus', ' Forte', '-DS'])} {strength}"

        record = {
            'product_id': product_id,
            'brand_name': brand,
            'manufacturer': manufacturer,
            'price': price,
            'is_discontinued': rng.random() < 0.05,
            'dosage_form': rng.choice(form["variants"]),
            'pack_size': pack_size if pack_size is not None else '',
            'pack_unit': form["unit"],
            'num_active_ingredients': len(ingredients),
            'primary_ingredient': primary["name"],
            'primary_strength': strength,
            'active_ingredients': active,
            'therapeutic_class': primary["class"],
            'packaging_raw': f"strip of {pack_size} {form['unit']}" if pack_size else f"1 {form['unit']} pack",
            'manufacturer_raw': manufacturer.upper(),
        }

        if rng.random() < error_rate:
            stats['records_with_errors'] += 1
            self._inject_errors(record, stats)

        return record

    def _inject_errors(self, record: Dict[str, Any], stats: Dict[str, Any]) -> None:
        """Inject one kind of defect into the record."""
        error_type = self._random.choice([
            'missing_price', 'negative_price', 'zero_price', 'padded_text',
            'unparseable_strength', 'extreme_price'
        ])

        if error_type == 'missing_price':
            record['price'] = ''
        elif error_type == 'negative_price':
            record['price'] = -abs(record['price'])
        elif error_type == 'zero_price':
            record['price'] = 0
        elif error_type == 'padded_text':
            record['brand_name'] = f"  {record['brand_name']}  "
            record['manufacturer'] = f"{record['manufacturer']}   "
        elif error_type == 'unparseable_strength':
            record['primary_strength'] = self._random.choice(['as directed', '5 ml', '500mg/5ml', ''])
        elif error_type == 'extreme_price':
            record['price'] = round(record['price'] * self._random.uniform(8, 15), 2)

        self._track_error_type(stats, error_type)

    def _track_error_type(self, stats: Dict[str, Any], error_type: str) -> None:
        stats['error_types'][error_type] = stats['error_types'].get(error_type, 0) + 1

    def generate_rows(self, num_rows: int, error_rate: float = 0.0) -> List[Dict[str, Any]]:
        """Generate rows in memory without writing a file."""
        stats = {'records_with_errors': 0, 'error_types': {}}
        return [self._generate_single_record(i + 1, error_rate, stats) for i in range(num_rows)]
