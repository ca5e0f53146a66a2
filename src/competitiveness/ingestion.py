# ========================
# src/competitiveness/ingestion.py
# ========================

"""
Catalog Ingestion Module

Reads the product catalog from a delimited file into raw row dictionaries.
"""

import csv
import logging
from typing import Dict, Iterator, List

logger = logging.getLogger(__name__)


class CatalogReader:
    """
    Reads a catalog CSV into raw, untyped rows.
    Values are left as strings; the normalizer owns all conversion.
    """

    def __init__(self, file_path, delimiter: str = ','):
        """
        Initialize the catalog reader.

        Args:
            file_path (str): Path to the catalog file
            delimiter (str): Field delimiter
        """
        self.file_path = file_path
        self.delimiter = delimiter
        self.header = []
        logger.info(f"Initialized CatalogReader for file: {file_path}")

    def read_in_chunks(self, chunk_size: int) -> Iterator[List[Dict[str, str]]]:
        """
        A generator that yields a list of dictionaries for each chunk of data.

        Args:
            chunk_size (int): The number of rows to yield per chunk.

        Yields:
            list[dict]: A list of dictionaries representing a chunk of rows.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        try:
            # utf-8-sig drops the BOM that spreadsheet exports prepend
            with open(self.file_path, 'r', newline='', encoding='utf-8-sig') as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)
                self.header = reader.fieldnames
                logger.info(f"Catalog header: {self.header}")

                chunk = []
                row_count = 0

                for row in reader:
                    chunk.append(row)
                    row_count += 1

                    if len(chunk) == chunk_size:
                        logger.debug(f"Yielding chunk with {len(chunk)} rows")
                        yield chunk
                        chunk = []

                if chunk:
                    logger.debug(f"Yielding final chunk with {len(chunk)} rows")
                    yield chunk

                logger.info(f"Total rows read: {row_count}")

        except FileNotFoundError:
            logger.error(f"File '{self.file_path}' was not found")
            raise
        except Exception as e:
            logger.error(f"Error reading catalog file: {e}")
            raise

    def read_all(self, chunk_size: int = 1000) -> List[Dict[str, str]]:
        """Materialize the whole catalog in memory."""
        rows = []
        for chunk in self.read_in_chunks(chunk_size):
            rows.extend(chunk)
        return rows
