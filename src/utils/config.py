# ========================
# src/utils/config.py
# ========================

"""
Configuration Management

Centralized configuration for the competitiveness analysis with environment support.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional


class Config:
    """
    Configuration class for the analysis pipeline.
    Supports environment variables and default values.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_dict (dict): Optional configuration overrides
        """
        # Data Processing Configuration
        self.DEFAULT_CHUNK_SIZE = int(os.getenv('CATALOG_CHUNK_SIZE', '1000'))

        # File Paths
        self.DEFAULT_INPUT_FILE = os.getenv('CATALOG_INPUT_FILE', 'data/raw/product_catalog.csv')
        self.DEFAULT_OUTPUT_DIR = os.getenv('CATALOG_OUTPUT_DIR', 'data/processed')
        self.UPLOAD_DIR = os.getenv('CATALOG_UPLOAD_DIR', 'data/uploaded')

        # Keyword -> therapeutic class table; empty means the built-in table
        self.KEYWORD_TABLE_FILE = os.getenv('KEYWORD_TABLE_FILE', '')

        # Sample Data Settings
        self.DEFAULT_SAMPLE_ROWS = int(os.getenv('SAMPLE_ROWS', '5000'))
        self.SAMPLE_ERROR_RATE = float(os.getenv('SAMPLE_ERROR_RATE', '0.1'))

        # Report Limits
        self.OUTLIER_LIMIT = int(os.getenv('OUTLIER_LIMIT', '25'))
        self.TOP_MANUFACTURERS_LIMIT = int(os.getenv('TOP_MANUFACTURERS_LIMIT', '50'))

        # API Settings
        self.API_PORT = int(os.getenv('API_PORT', '8000'))

        # Logging Configuration
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

        if config_dict:
            self._update_from_dict(config_dict)

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        for key, value in config_dict.items():
            if hasattr(self, key.upper()):
                setattr(self, key.upper(), value)

    def get_data_paths(self) -> Dict[str, Path]:
        """Get all configured data paths as Path objects."""
        return {
            'input_file': Path(self.DEFAULT_INPUT_FILE),
            'output_dir': Path(self.DEFAULT_OUTPUT_DIR),
            'upload_dir': Path(self.UPLOAD_DIR),
            'raw_data_dir': Path(self.DEFAULT_INPUT_FILE).parent,
            'logs_dir': Path('logs')
        }

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        for path_name, path in self.get_data_paths().items():
            if path_name.endswith('_dir'):
                path.mkdir(parents=True, exist_ok=True)

    def validate_config(self) -> Dict[str, bool]:
        """
        Validate configuration values.

        Returns:
            dict: Validation results for each setting
        """
        validations = {}

        validations['chunk_size'] = self.DEFAULT_CHUNK_SIZE > 0
        validations['sample_rows'] = self.DEFAULT_SAMPLE_ROWS > 0
        validations['sample_error_rate'] = 0.0 <= self.SAMPLE_ERROR_RATE <= 1.0
        validations['outlier_limit'] = self.OUTLIER_LIMIT >= 0
        validations['top_manufacturers_limit'] = self.TOP_MANUFACTURERS_LIMIT >= 0
        validations['api_port'] = 1000 <= self.API_PORT <= 65535
        validations['keyword_table_file'] = (
            not self.KEYWORD_TABLE_FILE or Path(self.KEYWORD_TABLE_FILE).is_file()
        )

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        validations['log_level'] = self.LOG_LEVEL.upper() in valid_log_levels

        return validations

    def is_valid(self) -> bool:
        return all(self.validate_config().values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            attr: getattr(self, attr)
            for attr in dir(self)
            if not attr.startswith('_') and not callable(getattr(self, attr))
        }

    def save_to_file(self, file_path: str) -> None:
        """Save configuration to JSON file."""
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(file_path, 'r') as f:
            config_dict = json.load(f)
        return cls(config_dict)

    def __str__(self) -> str:
        lines = ["Configuration Settings:"]
        for key, value in sorted(self.to_dict().items()):
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)
