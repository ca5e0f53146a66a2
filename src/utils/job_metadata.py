# ========================
# src/utils/job_metadata.py
# ========================

"""
Job Metadata Management

Persists analysis job metadata and rediscovers finished jobs on startup.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Any

logger = logging.getLogger(__name__)

SUMMARY_FILE = "analysis_summary.json"


class JobMetadataManager:
    """Manages persistent job metadata storage."""

    def __init__(self,
                 metadata_file: str = "data/job_metadata.json",
                 processed_dir: str = "data/processed",
                 upload_dir: str = "data/uploaded"):
        self.metadata_file = Path(metadata_file)
        self.metadata_file.parent.mkdir(parents=True, exist_ok=True)
        self.processed_dir = Path(processed_dir)
        self.upload_dir = Path(upload_dir)

    def save_job_metadata(self, job_status_dict: Dict[str, Dict[str, Any]]) -> None:
        """Save all job metadata to persistent storage."""
        try:
            with open(self.metadata_file, 'w') as f:
                json.dump(job_status_dict, f, indent=2, default=str)
            logger.debug(f"Saved job metadata for {len(job_status_dict)} jobs")
        except OSError as e:
            logger.error(f"Failed to save job metadata: {e}")

    def load_job_metadata(self) -> Dict[str, Dict[str, Any]]:
        """Load job metadata from persistent storage."""
        if not self.metadata_file.exists():
            return {}
        try:
            with open(self.metadata_file, 'r') as f:
                data = json.load(f)
            logger.info(f"Loaded metadata for {len(data)} persisted jobs")
            return data
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load job metadata: {e}")
            return {}

    def discover_existing_jobs(self) -> Dict[str, Dict[str, Any]]:
        """Rebuild metadata for job output directories that have a summary file."""
        discovered_jobs = {}

        if not self.processed_dir.exists():
            return discovered_jobs

        for job_dir in self.processed_dir.iterdir():
            if not job_dir.is_dir() or not self._is_valid_uuid(job_dir.name):
                continue

            summary_file = job_dir / SUMMARY_FILE
            if not summary_file.exists():
                continue

            job_id = job_dir.name
            input_file, filename = self._find_upload(job_id)
            completed_at = datetime.fromtimestamp(summary_file.stat().st_mtime).isoformat()

            try:
                with open(summary_file, 'r') as f:
                    summary_data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Could not read summary for job {job_id}: {e}")
                continue

            discovered_jobs[job_id] = {
                'job_id': job_id,
                'filename': filename,
                'status': 'completed',
                'created_at': completed_at,
                'completed_at': completed_at,
                'input_file': input_file,
                'output_dir': str(job_dir),
                'type': 'discovered',
                'results': {
                    'processing_stats': summary_data,
                    'saved_files': self._get_saved_files(job_dir),
                    'data_quality_stats': summary_data.get('data_quality', {}),
                }
            }

        if discovered_jobs:
            logger.info(f"Discovered {len(discovered_jobs)} existing jobs from data directories")

        return discovered_jobs

    def _find_upload(self, job_id: str):
        if self.upload_dir.exists():
            for uploaded_file in self.upload_dir.iterdir():
                if uploaded_file.name.startswith(job_id):
                    return str(uploaded_file), uploaded_file.name.replace(f"{job_id}_", "")
        return None, "unknown_file.csv"

    def _is_valid_uuid(self, uuid_string: str) -> bool:
        try:
            uuid.UUID(uuid_string)
            return True
        except ValueError:
            return False

    def _get_saved_files(self, job_dir: Path) -> Dict[str, str]:
        """Map report names to the files present in a job directory."""
        saved_files = {}
        for file_path in job_dir.glob("*.csv"):
            saved_files[file_path.stem] = str(file_path)
        if (job_dir / SUMMARY_FILE).exists():
            saved_files['summary'] = str(job_dir / SUMMARY_FILE)
        return saved_files
