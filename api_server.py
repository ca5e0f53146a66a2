# ========================
# api_server.py
# ========================

"""
FastAPI Server for the Market Competitiveness Analysis

Upload a product catalog, run the analysis in the background and fetch the
resulting reports as JSON or files.
"""

import uuid
import logging
import asyncio
import shutil
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from fastapi import FastAPI, File, UploadFile, HTTPException, BackgroundTasks, Query
from fastapi.responses import FileResponse
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from src.competitiveness.orchestrator import CompetitivenessPipeline
from src.competitiveness.storage import read_report
from src.utils.config import Config
from src.utils.logging_setup import setup_logging
from src.utils.job_metadata import JobMetadataManager

# Configuration
config = Config()

setup_logging(log_level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

UPLOAD_DIR = Path(config.UPLOAD_DIR)
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
PROCESSED_DIR = Path(config.DEFAULT_OUTPUT_DIR)

JOB_NOT_FOUND_MSG = "Job not found"
JOB_NOT_COMPLETED_MSG = "Job not completed yet"
JOB_RUNNING_MSG = "Job is still queued or processing and cannot be deleted"

job_metadata_manager = JobMetadataManager(
    processed_dir=str(PROCESSED_DIR),
    upload_dir=str(UPLOAD_DIR)
)

app = FastAPI(
    title="Market Competitiveness API",
    description="Pricing, concentration and outlier statistics over pharmaceutical catalogs",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def initialize_job_status() -> Dict[str, Dict[str, Any]]:
    """Load saved job metadata and merge in jobs discovered on disk."""
    job_status = job_metadata_manager.load_job_metadata()

    for job_id, job_data in job_metadata_manager.discover_existing_jobs().items():
        if job_id not in job_status:
            job_status[job_id] = job_data
            logger.info(f"Added discovered job {job_id}: {job_data['filename']}")

    if job_status:
        job_metadata_manager.save_job_metadata(job_status)

    return job_status


# Global state for tracking jobs
job_status: Dict[str, Dict[str, Any]] = initialize_job_status()


def persist_job_status():
    """Save current job status to persistent storage."""
    job_metadata_manager.save_job_metadata(job_status)


def _get_completed_job(job_id: str) -> Dict[str, Any]:
    if job_id not in job_status:
        raise HTTPException(status_code=404, detail=JOB_NOT_FOUND_MSG)
    job = job_status[job_id]
    if job['status'] != 'completed':
        raise HTTPException(status_code=400, detail=JOB_NOT_COMPLETED_MSG)
    if 'results' not in job or 'saved_files' not in job['results']:
        raise HTTPException(status_code=404, detail="No results available")
    return job


class AnalysisJobManager:
    """Runs analysis jobs in the background."""

    @staticmethod
    def run_analysis(job_id: str, input_file: str, output_dir: str) -> None:
        try:
            logger.info(f"Starting analysis job {job_id}")
            job_status[job_id]['status'] = 'processing'
            job_status[job_id]['started_at'] = datetime.now().isoformat()

            pipeline = CompetitivenessPipeline(
                input_file=input_file,
                output_dir=output_dir,
                config=config
            )

            if not pipeline.validate_input():
                raise ValueError("Input file validation failed")

            results = pipeline.run()

            job_status[job_id]['status'] = 'completed'
            job_status[job_id]['completed_at'] = datetime.now().isoformat()
            job_status[job_id]['results'] = results
            persist_job_status()

            logger.info(f"Analysis job {job_id} completed successfully")

        except Exception as e:
            logger.error(f"Analysis job {job_id} failed: {e}", exc_info=True)
            job_status[job_id]['status'] = 'failed'
            job_status[job_id]['error'] = str(e)
            job_status[job_id]['failed_at'] = datetime.now().isoformat()
            persist_job_status()


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Market Competitiveness API",
        "version": "1.0.0",
        "endpoints": {
            "upload": "/upload - Upload a catalog CSV",
            "status": "/status/{job_id} - Check job status",
            "jobs": "/jobs - List all jobs",
            "results": "/results/{job_id}/{report} - Report rows as JSON",
            "download": "/download/{job_id}?report=... - Download a report file",
            "health": "/health - Health check",
            "api_docs": "/docs - API documentation"
        },
        "api_docs_url": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "active_jobs": len([j for j in job_status.values() if j['status'] == 'processing'])
    }


@app.post("/upload")
async def upload_file(background_tasks: BackgroundTasks, file: UploadFile = File(...)):
    """
    Upload a catalog CSV and start an analysis job.

    Returns:
        dict: Job ID and status information
    """
    if not file.filename or not file.filename.lower().endswith('.csv'):
        raise HTTPException(status_code=400, detail="Only CSV files are supported")

    try:
        job_id = str(uuid.uuid4())
        file_path = UPLOAD_DIR / f"{job_id}_{Path(file.filename).name}"
        content = await file.read()

        def write_file():
            with open(file_path, "wb") as buffer:
                buffer.write(content)

        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, write_file)

        output_dir = PROCESSED_DIR / job_id
        output_dir.mkdir(parents=True, exist_ok=True)

        job_status[job_id] = {
            'job_id': job_id,
            'filename': file.filename,
            'status': 'queued',
            'created_at': datetime.now().isoformat(),
            'input_file': str(file_path),
            'output_dir': str(output_dir),
            'file_size': len(content)
        }
        persist_job_status()

        background_tasks.add_task(
            AnalysisJobManager.run_analysis,
            job_id,
            str(file_path),
            str(output_dir)
        )

        logger.info(f"Started analysis job {job_id} for file {file.filename}")

        return {
            "job_id": job_id,
            "filename": file.filename,
            "status": "queued",
            "message": "File uploaded successfully. Analysis started."
        }

    except OSError as e:
        logger.error(f"Upload failed: {e}")
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")


@app.get("/status/{job_id}")
async def get_job_status(job_id: str):
    """Get the status of an analysis job."""
    if job_id not in job_status:
        raise HTTPException(status_code=404, detail=JOB_NOT_FOUND_MSG)

    job = job_status[job_id].copy()

    if job['status'] == 'completed' and 'results' in job:
        results = job['results']
        job['summary'] = {
            'products': results.get('processing_stats', {}).get('product_count', 0),
            'output_files': len(results.get('saved_files', {})),
            'data_quality_rate': results.get('data_quality_stats', {}).get('success_rate', 0)
        }

    return job


@app.get("/jobs")
async def list_jobs(
    status: Optional[str] = Query(None, description="Filter by status: queued, processing, completed, failed"),
    limit: int = Query(50, description="Maximum number of jobs to return", ge=1, le=100)
):
    """List analysis jobs, newest first."""
    jobs = list(job_status.values())

    if status:
        jobs = [job for job in jobs if job['status'] == status]

    jobs.sort(key=lambda x: x.get('created_at') or '', reverse=True)
    jobs = jobs[:limit]

    return {
        "jobs": jobs,
        "total_count": len(job_status),
        "filtered_count": len(jobs)
    }


@app.get("/results/{job_id}/{report}")
async def get_report_rows(job_id: str, report: str):
    """Return the rows of one saved report as JSON."""
    job = _get_completed_job(job_id)
    saved_files = job['results']['saved_files']

    if report not in saved_files or report == 'summary':
        available = [name for name in saved_files if name != 'summary']
        raise HTTPException(status_code=404, detail=f"Report '{report}' not found. Available reports: {available}")

    file_path = Path(saved_files[report])
    if not file_path.exists():
        raise HTTPException(status_code=404, detail="File not found on disk")

    rows = read_report(str(file_path))
    return {"job_id": job_id, "report": report, "row_count": len(rows), "rows": rows}


@app.get("/download/{job_id}")
async def download_results(job_id: str, report: str = Query(..., description="Report to download")):
    """Download one report file of a completed job."""
    job = _get_completed_job(job_id)
    saved_files = job['results']['saved_files']

    if report not in saved_files:
        raise HTTPException(
            status_code=404,
            detail=f"Report '{report}' not found. Available reports: {list(saved_files.keys())}"
        )

    file_path = Path(saved_files[report])
    if not file_path.exists():
        raise HTTPException(status_code=404, detail="File not found on disk")

    return FileResponse(
        path=file_path,
        filename=f"{job_id}_{file_path.name}",
        media_type='application/octet-stream'
    )


@app.delete("/jobs/{job_id}")
async def delete_job(job_id: str):
    """Delete a job and its files."""
    if job_id not in job_status:
        raise HTTPException(status_code=404, detail=JOB_NOT_FOUND_MSG)

    if job_status[job_id]['status'] in ('queued', 'processing'):
        raise HTTPException(status_code=400, detail=JOB_RUNNING_MSG)

    job = job_status.pop(job_id)

    if job.get('input_file'):
        input_path = Path(job['input_file'])
        if input_path.exists():
            input_path.unlink()
    if job.get('output_dir'):
        shutil.rmtree(job['output_dir'], ignore_errors=True)

    persist_job_status()
    logger.info(f"Deleted job {job_id}")

    return {"job_id": job_id, "status": "deleted"}


def start_server(host: str = "0.0.0.0", port: int = config.API_PORT, reload: bool = False):
    """Start the FastAPI server."""
    logger.info(f"Starting Market Competitiveness API server on {host}:{port}")
    uvicorn.run(
        "api_server:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )


if __name__ == "__main__":
    start_server(reload=True)
