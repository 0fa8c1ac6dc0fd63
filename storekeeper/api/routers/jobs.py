"""Job tracking router."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_job_manager
from ..jobs import JobManager
from ..models import JobResponse, JobStatus

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=List[JobResponse])
async def list_jobs(
    status: Optional[JobStatus] = None,
    limit: int = 100,
    job_manager: JobManager = Depends(get_job_manager),
):
    """List all jobs with optional status filter."""
    return await job_manager.list_jobs(status=status, limit=limit)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, job_manager: JobManager = Depends(get_job_manager)):
    """Get specific job details."""
    job = await job_manager.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return job
