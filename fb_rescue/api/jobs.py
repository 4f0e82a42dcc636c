"""Job API endpoints."""

from fastapi import APIRouter, HTTPException

from ..models.job import JobRequest
from ..services.job_manager import JobConflictError, job_manager

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("")
async def start_job(request: JobRequest):
    try:
        job = job_manager.create_job(request)
    except JobConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await job_manager.start_job(job)
    record = job_manager.get_job(job.id)
    return {"job_id": job.id, "status": record.status}


@router.get("/{job_id}")
async def get_job(job_id: str):
    record = job_manager.get_job(job_id)
    if not record:
        raise HTTPException(status_code=404, detail="Job not found")
    return record
