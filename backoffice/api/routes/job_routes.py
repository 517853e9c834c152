"""
Job Routes

POST   /jobs           - Create job posting
GET    /jobs           - List jobs with filters
GET    /jobs/{job_id}  - Get job details
PUT    /jobs/{job_id}  - Update job
DELETE /jobs/{job_id}  - Delete job
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from backoffice.core.auth import get_current_user
from backoffice.services.job_service import JobService
from backoffice.schemas.schemas import (
    JobCreate, JobUpdate, JobResponse, JobListResponse, JobStatus, MessageResponse
)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(job: JobCreate, user: dict = Depends(get_current_user)):
    """Create a new job posting. targetRole must name an existing user type."""
    return JobService().create(job, created_by=user["user_id"])


@router.get("", response_model=JobListResponse)
async def list_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[JobStatus] = Query(None),
    target_role: Optional[str] = Query(None, alias="targetRole"),
    search: Optional[str] = Query(None, description="Search in name and description"),
    user: dict = Depends(get_current_user)
):
    """List job postings with filters and pagination."""
    return JobService().list(
        page=page, limit=limit, status=status.value if status else None,
        target_role=target_role, search=search
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, user: dict = Depends(get_current_user)):
    return JobService().get(job_id)


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(job_id: str, job: JobUpdate, user: dict = Depends(get_current_user)):
    return JobService().update(job_id, job)


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: str, user: dict = Depends(get_current_user)):
    JobService().delete(job_id)
    return MessageResponse(message="Job deleted")
