"""Job tracking for long-running backup builds."""

import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import redis.asyncio as redis

from storekeeper._utils import logger
from storekeeper.api.models import JobProgress, JobResponse, JobStatus


class JobManager:
    """Manages job lifecycle with a Redis backend.

    Without Redis, jobs are kept in ``local_jobs`` (an app-owned dict), which
    only works for a single API process.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None,
                 local_jobs: Optional[Dict[str, str]] = None):
        self.redis = redis_client
        self.local_jobs = local_jobs if local_jobs is not None else {}
        # TTL for Redis keys and finished in-process jobs (default: 7 days)
        self.job_ttl = int(os.getenv("REDIS_JOB_TTL", "604800"))
        self.max_local_jobs = int(os.getenv("LOCAL_JOB_LIMIT", "1000"))

    async def _save(self, job: JobResponse) -> None:
        if self.redis:
            await self.redis.setex(f"job:{job.job_id}", self.job_ttl, job.model_dump_json())
        else:
            self.local_jobs[job.job_id] = job.model_dump_json()
            self._prune_local()

    def _prune_local(self) -> None:
        """Expire finished in-process jobs after ``job_ttl`` and cap the table.

        Only finished jobs are dropped, oldest first; pending and running jobs
        are kept even when the table is over ``max_local_jobs``.
        """
        now = datetime.now(timezone.utc)
        finished = []
        for job_id, job_data in self.local_jobs.items():
            job = JobResponse.model_validate_json(job_data)
            if job.completed_at is not None:
                finished.append((job.completed_at, job_id))
        finished.sort(key=lambda item: item[0])

        expired = [job_id for completed_at, job_id in finished
                   if (now - completed_at).total_seconds() > self.job_ttl]
        overflow = len(self.local_jobs) - len(expired) - self.max_local_jobs
        if overflow > 0:
            remaining = [job_id for _, job_id in finished if job_id not in expired]
            expired.extend(remaining[:overflow])

        for job_id in expired:
            del self.local_jobs[job_id]
        if expired:
            logger.debug(f"Pruned {len(expired)} finished in-process job(s)")

    async def create_job(self, job_type: str, metadata: Optional[Dict[str, Any]] = None) -> JobResponse:
        """Create a new pending job."""
        job = JobResponse(
            job_id=str(uuid.uuid4()),
            job_type=job_type,
            status=JobStatus.PENDING,
            created_at=datetime.now(timezone.utc),
            progress=JobProgress(current=0, total=100, phase="initializing"),
            metadata=metadata or {},
        )
        await self._save(job)
        logger.info(f"Created {job_type} job {job.job_id}")
        return job

    async def get_job(self, job_id: str) -> Optional[JobResponse]:
        if self.redis:
            job_data = await self.redis.get(f"job:{job_id}")
        else:
            job_data = self.local_jobs.get(job_id)
        if job_data:
            return JobResponse.model_validate_json(job_data)
        return None

    async def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        error: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Update job status, merging ``metadata`` into the job's metadata."""
        job = await self.get_job(job_id)
        if not job:
            return False

        job.status = status
        if metadata:
            job.metadata.update(metadata)
        if status == JobStatus.COMPLETED:
            job.completed_at = datetime.now(timezone.utc)
            job.progress.current = job.progress.total
            job.progress.phase = "done"
        elif status == JobStatus.FAILED:
            job.error = error
            job.completed_at = datetime.now(timezone.utc)

        await self._save(job)
        logger.info(f"Updated job {job_id} status to {status.value}")
        return True

    async def update_job_progress(self, job_id: str, current: int, phase: str) -> bool:
        job = await self.get_job(job_id)
        if not job:
            return False

        job.progress.current = current
        job.progress.phase = phase
        await self._save(job)
        return True

    async def list_jobs(self, status: Optional[JobStatus] = None, limit: int = 100) -> List[JobResponse]:
        """List jobs, optionally filtered by status, newest first."""
        if self.redis:
            # Use SCAN instead of KEYS to avoid blocking Redis
            cursor = 0
            raw_jobs = []
            while True:
                cursor, keys = await self.redis.scan(cursor, match="job:*", count=100)
                for key in keys:
                    job_data = await self.redis.get(key)
                    if job_data:
                        raw_jobs.append((key, job_data))
                if cursor == 0 or len(raw_jobs) >= limit * 2:
                    break
        else:
            raw_jobs = list(self.local_jobs.items())

        jobs = []
        for key, job_data in raw_jobs:
            try:
                job = JobResponse.model_validate_json(job_data)
            except ValueError as e:
                logger.warning(f"Failed to parse job data for {key}: {e}")
                continue
            if status is None or job.status == status:
                jobs.append(job)

        jobs.sort(key=lambda x: x.created_at, reverse=True)
        return jobs[:limit]
