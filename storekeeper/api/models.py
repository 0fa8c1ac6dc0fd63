"""Pydantic models for API requests and responses."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from storekeeper.backup.models import BackupOptions


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AvailabilityResponse(BaseModel):
    namespace: str
    candidate: str
    available: bool


class EraseRequest(BaseModel):
    collections: List[str] = Field(..., min_length=1)


class BackupRequest(BaseModel):
    collections: List[str] = Field(..., min_length=1)
    options: BackupOptions = Field(default_factory=BackupOptions)


class HealthStatus(BaseModel):
    status: str  # "healthy", "degraded", "unhealthy"
    store: bool
    redis: bool
    timestamp: datetime = Field(default_factory=_utcnow)


class JobStatus(str, Enum):
    """Job status enum."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class JobProgress(BaseModel):
    """Job progress tracking."""
    current: int = 0
    total: int = 100
    phase: str = "initializing"


class JobResponse(BaseModel):
    """Job response model."""
    job_id: str
    job_type: str
    status: JobStatus
    created_at: datetime
    completed_at: Optional[datetime] = None
    progress: JobProgress
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
