"""Backup and restore API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import RedirectResponse, Response

from storekeeper import Storekeeper
from storekeeper._utils import logger
from storekeeper.backup import BackupManifest, RestoreMode, RestoreReport
from storekeeper.backup.utils import format_backup_size
from storekeeper.exceptions import PartialFailure, StorekeeperError

from ..config import settings
from ..dependencies import get_job_manager, get_keeper
from ..exceptions import BackupNotFoundError, to_http_error
from ..jobs import JobManager
from ..models import BackupRequest, JobResponse, JobStatus

router = APIRouter(prefix="/backup", tags=["backup"])


async def _create_backup_task(keeper: Storekeeper, job_manager: JobManager, job_id: str, request: BackupRequest):
    """Background task to create backup."""
    try:
        await job_manager.update_job_status(job_id, JobStatus.PROCESSING)

        async def on_progress(percent: int, message: str) -> None:
            await job_manager.update_job_progress(job_id, percent, message)

        result = await keeper.backups.create_backup(request.collections, request.options, on_progress)
        manifest = result.manifest

        await job_manager.update_job_status(
            job_id,
            JobStatus.COMPLETED,
            metadata={
                "backup_id": manifest.backup_id,
                "total_documents": manifest.total_documents,
                "size": format_backup_size(len(result.artifacts.primary)),
                "storage_urls": manifest.storage_urls,
                "failed_collections": manifest.failed_collections,
            },
        )
        logger.info(f"Backup job {job_id} completed: {manifest.backup_id}")

    except Exception as e:
        logger.error(f"Backup job {job_id} failed: {e}")
        await job_manager.update_job_status(job_id, JobStatus.FAILED, str(e))


@router.post("", response_model=JobResponse)
async def create_backup(
    request: BackupRequest,
    background_tasks: BackgroundTasks,
    keeper: Storekeeper = Depends(get_keeper),
    job_manager: JobManager = Depends(get_job_manager),
) -> JobResponse:
    """Create new backup asynchronously.

    Returns a job for tracking progress. Artifacts of background builds are
    only retrievable when ``options.upload_to_storage`` is set.
    """
    job = await job_manager.create_job(
        job_type="backup",
        metadata={"operation": "backup", "collections": request.collections},
    )
    background_tasks.add_task(_create_backup_task, keeper, job_manager, job.job_id, request)
    return job


@router.post("/export")
async def export_backup(request: BackupRequest, keeper: Storekeeper = Depends(get_keeper)) -> Response:
    """Build a backup and return its primary artifact in the response body."""
    try:
        result = await keeper.backups.create_backup(request.collections, request.options)
    except PartialFailure as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorekeeperError as e:
        raise to_http_error(e)

    artifacts = result.artifacts
    media_type = "application/zip" if artifacts.archive is not None else "application/json"
    return Response(
        content=artifacts.primary,
        media_type=media_type,
        headers={
            "Content-Disposition": f"attachment; filename={artifacts.primary_name}",
            "X-Backup-Id": result.manifest.backup_id,
            "X-Backup-Checksum": result.manifest.checksum,
        },
    )


@router.get("", response_model=List[BackupManifest])
async def list_backups(keeper: Storekeeper = Depends(get_keeper)) -> List[BackupManifest]:
    """List cataloged backups, newest first."""
    try:
        return await keeper.backups.list_backups()
    except StorekeeperError as e:
        raise to_http_error(e)


@router.post("/restore", response_model=RestoreReport)
async def restore_backup(
    file: UploadFile = File(...),
    mode: RestoreMode = Form(RestoreMode.FULL),
    password: Optional[str] = Form(None),
    collections: Optional[str] = Form(None, description="Comma-separated subset of collections"),
    confirm_integrity: bool = Form(False),
    confirm_conflicts: bool = Form(False),
    keeper: Storekeeper = Depends(get_keeper),
) -> RestoreReport:
    """Restore from an uploaded archive (.zip) or payload file (.json).

    Integrity problems and merge conflicts are answered with 409; repeat
    the request with the matching ``confirm_*`` flag to proceed.
    """
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded backup file is empty")
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Uploaded backup file is too large")

    logger.info(f"Uploaded backup file: {file.filename} ({len(content):,} bytes)")
    selected = [name.strip() for name in collections.split(",") if name.strip()] if collections else None

    try:
        return await keeper.restorer.restore(
            content,
            filename=file.filename,
            password=password,
            mode=mode,
            collections=selected,
            confirm_integrity=confirm_integrity,
            confirm_conflicts=confirm_conflicts,
        )
    except StorekeeperError as e:
        raise to_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{backup_id}", response_model=BackupManifest)
async def get_backup(backup_id: str, keeper: Storekeeper = Depends(get_keeper)) -> BackupManifest:
    try:
        manifest = await keeper.backups.get_backup(backup_id)
    except StorekeeperError as e:
        raise to_http_error(e)
    if manifest is None:
        raise BackupNotFoundError(backup_id)
    return manifest


@router.get("/{backup_id}/download")
async def download_backup(backup_id: str, keeper: Storekeeper = Depends(get_keeper)) -> RedirectResponse:
    """Redirect to the stored artifact of an uploaded backup."""
    manifest = await get_backup(backup_id, keeper)
    url = manifest.storage_urls.get("archive") or manifest.storage_urls.get("payload")
    if not url:
        raise HTTPException(status_code=404, detail=f"Backup {backup_id} was not uploaded to storage")
    return RedirectResponse(url)


@router.delete("/{backup_id}")
async def delete_backup(backup_id: str, keeper: Storekeeper = Depends(get_keeper)) -> dict:
    """Remove a backup from the catalog."""
    try:
        deleted = await keeper.backups.delete_backup(backup_id)
    except StorekeeperError as e:
        raise to_http_error(e)
    if not deleted:
        raise BackupNotFoundError(backup_id)
    return {"message": f"Backup deleted: {backup_id}"}
