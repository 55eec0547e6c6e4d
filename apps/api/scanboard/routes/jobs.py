"""Job routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status

from scanboard.adapters.vendor.base import VideoUpload
from scanboard.core.config import Settings, get_settings
from scanboard.routes.dependencies import (
    get_authenticated_principal,
    get_job_service,
    get_request_correlation_id,
    get_upload_service,
)
from scanboard.schemas.auth import AuthPrincipal
from scanboard.schemas.error import (
    ErrorResponse,
    NoLeakNotFoundError,
    PersistenceFailureError,
    VendorFailureError,
)
from scanboard.schemas.job import DownloadLink, Job, ScanOptions, SubmitVideoResponse
from scanboard.services.jobs import JobService
from scanboard.services.uploads import UploadService

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.get(
    "",
    response_model=list[Job],
    responses={401: {"model": ErrorResponse}},
)
def list_jobs(
    _: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JobService, Depends(get_job_service)],
) -> list[Job]:
    return service.list_jobs()


@router.post(
    "",
    response_model=SubmitVideoResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        422: {"model": VendorFailureError},
        500: {"model": PersistenceFailureError},
        502: {"model": VendorFailureError},
    },
)
def submit_video(
    video_file: Annotated[UploadFile, File()],
    title: Annotated[str, Form()],
    _: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[UploadService, Depends(get_upload_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    model_quality: Annotated[str | None, Form()] = None,
    texture_quality: Annotated[str | None, Form()] = None,
    file_format: Annotated[str | None, Form()] = None,
    is_mask: Annotated[str | None, Form()] = None,
    texture_smoothing: Annotated[str | None, Form()] = None,
) -> SubmitVideoResponse:
    options = ScanOptions(
        model_quality=model_quality or settings.default_model_quality,
        texture_quality=texture_quality or settings.default_texture_quality,
        file_format=file_format or settings.default_file_format,
        is_mask=is_mask or settings.default_is_mask,
        texture_smoothing=texture_smoothing or settings.default_texture_smoothing,
    )
    video = VideoUpload(
        file_name=video_file.filename or "",
        content=video_file.file,
        content_type=video_file.content_type or "application/octet-stream",
        size=video_file.size,
    )
    job = service.submit_video(video=video, title=title, options=options)
    return SubmitVideoResponse(id=job.id, job=job)


@router.get(
    "/{jobId}",
    response_model=Job,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": NoLeakNotFoundError},
        500: {"model": PersistenceFailureError},
        502: {"model": VendorFailureError},
    },
)
def poll_job(
    job_id: Annotated[str, Path(alias="jobId")],
    correlation_id: Annotated[str, Depends(get_request_correlation_id)],
    _: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JobService, Depends(get_job_service)],
    refresh: Annotated[bool, Query()] = True,
) -> Job:
    if not refresh:
        return service.get_job(job_id=job_id)
    return service.poll_job(job_id=job_id, correlation_id=correlation_id)


@router.get(
    "/{jobId}/download-link",
    response_model=DownloadLink,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": NoLeakNotFoundError},
        409: {"model": VendorFailureError},
        502: {"model": VendorFailureError},
    },
)
def get_download_link(
    job_id: Annotated[str, Path(alias="jobId")],
    _: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JobService, Depends(get_job_service)],
) -> DownloadLink:
    return service.get_download_link(job_id=job_id)
