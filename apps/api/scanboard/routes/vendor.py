"""Vendor account routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from scanboard.routes.dependencies import get_authenticated_principal, get_job_service
from scanboard.schemas.auth import AuthPrincipal
from scanboard.schemas.error import ErrorResponse, VendorFailureError
from scanboard.schemas.job import AccountBalance
from scanboard.services.jobs import JobService

router = APIRouter(prefix="/vendor", tags=["Vendor"])


@router.get(
    "/balance",
    response_model=AccountBalance,
    responses={
        401: {"model": ErrorResponse},
        422: {"model": VendorFailureError},
        502: {"model": VendorFailureError},
    },
)
def get_balance(
    _: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[JobService, Depends(get_job_service)],
) -> AccountBalance:
    return service.get_balance()
