"""Translation of vendor adapter failures into API errors."""

from scanboard.adapters.vendor.errors import (
    ArtifactNotReady,
    JobNotFoundUpstream,
    VendorError,
    VendorProtocolError,
    VendorRejected,
    VendorUnavailable,
)
from scanboard.errors import ApiError

_VENDOR_ERROR_CONTRACT: dict[type[VendorError], tuple[int, str, str]] = {
    VendorUnavailable: (502, "VENDOR_UNAVAILABLE", "Processing service is unavailable."),
    VendorRejected: (422, "VENDOR_REJECTED", "Processing service rejected the request."),
    VendorProtocolError: (502, "VENDOR_PROTOCOL_ERROR", "Processing service returned an unexpected response."),
    JobNotFoundUpstream: (404, "JOB_NOT_FOUND_UPSTREAM", "Processing service does not know this job."),
    ArtifactNotReady: (409, "ARTIFACT_NOT_READY", "Model is not ready for download yet."),
}


def vendor_api_error(exc: VendorError) -> ApiError:
    status_code, code, message = _VENDOR_ERROR_CONTRACT.get(
        type(exc),
        (502, "VENDOR_UNAVAILABLE", "Processing service is unavailable."),
    )
    return ApiError(
        status_code=status_code,
        code=code,
        message=message,
        details={"vendor_code": exc.vendor_code, "vendor_message": exc.message},
    )


__all__ = ["vendor_api_error"]
