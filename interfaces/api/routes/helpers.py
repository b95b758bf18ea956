from fastapi import HTTPException, status

from application.dtos.errors import AppError

_STATUS_BY_CATEGORY = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "unauthorized": status.HTTP_401_UNAUTHORIZED,
    "not_found": status.HTTP_404_NOT_FOUND,
    "payload_too_large": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
}


def _map_app_error_to_http_exception(error: AppError) -> HTTPException:
    """Map application layer errors to appropriate HTTP exceptions."""
    status_code = _STATUS_BY_CATEGORY.get(error.category)
    if status_code is not None:
        return HTTPException(status_code=status_code, detail=error.message)
    # storage_error, notification_error and unknown categories
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error.message or "Internal server error",
    )
