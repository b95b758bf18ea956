"""API middleware for error handling and cross-cutting concerns."""

from interfaces.api.middleware.error_handler import (
    handle_use_case_errors,
    http_exception_handler,
    validation_exception_handler,
)
from interfaces.api.middleware.request_size import RequestSizeLimitMiddleware

__all__ = [
    "RequestSizeLimitMiddleware",
    "handle_use_case_errors",
    "http_exception_handler",
    "validation_exception_handler",
]
