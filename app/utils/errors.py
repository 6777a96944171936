# app/utils/errors.py
"""
Service-level errors.

Services raise these instead of HTTPException so they can be used outside a
request (scheduler, scripts, tests). main.py maps them to JSON responses in
the same {"detail": ...} shape FastAPI uses for HTTPException.
"""

from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


class ConflictError(ServiceError):
    # Duplicate usernames and similar conflicts are reported as 400
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Conflict"


class InternalError(ServiceError):
    pass
