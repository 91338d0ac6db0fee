"""
Error taxonomy. Each kind is an HTTPException so it can be raised from any
layer and still reach the client with its own status.
"""

from typing import Optional

from fastapi import HTTPException, status


class ValidationFailed(HTTPException):
    def __init__(self, field: str, message: str):
        super().__init__(
            status_code=422,
            detail=[{"loc": ["body", field], "msg": message, "type": "value_error"}],
        )
        self.field = field


class NotFound(HTTPException):
    def __init__(self, what: str = "Resource"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


class Conflict(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class DependencyUnavailable(HTTPException):
    def __init__(self, service: str, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail or f"{service} unavailable, please retry",
        )
        self.service = service
