"""
Error response models.

Every error the API returns has this shape.
"""

from pydantic import BaseModel
from typing import Any, Optional


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = False
    error: str
    code: str
    details: Optional[dict[str, Any]] = None


# OpenAPI ``responses`` entry shared by every router
ERROR_RESPONSES: dict[int, dict[str, Any]] = {
    status: {"model": ErrorResponse}
    for status in (400, 401, 403, 404, 409, 423, 429, 500)
}
