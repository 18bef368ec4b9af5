"""
Error response models.

Standardized error responses for the API. Used in the ``responses=``
declarations of the app and routers so the OpenAPI schema documents them.
"""

from pydantic import BaseModel
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """Standard error response format (PromptGenError.to_dict())."""

    error: str
    message: str
    details: dict[str, Any] = {}


class ReasonDetail(BaseModel):
    """
    Detail body of a refused account or admin action.

    ``reason`` is one of the stable failure reason values.
    """

    reason: str
    message: Optional[str] = None


class RefusalResponse(BaseModel):
    """HTTPException body of a refused action."""

    detail: ReasonDetail


REFUSAL_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": RefusalResponse, "description": "Action refused"},
    403: {"model": RefusalResponse, "description": "Action not allowed"},
    404: {"model": RefusalResponse, "description": "User not found"},
}
