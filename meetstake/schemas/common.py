"""Common response schemas."""
from pydantic import BaseModel
from typing import Optional


class SuccessResponse(BaseModel):
    """Standard success response."""
    success: bool = True
    message: Optional[str] = None


class ErrorDetail(BaseModel):
    """Error detail structure."""
    code: str
    message: str
    deadline: Optional[str] = None  # ISO-8601, set for time-window errors


class ErrorResponse(BaseModel):
    """Standard error response for staking errors."""
    success: bool = False
    error: ErrorDetail
