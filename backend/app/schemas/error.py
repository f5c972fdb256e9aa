from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error response format."""
    code: str
    message: str
    status: int
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    path: Optional[str] = None


class ValidationErrorResponse(ErrorResponse):
    """Error response for invalid requests, listing every violated field."""
    field_errors: Dict[str, str] = Field(default_factory=dict)
