from pydantic import BaseModel
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    success: bool = False
    message: str
    code: str
    details: Optional[Any] = None
