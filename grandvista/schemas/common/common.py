# grandvista/schemas/common/common.py
from pydantic import BaseModel
from typing import Any, List, Optional


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    issues: Optional[List[Any]] = None


class MessageResponse(BaseModel):
    message: str
