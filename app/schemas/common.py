from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint: ``{success, message?, data?, count?}``."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    count: Optional[int] = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
