from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every successful response"""
    message: str
    data: Optional[T] = None


class TokenData(BaseModel):
    token: str
    token_type: str = "bearer"
