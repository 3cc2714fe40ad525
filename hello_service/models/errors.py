# hello_service/models/errors.py

from typing import Any, Optional

from pydantic import BaseModel


class ErrorBody(BaseModel):
    status: int
    error: str
    path: str
    detail: Optional[Any] = None
