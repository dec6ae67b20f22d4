"""Common Pydantic schemas shared across the API."""

from typing import Optional
from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    """Body of the error envelope."""

    code: str = Field(description="Error code for programmatic handling")
    message: str = Field(description="Sanitized error message")
    path: Optional[str] = Field(None, description="Request path")
    method: Optional[str] = Field(None, description="Request method")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: ErrorBody


class CountResponse(BaseModel):
    """Number of records matching a filter."""

    count: int = Field(ge=0, description="Number of matching records")


class PageCountResponse(BaseModel):
    """Number of pages needed to list every matching record."""

    page_count: int = Field(ge=0, description="Number of pages")
    page_size: int = Field(ge=1, description="Records per page")
