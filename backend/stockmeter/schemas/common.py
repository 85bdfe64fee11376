"""
Response Envelope

Every endpoint answers with the same envelope:
    {success, message, data?, pagination?, error?}
`error` repeats `message` on failures.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PaginationMeta(BaseModel):
    """Pagination block attached to list responses."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: Optional[int] = None
    has_more: Optional[bool] = Field(default=None, alias="hasMore")


class ApiResponse(BaseModel):
    """Success or failure envelope."""

    success: bool
    message: str
    data: Optional[Any] = None
    pagination: Optional[PaginationMeta] = None
    error: Optional[str] = None


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [_dump(item) for item in data]
    if isinstance(data, dict):
        return {key: _dump(value) for key, value in data.items()}
    return data


def success_response(
    message: str,
    data: Any = None,
    pagination: Optional[PaginationMeta] = None,
) -> dict:
    """Build a success envelope ready for JSON encoding."""
    response = ApiResponse(success=True, message=message, data=_dump(data), pagination=pagination)
    return response.model_dump(mode="json", by_alias=True, exclude_none=True)


def error_response(message: str) -> dict:
    """Build a failure envelope ready for JSON encoding."""
    response = ApiResponse(success=False, message=message, error=message)
    return response.model_dump(mode="json", by_alias=True, exclude_none=True)
