"""Body of the JSON error responses (401, 422)."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Machine-readable error code")
    # e.g. {"email": ["has already been taken"], "password": ["can't be blank"]}
    errors: dict[str, list[str]] | None = Field(
        default=None, description="Messages per invalid field"
    )
