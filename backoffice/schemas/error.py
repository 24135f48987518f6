"""Standardized error response schema."""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error body for domain exceptions."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Machine-readable error code")


class GoneErrorResponse(ErrorResponse):
    """Body for an expired password reset token."""

    expired: bool = True
    redirect_to_forgot: bool = Field(default=True, alias="redirectToForgot")
