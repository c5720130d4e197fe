from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Human-readable error message")
    details: str | None = Field(None, description="Extra diagnostic information, when available")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"success": False, "error": "Missing required parameter: bundleId"},
                {"success": False, "error": "buildNumber must be a non-negative integer"},
                {"success": False, "error": "Internal Server Error", "details": "connection refused"},
            ]
        }
    }


class MessageResponse(BaseModel):
    """Outcome message for delete requests."""

    success: bool = Field(..., description="Whether a stored build number was deleted")
    message: str = Field(..., description="Human-readable outcome")
