# This project was developed with assistance from AI tools.
"""Problem Details body returned by every error response (RFC 7807)."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    type: str = Field(default="about:blank", description="Problem type URI.")
    title: str = Field(description="Standard reason phrase for the status code.")
    status: int
    detail: str = Field(default="", description="What went wrong with this request.")
    request_id: str = Field(
        default="",
        description="Echo of X-Request-ID, or a fresh UUID when the caller sent none.",
    )
    instance: str = Field(default="", description="Request path that failed.")
