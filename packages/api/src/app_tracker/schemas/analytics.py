# This project was developed with assistance from AI tools.
"""Analytics response schemas for the admin dashboard."""

from pydantic import BaseModel, Field


class MonthlyVolume(BaseModel):
    """Applications created in one calendar month."""

    month: str = Field(..., description="Month label, e.g. 'Jan 2026'")
    total: int
    by_status: dict[str, int] = Field(
        ..., description="Count per status, every status present"
    )


class MonthlyVolumeResponse(BaseModel):
    """Monthly volume in ascending month order."""

    months: list[MonthlyVolume]
    total_applications: int
