# This project was developed with assistance from AI tools.
"""Analytics service for the admin dashboard.

Monthly application volume grouped by creation month and status.
All functions are pure async queries -- no side effects.
"""

import logging

from db import Application
from db.enums import ApplicationStatus
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.analytics import MonthlyVolume, MonthlyVolumeResponse

logger = logging.getLogger(__name__)

MONTH_LABEL_FORMAT = "%b %Y"


async def get_monthly_volume(session: AsyncSession) -> MonthlyVolumeResponse:
    """Application counts per creation month, oldest month first.

    Each month carries the total and a count for every status, zero-filled.
    """
    month = func.date_trunc("month", Application.created_at).label("month")
    stmt = (
        select(month, Application.status, func.count(Application.id))
        .group_by(month, Application.status)
        .order_by(month)
    )
    result = await session.execute(stmt)

    buckets: dict = {}
    for month_start, status, count in result.all():
        bucket = buckets.setdefault(month_start, {s.value: 0 for s in ApplicationStatus})
        bucket[status.value] += count

    months = [
        MonthlyVolume(
            month=month_start.strftime(MONTH_LABEL_FORMAT),
            total=sum(counts.values()),
            by_status=counts,
        )
        for month_start, counts in sorted(buckets.items(), key=lambda item: item[0])
    ]
    return MonthlyVolumeResponse(
        months=months,
        total_applications=sum(m.total for m in months),
    )
