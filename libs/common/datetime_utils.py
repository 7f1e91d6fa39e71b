"""Timezone-aware UTC timestamps for model defaults and ledger expiry.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def days_after(days: int, start: Optional[datetime] = None) -> datetime:
    """``start`` (default: now) moved forward by whole days."""
    return (start or utc_now()) + timedelta(days=days)
