from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_YEAR = 31536000
SECONDS_PER_MONTH = 2592000
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def time_since(seconds: float) -> str:
    """Human readable elapsed time, using the largest unit that fits more than once"""
    seconds = int(seconds // 1)

    if seconds / SECONDS_PER_YEAR > 1:
        return f"{seconds // SECONDS_PER_YEAR} years"
    if seconds / SECONDS_PER_MONTH > 1:
        return f"{seconds // SECONDS_PER_MONTH} months"
    if seconds / SECONDS_PER_DAY > 1:
        return f"{seconds // SECONDS_PER_DAY} days"
    if seconds / SECONDS_PER_HOUR > 1:
        return _plural(seconds // SECONDS_PER_HOUR, "hour")
    if seconds / SECONDS_PER_MINUTE > 1:
        return _plural(seconds // SECONDS_PER_MINUTE, "minute")
    return f"{seconds} seconds"


def submitting_message(submit_interval: float) -> str:
    return f"Submitting weather report every {submit_interval:g} minutes"


def last_submission_message(last_success: Optional[datetime], now: Optional[datetime] = None) -> Optional[str]:
    if last_success is None:
        return None
    if now is None:
        now = datetime.now(timezone.utc)
    since = time_since((now - last_success).total_seconds())
    return f"Last successful submission was {since} ago"
