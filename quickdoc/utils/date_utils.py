"""Date and time utility functions."""

import re
from datetime import datetime, timedelta, UTC
from typing import Optional


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def parse_ttl(ttl_str: str) -> int:
    """Parse a TTL string into seconds."""
    if not ttl_str:
        return 0

    # Handle numeric strings (assume seconds), including -1 for "permanent"
    if ttl_str.lstrip("-").isdigit():
        return int(ttl_str)

    # Parse human-readable formats like "1h", "30m", "2d"
    pattern = r'^(\d+)([smhdw])$'
    match = re.match(pattern, ttl_str.lower())

    if not match:
        raise ValueError(f"Invalid TTL format: {ttl_str}")

    value, unit = match.groups()
    value = int(value)

    multipliers = {
        's': 1,           # seconds
        'm': 60,          # minutes
        'h': 3600,        # hours
        'd': 86400,       # days
        'w': 604800,      # weeks
    }

    return value * multipliers[unit]


def calculate_expiry(
    ttl_seconds: float,
    base_time: Optional[datetime] = None,
) -> datetime:
    """Calculate expiry time from TTL."""
    if base_time is None:
        base_time = utcnow()

    return base_time + timedelta(seconds=ttl_seconds)


def is_expired(
    expires_at: Optional[datetime],
    current_time: Optional[datetime] = None,
) -> bool:
    """Check if something has expired."""
    if expires_at is None:
        return False

    if current_time is None:
        current_time = utcnow()

    return current_time >= expires_at


def time_until_expiry(
    expires_at: Optional[datetime],
    current_time: Optional[datetime] = None,
) -> Optional[int]:
    """Get seconds until expiry, or None if no expiry."""
    if expires_at is None:
        return None

    if current_time is None:
        current_time = utcnow()

    delta = expires_at - current_time
    return max(0, int(delta.total_seconds()))


def format_duration(seconds: int) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        remaining_seconds = seconds % 60
        if remaining_seconds == 0:
            return f"{minutes}m"
        else:
            return f"{minutes}m {remaining_seconds}s"
    elif seconds < 86400:
        hours = seconds // 3600
        remaining_minutes = (seconds % 3600) // 60
        if remaining_minutes == 0:
            return f"{hours}h"
        else:
            return f"{hours}h {remaining_minutes}m"
    else:
        days = seconds // 86400
        remaining_hours = (seconds % 86400) // 3600
        if remaining_hours == 0:
            return f"{days}d"
        else:
            return f"{days}d {remaining_hours}h"
