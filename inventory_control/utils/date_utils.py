# inventory_control/utils/date_utils.py
from datetime import date, datetime, timedelta
from typing import Optional, Union

def now() -> datetime:
    """Current wall-clock time used for every timestamp the services write."""
    return datetime.now()

def add_days(start: Union[date, datetime], days: int) -> Union[date, datetime]:
    """Add days to a date or datetime.

    Args:
        start: Start date or datetime
        days: Number of days to add (may be negative)

    Returns:
        Shifted value of the same type
    """
    return start + timedelta(days=days)

def elapsed_ms(start: datetime, end: Optional[datetime] = None) -> int:
    """Milliseconds between two datetimes (end defaults to now)."""
    end = end or now()
    return int((end - start).total_seconds() * 1000)

def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ''
    return value.strftime('%Y-%m-%d %H:%M:%S')
