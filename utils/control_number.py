"""Control number generation for Direct Hire applications."""

from datetime import datetime

CONTROL_NUMBER_PREFIX = "DHPSW-ROIVA"


def format_control_number(
    now: datetime,
    monthly_count: int,
    yearly_count: int,
    prefix: str = CONTROL_NUMBER_PREFIX,
) -> str:
    """
    Build a control number from the creation date and running counts.

    Counts are the 1-based sequence numbers of the new application within its
    month and year (existing count + 1).

    Examples:
        >>> format_control_number(datetime(2025, 3, 7), 4, 58)
        'DHPSW-ROIVA-2025-0307-004-058'
    """
    if monthly_count < 1 or yearly_count < 1:
        raise ValueError("Control number counts start at 1")
    return f"{prefix}-{now.year}-{now.month:02d}{now.day:02d}-{monthly_count:03d}-{yearly_count:03d}"


def month_bounds(now: datetime) -> tuple[str, str]:
    """ISO date bounds [start, next month start) for the month containing ``now``."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start.date().isoformat(), end.date().isoformat()


def year_bounds(now: datetime) -> tuple[str, str]:
    """ISO date bounds [start, next year start) for the year containing ``now``."""
    return f"{now.year:04d}-01-01", f"{now.year + 1:04d}-01-01"
