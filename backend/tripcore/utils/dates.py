"""
GPS epoch conversions and timestamp formatting.

Devices report time as seconds since 2010-01-01 00:00:00 in the vehicle's
local time zone. Datetimes handled here are naive local times.
"""

from datetime import date, datetime, timedelta


GPS_EPOCH = datetime(2010, 1, 1, 0, 0, 0)

STANDARD_FORMAT = "%d-%m-%Y %H:%M:%S"
DATE_ONLY_FORMAT = "%d-%m-%Y"
ISO_PATH_FORMAT = "%Y-%m-%dT%H:%M:%S"


def from_gps_seconds(gps_time: int) -> datetime:
    return GPS_EPOCH + timedelta(seconds=gps_time)


def to_gps_seconds(moment: datetime) -> int:
    """Whole seconds between the GPS epoch and a naive local datetime (floored)."""
    delta = moment - GPS_EPOCH
    return delta.days * 86_400 + delta.seconds


def to_gps_seconds_ceil(moment: datetime) -> int:
    """Like to_gps_seconds, but rounds a fractional second up."""
    seconds = to_gps_seconds(moment)
    return seconds + 1 if moment.microsecond else seconds


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(STANDARD_FORMAT)


def format_gps_time(gps_time: int) -> str:
    return format_timestamp(from_gps_seconds(gps_time))


def parse_date(value: str) -> date:
    """Parse a dd-mm-YYYY calendar date."""
    return datetime.strptime(value, DATE_ONLY_FORMAT).date()


def day_window(day: date) -> tuple[datetime, datetime]:
    """First and last second of a local calendar day."""
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1) - timedelta(seconds=1)


def format_hhmmss(total_seconds: int) -> str:
    """Render a duration as HH:MM:SS; hours are not wrapped at 24."""
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def to_local_naive(moment: datetime) -> datetime:
    """Drop timezone info, converting aware datetimes to local time first."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)
