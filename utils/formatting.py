"""Display helpers shared by the normalizer and the snapshot viewer."""
import re
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Optional, Union
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

SIZE_UNITS = ['B', 'KB', 'MB', 'GB', 'TB']

VIDEO_FILE_RE = re.compile(r'\.(mp4|mkv|m3u8|mov|ts|webm)\b', re.IGNORECASE)


def format_size(num_bytes: Optional[Union[int, float]]) -> Optional[str]:
    """Return a human-readable byte count such as ``'1.5 GB'``.

    Values below 1 KB are shown as whole bytes (``'512 B'``).
    """
    if num_bytes is None:
        return None
    size = float(num_bytes)
    for unit in SIZE_UNITS:
        if abs(size) < 1024 or unit == SIZE_UNITS[-1]:
            if unit == 'B':
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return None


def format_duration(seconds) -> str:
    """Format a duration in seconds as ``'2h 5m'`` or ``'42m'``."""
    if seconds is None:
        return ''
    try:
        mins = round(float(seconds) / 60)
    except (TypeError, ValueError):
        return ''
    hours, rest = divmod(mins, 60)
    return f"{hours}h {rest}m" if hours > 0 else f"{rest}m"


def format_epoch(value, tz_name: str = 'Europe/Berlin') -> str:
    """Format epoch seconds as a local date/time string; '' when not numeric or out of range."""
    if value is None or value == '':
        return ''
    try:
        ts = float(value)
    except (TypeError, ValueError):
        return ''
    try:
        when = datetime.fromtimestamp(ts, tz=timezone.utc).astimezone(ZoneInfo(tz_name))
    except (OverflowError, ValueError, OSError):
        # millisecond epochs and other out-of-range values
        return ''
    return when.strftime('%d.%m.%Y, %H:%M')


def is_video_file(name: Optional[str]) -> bool:
    return bool(name and VIDEO_FILE_RE.search(name))


def display_file_name(file_name: Optional[str], download_url: Optional[str]) -> str:
    """Name shown for a file: its own name, else the URL's last path segment."""
    if file_name:
        return file_name
    if download_url:
        tail = PurePosixPath(urlparse(download_url).path).name
        if tail:
            return tail
    return '(file)'


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a 'Z' suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(value) -> Optional[float]:
    """Convert epoch numbers, numeric strings or ISO-8601 strings to epoch seconds.

    Naive ISO strings are taken as UTC. Returns None when nothing parses.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        when = datetime.fromisoformat(text)
    except ValueError:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.timestamp()
