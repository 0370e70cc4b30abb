# Utilities package for the vault VOD updater
from .formatting import format_size, format_duration, format_epoch, is_video_file, display_file_name, parse_timestamp, utc_now_iso

__all__ = ["format_size", "format_duration", "format_epoch", "is_video_file", "display_file_name", "parse_timestamp", "utc_now_iso"]
