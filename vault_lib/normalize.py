"""Mapping of raw vault API records into typed entries and files.

The API has used different key names for the same value over time, so each
field lists its candidate keys in priority order. The first key whose value
is not null wins.
"""
from typing import Any, Dict, Iterable, List, Optional, Sequence

from utils.formatting import format_size
from vault_lib.models import Entry, VodFile

ID_KEYS = ('ID', 'id', 'vod_id', 'vodId')

ENTRY_FIELDS = {
    'title': ('title', 'name'),
    'channel': ('channel', 'twitch_channel'),
    'created_at': ('created_at', 'twitch_createdAt'),
    'recorded_at': ('recorded_at', 'recordedAt'),
    'duration_seconds': ('twitch_duration', 'duration'),
    'twitch_id': ('twitch_ID', 'twitch_id'),
}

FILE_FIELDS = {
    'file_id': ('fileId', 'id', 'versionId'),
    'file_name': ('fileName', 'name'),
    'download_url': ('downloadUrl', 'url'),
    'content_type': ('contentType', 'mimeType'),
}
FILE_SIZE_RAW_KEYS = ('fileSizeRaw', 'size')


def first_present(raw: Dict[str, Any], keys: Sequence[str]) -> Any:
    """Return the value of the first key in ``keys`` that is set in ``raw``."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _as_number(value: Any):
    # bool is an int subclass but never a byte count or duration
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            num = float(value)
        except ValueError:
            return None
        return int(num) if num.is_integer() else num
    return None


def normalize_vod(raw: Dict[str, Any]) -> Optional[Entry]:
    """Map one listing record to an ``Entry``; ``None`` if it has no id.

    File details are never filled in here: they come from the separate
    file_info request.
    """
    if not isinstance(raw, dict):
        return None
    vod_id = first_present(raw, ID_KEYS)
    if vod_id is None or vod_id == '':
        return None

    values = {name: first_present(raw, keys) for name, keys in ENTRY_FIELDS.items()}
    return Entry(
        id=str(vod_id),
        title=_as_str(values['title']),
        channel=_as_str(values['channel']),
        created_at=values['created_at'],
        recorded_at=values['recorded_at'],
        duration_seconds=_as_number(values['duration_seconds']),
        twitch_id=_as_str(values['twitch_id']),
    )


def normalize_vods(records: Iterable[Any]) -> List[Entry]:
    """Normalize a page of listing records, dropping those without an id."""
    out = []
    for raw in records:
        entry = normalize_vod(raw)
        if entry is not None:
            out.append(entry)
    return out


def normalize_file(raw: Dict[str, Any]) -> VodFile:
    """Map one file_info record to a ``VodFile``.

    Only numeric sizes are accepted as the raw byte count. When the server
    sends no human-readable size, it is derived from the raw count.
    """
    values = {name: first_present(raw, keys) for name, keys in FILE_FIELDS.items()}

    size_raw = None
    for key in FILE_SIZE_RAW_KEYS:
        candidate = raw.get(key)
        if isinstance(candidate, (int, float)) and not isinstance(candidate, bool):
            size_raw = int(candidate)
            break

    file_size = raw.get('fileSize')
    if file_size is None:
        file_size = format_size(size_raw)

    metadata = raw.get('metadata')
    return VodFile(
        file_id=_as_str(values['file_id']),
        file_name=_as_str(values['file_name']),
        file_size_raw=size_raw,
        file_size=_as_str(file_size),
        download_url=_as_str(values['download_url']),
        content_type=_as_str(values['content_type']),
        metadata=dict(metadata) if isinstance(metadata, dict) else None,
    )


def normalize_files(records: Iterable[Any]) -> List[VodFile]:
    return [normalize_file(r) for r in records if isinstance(r, dict)]
