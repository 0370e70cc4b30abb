"""Typed records for VOD entries, their files and the persisted snapshot.

The JSON field names match the document read by the viewer, so the
serializers translate between snake_case attributes and the stored keys
(``fileId``, ``filesFetchedAt``...). Unset optional fields are omitted from
the output rather than written as ``null``.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

Timestamp = Union[int, float, str]

# attribute name -> JSON key
FILE_KEYS = (
    ('file_id', 'fileId'),
    ('file_name', 'fileName'),
    ('file_size_raw', 'fileSizeRaw'),
    ('file_size', 'fileSize'),
    ('download_url', 'downloadUrl'),
    ('content_type', 'contentType'),
    ('metadata', 'metadata'),
)

ENTRY_KEYS = (
    ('id', 'id'),
    ('title', 'title'),
    ('channel', 'channel'),
    ('recorded_at', 'recorded_at'),
    ('created_at', 'created_at'),
    ('duration_seconds', 'duration_seconds'),
    ('twitch_id', 'twitch_id'),
)


def _compact(pairs) -> Dict[str, Any]:
    return {k: v for k, v in pairs if v is not None}


def _as_count(value) -> int:
    # meta.total is informational; the saved total is recomputed on every run
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


@dataclass(frozen=True)
class VodFile:
    """One downloadable file attached to an entry."""
    file_id: Optional[str] = None
    file_name: Optional[str] = None
    file_size_raw: Optional[int] = None
    file_size: Optional[str] = None
    download_url: Optional[str] = None
    content_type: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact((key, getattr(self, attr)) for attr, key in FILE_KEYS)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VodFile':
        return cls(**{attr: data.get(key) for attr, key in FILE_KEYS})


@dataclass(frozen=True)
class Entry:
    """A recorded video as stored in the snapshot.

    ``files`` is ``None`` when file details were never fetched and an empty
    tuple when the server reported no files.
    """
    id: str
    title: Optional[str] = None
    channel: Optional[str] = None
    recorded_at: Optional[Timestamp] = None
    created_at: Optional[Timestamp] = None
    duration_seconds: Optional[float] = None
    twitch_id: Optional[str] = None
    files: Optional[Tuple[VodFile, ...]] = None
    files_fetched_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = _compact((key, getattr(self, attr)) for attr, key in ENTRY_KEYS)
        if self.files is not None:
            out['files'] = [f.to_dict() for f in self.files]
        if self.files_fetched_at is not None:
            out['filesFetchedAt'] = self.files_fetched_at
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entry':
        if data.get('id') is None:
            raise ValueError('stored entry has no id')
        values = {attr: data.get(key) for attr, key in ENTRY_KEYS}
        values['id'] = str(values['id'])
        raw_files = data.get('files')
        if isinstance(raw_files, list):
            values['files'] = tuple(VodFile.from_dict(f) for f in raw_files if isinstance(f, dict))
        values['files_fetched_at'] = data.get('filesFetchedAt')
        return cls(**values)


@dataclass(frozen=True)
class SnapshotMeta:
    generated_at: str
    base_url: str
    target_user: str
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generatedAt': self.generated_at,
            'baseUrl': self.base_url,
            'targetUser': self.target_user,
            'total': self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SnapshotMeta':
        return cls(
            generated_at=str(data.get('generatedAt', '')),
            base_url=str(data.get('baseUrl', '')),
            target_user=str(data.get('targetUser', '')),
            total=_as_count(data.get('total')),
        )


@dataclass(frozen=True)
class Snapshot:
    """The complete persisted state at the end of one run."""
    meta: SnapshotMeta
    vods: List[Entry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'meta': self.meta.to_dict(), 'vods': [v.to_dict() for v in self.vods]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Snapshot':
        """Build a snapshot from a stored document; entries without an id are skipped."""
        if not isinstance(data, dict):
            raise ValueError('snapshot document is not an object')
        vods = data.get('vods') or []
        if not isinstance(vods, list):
            raise ValueError('snapshot vods is not a list')
        entries = []
        for position, raw in enumerate(vods):
            if not isinstance(raw, dict) or raw.get('id') is None:
                logger.warning(f"Snapshot.from_dict: skipping stored entry #{position} without an id")
                continue
            entries.append(Entry.from_dict(raw))
        meta = data.get('meta')
        return cls(meta=SnapshotMeta.from_dict(meta if isinstance(meta, dict) else {}), vods=entries)

    def by_id(self) -> Dict[str, Entry]:
        return {v.id: v for v in self.vods}
