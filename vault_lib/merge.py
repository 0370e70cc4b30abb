"""Incremental merge of a fresh VOD listing with the previously saved snapshot.

File details are the expensive part of a run (one request per entry), so they
are only fetched when the prior snapshot cannot supply them:

1. the id was never seen before;
2. the prior entry has no files or an empty file list;
3. the prior entry has files but no ``filesFetchedAt`` timestamp.

Otherwise the prior files and timestamp are carried forward and only the
descriptive fields are refreshed from the listing.
"""
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from utils.formatting import parse_timestamp, utc_now_iso
from vault_lib.models import Entry, Snapshot, VodFile

OVERLAY_FIELDS = ('title', 'channel', 'recorded_at', 'created_at', 'duration_seconds', 'twitch_id')

# Entries with no usable timestamp sort as the epoch, i.e. last.
MISSING_TIMESTAMP = 0.0

logger = logging.getLogger(__name__)


def needs_file_info(prior: Optional[Entry]) -> bool:
    """Return True when the files of ``prior`` must be (re)fetched."""
    if prior is None:
        return True
    if not prior.files:
        return True
    if not prior.files_fetched_at:
        return True
    return False


def merge_entry(prior: Optional[Entry], fresh: Entry,
                files: Optional[Sequence[VodFile]] = None,
                fetched_at: Optional[str] = None) -> Entry:
    """Overlay ``fresh`` on ``prior``.

    Descriptive fields come from ``fresh`` unless it leaves them unset. When
    ``files`` is given it replaces the prior file list and ``fetched_at``
    becomes the new ``filesFetchedAt``; otherwise both are carried forward
    from ``prior``.
    """
    merged = fresh
    if prior is not None:
        overlay = {}
        for name in OVERLAY_FIELDS:
            if getattr(fresh, name) is None:
                overlay[name] = getattr(prior, name)
        merged = replace(fresh, **overlay)

    if files is not None:
        return replace(merged, files=tuple(files), files_fetched_at=fetched_at)
    if prior is not None:
        return replace(merged, files=prior.files, files_fetched_at=prior.files_fetched_at)
    return merged


def sort_key(entry: Entry) -> float:
    value = entry.recorded_at if entry.recorded_at is not None else entry.created_at
    ts = parse_timestamp(value)
    if ts is None or not math.isfinite(ts):
        return MISSING_TIMESTAMP
    return ts


def sort_entries(entries: Iterable[Entry]) -> List[Entry]:
    """Newest first by ``recorded_at``, falling back to ``created_at``."""
    return sorted(entries, key=sort_key, reverse=True)


@dataclass
class MergeResult:
    vods: List[Entry]
    new_count: int = 0
    refreshed_count: int = 0
    fetched_ids: List[str] = field(default_factory=list)


def merge_listing(listing: Iterable[Entry], prior: Optional[Snapshot],
                  fetch_files: Callable[[str], Sequence[VodFile]],
                  clock: Callable[[], str] = utc_now_iso) -> MergeResult:
    """Merge the normalized ``listing`` into ``prior`` and return sorted entries.

    ``fetch_files`` is called once per entry that needs file details, in
    listing order. Prior entries missing from the listing are kept as they are.
    """
    merged: Dict[str, Entry] = prior.by_id() if prior is not None else {}
    prior_ids = set(merged)
    handled = set()
    result = MergeResult(vods=[])

    for fresh in listing:
        old = merged.get(fresh.id)
        if fresh.id in handled:
            # duplicate within this listing: files were settled on first sight
            merged[fresh.id] = merge_entry(old, fresh)
            continue
        handled.add(fresh.id)

        if needs_file_info(old):
            if fresh.id in prior_ids:
                result.refreshed_count += 1
                logger.info(f"merge_listing: refreshing missing/stale files for {fresh.id}")
            else:
                result.new_count += 1
                logger.info(f"merge_listing: new VOD {fresh.id}")
            files = list(fetch_files(fresh.id))
            result.fetched_ids.append(fresh.id)
            merged[fresh.id] = merge_entry(old, fresh, files=files, fetched_at=clock())
        else:
            merged[fresh.id] = merge_entry(old, fresh)

    result.vods = sort_entries(merged.values())
    return result
