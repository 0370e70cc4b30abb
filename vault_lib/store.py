"""Load and save the persisted snapshot document (``vods.json``)."""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Union

from utils.formatting import utc_now_iso
from vault_lib.models import Entry, Snapshot, SnapshotMeta

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_snapshot(path: PathLike) -> Optional[Snapshot]:
    """Return the saved snapshot, or None when it is missing or unreadable.

    A corrupt file is treated like a first run: the caller starts fresh.
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return Snapshot.from_dict(data)
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"load_snapshot: ignoring unreadable snapshot {path}: {e}")
        return None


def save_snapshot(path: PathLike, snapshot: Snapshot) -> None:
    """Write ``snapshot`` as indented JSON, replacing the file in one step."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False) + '\n'
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix='.tmp', dir=str(path.parent))
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def build_snapshot(entries: Iterable[Entry], base_url: str, target_user: str,
                   generated_at: Optional[str] = None) -> Snapshot:
    vods = list(entries)
    meta = SnapshotMeta(
        generated_at=generated_at or utc_now_iso(),
        base_url=base_url,
        target_user=target_user,
        total=len(vods),
    )
    return Snapshot(meta=meta, vods=vods)
