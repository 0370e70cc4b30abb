"""Minimal Flask viewer for the vods.json snapshot written by update_vods.py."""
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from flask import Flask, abort, render_template, send_file

from utils.formatting import display_file_name, format_duration, format_epoch, is_video_file
from vault_lib.log import setup_logger
from vault_lib.models import Entry, VodFile
from vault_lib.store import load_snapshot

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_TIMEZONE = 'Europe/Berlin'

logger = logging.getLogger('vault_lib.webui')


def file_view(f: VodFile) -> Dict:
    size = f.file_size or (f"{f.file_size_raw} B" if f.file_size_raw else '')
    meta = f.metadata or {}
    extras = []
    if meta.get('codec_name'):
        extras.append(f"codec: {meta['codec_name']}")
    if meta.get('width') and meta.get('height'):
        extras.append(f"res: {meta['width']}×{meta['height']}")
    return {
        'name': display_file_name(f.file_name, f.download_url),
        'url': f.download_url,
        'size': size,
        'extras': ', '.join(extras),
    }


def entry_view(entry: Entry, tz_name: str = DEFAULT_TIMEZONE) -> Dict:
    """Flatten an entry into the values the page template shows."""
    files = list(entry.files or ())
    # video-like files first; sort is stable so server order is kept otherwise
    files.sort(key=lambda f: not is_video_file(f.file_name or f.download_url))
    return {
        'id': entry.id,
        'title': entry.title or '(untitled)',
        'channel': entry.channel or entry.twitch_id or '',
        'date': format_epoch(entry.created_at, tz_name),
        'length': format_duration(entry.duration_seconds),
        'files': [file_view(f) for f in files],
    }


def create_app(snapshot_path: Optional[Path] = None, tz_name: Optional[str] = None) -> Flask:
    """Build the viewer app.

    Entries are shown in the order stored in the snapshot; the updater has
    already sorted them newest first.
    """
    app = Flask(__name__, template_folder=str(BASE_DIR / 'templates'))
    app.config['SNAPSHOT_PATH'] = Path(snapshot_path or os.environ.get('VODS_JSON_PATH', 'vods.json'))
    app.config['TIMEZONE'] = tz_name or os.environ.get('VAULT_TIMEZONE', DEFAULT_TIMEZONE)

    @app.route('/')
    def index():
        snapshot = load_snapshot(app.config['SNAPSHOT_PATH'])
        vods: List[Dict] = []
        meta = None
        if snapshot is not None:
            meta = snapshot.meta
            vods = [entry_view(v, app.config['TIMEZONE']) for v in snapshot.vods]
        else:
            logger.info(f"index: no snapshot at {app.config['SNAPSHOT_PATH']}")
        return render_template('index.html', vods=vods, meta=meta)

    @app.route('/vods.json')
    def vods_json():
        path = Path(app.config['SNAPSHOT_PATH']).resolve()
        if not path.exists():
            abort(404)
        response = send_file(path, mimetype='application/json', max_age=0)
        response.headers['Cache-Control'] = 'no-cache'
        return response

    return app


def main():
    import argparse
    parser = argparse.ArgumentParser(description='Serve the vods.json snapshot as a web page')
    parser.add_argument('--snapshot', '-s', help='Snapshot path (default: VODS_JSON_PATH or vods.json)')
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=8000)
    args = parser.parse_args()
    setup_logger('vault_lib', log_path=os.environ.get('VAULT_LOG_PATH'))
    app = create_app(Path(args.snapshot) if args.snapshot else None)
    app.run(host=args.host, port=args.port)


if __name__ == '__main__':
    main()
