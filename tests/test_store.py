import json

from vault_lib.models import Entry, VodFile
from vault_lib.store import build_snapshot, load_snapshot, save_snapshot


def test_load_missing_file_returns_none(tmp_path):
    assert load_snapshot(tmp_path / 'vods.json') is None


def test_load_corrupt_file_returns_none(tmp_path):
    path = tmp_path / 'vods.json'
    path.write_text('{"meta": {', encoding='utf-8')
    assert load_snapshot(path) is None


def test_load_wrong_shape_returns_none(tmp_path):
    path = tmp_path / 'vods.json'
    path.write_text('[1, 2, 3]', encoding='utf-8')
    assert load_snapshot(path) is None
    path.write_text(json.dumps({'vods': {'id': '1'}}), encoding='utf-8')
    assert load_snapshot(path) is None


def test_load_keeps_good_entries_next_to_malformed_ones(tmp_path, caplog):
    path = tmp_path / 'vods.json'
    path.write_text(json.dumps({
        'meta': {'total': 'n/a'},
        'vods': [
            {'id': '1', 'files': [{'fileName': 'a.mp4'}], 'filesFetchedAt': 'x'},
            {'title': 'legacy entry without id'},
            'garbage',
            {'id': 2, 'title': 'second'},
        ],
    }), encoding='utf-8')

    snapshot = load_snapshot(path)

    assert snapshot is not None
    assert snapshot.meta.total == 0
    assert [v.id for v in snapshot.vods] == ['1', '2']
    assert snapshot.vods[0].files == (VodFile(file_name='a.mp4'),)
    assert snapshot.vods[0].files_fetched_at == 'x'
    assert 'without an id' in caplog.text


def test_save_writes_indented_document_and_loads_back(tmp_path):
    path = tmp_path / 'out' / 'vods.json'
    entry = Entry(
        id='7', title='Nacht', created_at=1700000000, duration_seconds=60,
        files=(VodFile(file_name='a.mp4', file_size_raw=1, file_size='1 B', metadata={'codec_name': 'h264'}),),
        files_fetched_at='2026-01-01T00:00:00.000Z',
    )
    snapshot = build_snapshot([entry], 'https://vault.example.org', 'bob', generated_at='2026-01-02T00:00:00.000Z')

    save_snapshot(path, snapshot)

    text = path.read_text(encoding='utf-8')
    assert text.startswith('{\n  "meta": {\n')
    data = json.loads(text)
    assert data['meta'] == {
        'generatedAt': '2026-01-02T00:00:00.000Z',
        'baseUrl': 'https://vault.example.org',
        'targetUser': 'bob',
        'total': 1,
    }
    stored = data['vods'][0]
    assert stored['filesFetchedAt'] == '2026-01-01T00:00:00.000Z'
    assert stored['files'][0] == {'fileName': 'a.mp4', 'fileSizeRaw': 1, 'fileSize': '1 B', 'metadata': {'codec_name': 'h264'}}
    # unset optional fields are omitted rather than written as null
    assert 'channel' not in stored
    assert load_snapshot(path) == snapshot


def test_save_replaces_previous_content_without_leftovers(tmp_path):
    path = tmp_path / 'vods.json'
    path.write_text('x' * 10000, encoding='utf-8')
    save_snapshot(path, build_snapshot([], 'https://vault.example.org', 'bob', generated_at='t'))
    assert json.loads(path.read_text(encoding='utf-8'))['vods'] == []
    assert [p.name for p in tmp_path.iterdir()] == ['vods.json']
