"""Pytest configuration for vault-vod-updater tests."""
import sys
from pathlib import Path
from types import SimpleNamespace
from urllib.parse import urlparse

import pytest

# Add repository root to path so tests can import the top-level modules
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

BASE_URL = 'https://vault.example.org'

NO_JSON = object()


class FakeResponse:
    """Just enough of requests.Response for VaultClient."""

    def __init__(self, status_code=200, payload=None, cookies=None, url=BASE_URL + '/', reason='OK'):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self.cookies = dict(cookies or {})
        self.url = url

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is NO_JSON:
            raise ValueError('Expecting value: line 1 column 1 (char 0)')
        return self._payload


class FakeSession:
    """Records requests and answers them through ``handler(call) -> FakeResponse``."""

    def __init__(self, handler):
        self.handler = handler
        self.calls = []
        self.closed = False

    def _call(self, method, url, params=None, headers=None, json=None):
        call = SimpleNamespace(method=method, url=url, path=urlparse(url).path,
                               params=dict(params or {}), headers=dict(headers or {}), json=json)
        self.calls.append(call)
        return self.handler(call)

    def get(self, url, params=None, headers=None):
        return self._call('GET', url, params=params, headers=headers)

    def post(self, url, json=None, headers=None):
        return self._call('POST', url, json=json, headers=headers)

    def close(self):
        self.closed = True


class FakeVault:
    """In-memory vault server: warm-up cookies, login, paged listing, file_info."""

    def __init__(self, vods=None, files=None, page_size_honoured=True, login_error=None):
        self.vods = list(vods or [])
        self.files = dict(files or {})
        self.page_size_honoured = page_size_honoured
        self.login_error = login_error
        self.session = FakeSession(self.handle)

    @property
    def calls(self):
        return self.session.calls

    def file_info_calls(self):
        return [c.params['ids'] for c in self.calls if c.params.get('get') == 'file_info']

    def listing_calls(self):
        return [c for c in self.calls if 'targetUser' in c.params]

    def handle(self, call):
        if call.path == '/':
            return FakeResponse(cookies={'PHPSESSID': 'abc123', 'XSRF-TOKEN': 'tok%3D%3D'})
        if call.path == '/api/users.php':
            if self.login_error:
                return FakeResponse(payload={'error': self.login_error})
            return FakeResponse(payload={'data': {'ID': 42, 'username': call.json['username']}},
                                cookies={'PHPSESSID': 'authed'})
        if call.path == '/api/twitch_vods.php':
            if call.params.get('get') == 'file_info':
                return FakeResponse(payload={'data': self.files.get(call.params['ids'], [])})
            if not self.page_size_honoured:
                return FakeResponse(payload={'data': self.vods})
            page, limit = int(call.params['page']), int(call.params['limit'])
            return FakeResponse(payload={'data': self.vods[(page - 1) * limit:page * limit]})
        return FakeResponse(status_code=404, payload={}, reason='Not Found')


@pytest.fixture
def base_url():
    return BASE_URL
