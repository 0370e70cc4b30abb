"""Authenticated HTTP client for the vault API.

The vault expects a browser-like handshake: a warm-up GET that sets the
session and XSRF-TOKEN cookies, then a JSON login POST, then authenticated
GETs. Every request echoes the cookies and the anti-forgery token back.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urlparse

import requests

from vault_lib.errors import AuthError, FetchError, SessionError, TotpRequiredError
from vault_lib.normalize import ID_KEYS, first_present

XSRF_COOKIE = 'XSRF-TOKEN'
# Servers disagree on the header name; both are sent.
XSRF_HEADERS = ('X-XSRF-TOKEN', 'X-CSRF-Token')

USERS_ENDPOINT = '/api/users.php'
VODS_ENDPOINT = '/api/twitch_vods.php'

DEFAULT_PAGE_LIMIT = 100


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


@dataclass
class Identity:
    id: str
    username: str


@dataclass
class SessionState:
    """Cookie jar and anti-forgery token for one login session."""
    origin: str
    cookies: Dict[str, str] = field(default_factory=dict)

    def update_from(self, response) -> None:
        """Store cookies set by ``response`` if it came from our origin."""
        url = getattr(response, 'url', None)
        if url and origin_of(url) != self.origin:
            return
        jar = getattr(response, 'cookies', None) or {}
        for name, value in jar.items():
            self.cookies[name] = value

    @property
    def xsrf_token(self) -> Optional[str]:
        value = self.cookies.get(XSRF_COOKIE)
        if not value:
            return None
        # cookie value is URL-encoded, the header must carry it decoded
        return unquote(value)

    def cookie_header(self) -> Optional[str]:
        if not self.cookies:
            return None
        return '; '.join(f"{k}={v}" for k, v in self.cookies.items())

    def headers(self, json_body: bool = False) -> Dict[str, str]:
        headers = {
            'Accept': 'application/json, text/plain, */*',
            'Origin': self.origin,
            'Referer': f"{self.origin}/",
            'X-Requested-With': 'XMLHttpRequest',
        }
        token = self.xsrf_token
        if token:
            for name in XSRF_HEADERS:
                headers[name] = token
        cookie = self.cookie_header()
        if cookie:
            headers['Cookie'] = cookie
        if json_body:
            headers['Content-Type'] = 'application/json'
        return headers


class VaultClient:
    """Client for the vault's users and twitch_vods endpoints.

    Calls must happen in order: ``warmup()``, ``login()``, then listing and
    file_info requests. Requests are issued one at a time.
    """

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 page_limit: int = DEFAULT_PAGE_LIMIT, logger: Optional[logging.Logger] = None):
        self.base_url = base_url.rstrip('/')
        self.session = session if session is not None else requests.Session()
        self.page_limit = page_limit
        self.state = SessionState(origin=origin_of(self.base_url))
        self.logger = logger or logging.getLogger(__name__)

    def close(self) -> None:
        close = getattr(self.session, 'close', None)
        if close:
            close()

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None):
        response = self.session.get(url, params=params, headers=self.state.headers())
        self.state.update_from(response)
        return response

    def _post_json(self, url: str, body: Dict[str, Any]):
        response = self.session.post(url, json=body, headers=self.state.headers(json_body=True))
        self.state.update_from(response)
        return response

    def warmup(self) -> None:
        """GET the site root to pick up the session and XSRF cookies."""
        try:
            response = self._get(f"{self.base_url}/")
        except requests.RequestException as exc:
            raise SessionError(f"Warm-up failed: {exc}") from exc
        if not response.ok:
            raise SessionError(f"Warm-up failed: {response.status_code} {response.reason}")
        self.logger.debug(f"warmup: received cookies {sorted(self.state.cookies)}")

    def login(self, username: str, password: str, totp: Optional[str] = None) -> Identity:
        """Log in and return the authenticated identity.

        Raises:
            TotpRequiredError: the server asked for a one-time-password, either
                because none was given or because the given one was refused.
            AuthError: any other HTTP, server-reported or shape failure.
        """
        body = {'action': 'login', 'username': username, 'password': password}
        if totp:
            body['totp'] = totp
        try:
            response = self._post_json(f"{self.base_url}{USERS_ENDPOINT}", body)
        except requests.RequestException as exc:
            raise AuthError(f"Login request failed: {exc}") from exc

        if not response.ok:
            raise AuthError(f"Login HTTP error: {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthError('Login: response is not valid JSON') from exc
        if not isinstance(payload, dict):
            raise AuthError('Login: unexpected response shape')

        error = payload.get('error')
        if error == 'TOTP_REQUIRED':
            if totp:
                raise TotpRequiredError('Login requires TOTP; the supplied VAULT_TOTP was not accepted.')
            raise TotpRequiredError('Login requires TOTP; set VAULT_TOTP and retry.')
        if error:
            raise AuthError(f"Login error: {error}")

        data = payload.get('data')
        if not isinstance(data, dict):
            raise AuthError('Login: missing data')
        user_id = data.get('ID')
        name = data.get('username')
        if user_id is None or not name:
            raise AuthError('Login: response is missing ID or username')
        return Identity(id=str(user_id), username=str(name))

    def _get_json(self, url: str, params: Dict[str, Any], what: str):
        try:
            response = self._get(url, params=params)
        except requests.RequestException as exc:
            raise FetchError(f"{what} failed: {exc}") from exc
        if not response.ok:
            raise FetchError(f"{what} failed: {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(f"{what}: response is not valid JSON") from exc

    def list_page(self, target_user: str, page: int) -> Optional[List[Any]]:
        """Fetch one listing page; ``None`` when the reply has no ``data`` array."""
        params = {'targetUser': target_user, 'page': page, 'limit': self.page_limit}
        payload = self._get_json(f"{self.base_url}{VODS_ENDPOINT}", params, 'VOD list')
        data = payload.get('data') if isinstance(payload, dict) else None
        return data if isinstance(data, list) else None

    def fetch_listing(self, target_user: str) -> List[Any]:
        """Fetch every listing page for ``target_user`` and return the raw records.

        Paging stops on an empty or malformed page, after a page shorter than
        ``page_limit``, or when a later page brings no ids not already seen
        (a server that ignores paging keeps returning the same page).
        """
        records: List[Any] = []
        seen_ids = set()
        page = 1
        while True:
            items = self.list_page(target_user, page)
            if not items:
                break
            page_ids = {str(first_present(r, ID_KEYS)) for r in items
                        if isinstance(r, dict) and first_present(r, ID_KEYS) is not None}
            if page > 1 and (not page_ids or page_ids <= seen_ids):
                self.logger.warning(f"fetch_listing: page {page} brings no new ids; stopping")
                break
            seen_ids |= page_ids
            records.extend(items)
            self.logger.info(f"fetch_listing: page {page}: {len(items)} VODs")
            if len(items) < self.page_limit:
                break
            page += 1
        return records

    def fetch_details(self, entry_id: str) -> List[Any]:
        """Fetch file_info records for one entry (under ``data`` or ``files``)."""
        params = {'get': 'file_info', 'ids': entry_id}
        payload = self._get_json(f"{self.base_url}{VODS_ENDPOINT}", params, 'file_info')
        if not isinstance(payload, dict):
            return []
        files = payload.get('data')
        if files is None:
            files = payload.get('files')
        return files if isinstance(files, list) else []
