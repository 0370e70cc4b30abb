"""Runtime configuration for the vault updater.

Values come from the environment (optionally seeded from a ``.env`` file).
An optional ``vault_config.json`` may supply defaults for the optional keys::

    {"defaults": {"page_limit": 50, "vods_json_path": "public/vods.json"}}

Environment values win over the JSON defaults.
"""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from vault_lib.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_JSON_PATH = 'vods.json'
DEFAULT_PAGE_LIMIT = 100
CONFIG_FILE_NAME = 'vault_config.json'

REQUIRED_ENV = ('VAULT_BASE_URL', 'VAULT_USERNAME', 'VAULT_PASSWORD')


@dataclass(frozen=True)
class VaultConfig:
    base_url: str
    username: str
    password: str
    totp: Optional[str] = None
    target_user: Optional[str] = None
    json_path: Path = Path(DEFAULT_JSON_PATH)
    page_limit: int = DEFAULT_PAGE_LIMIT
    log_path: Optional[Path] = None

    def __repr__(self) -> str:
        # keep credentials out of logs and tracebacks
        return (f"VaultConfig(base_url={self.base_url!r}, username={self.username!r}, "
                f"target_user={self.target_user!r}, json_path={str(self.json_path)!r}, "
                f"page_limit={self.page_limit})")


def _read_json_defaults(config_path: Optional[Path]) -> Dict:
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILE_NAME
        if not config_path.exists():
            return {}
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            cfg = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    defaults = cfg.get('defaults', {}) if isinstance(cfg, dict) else {}
    if not isinstance(defaults, dict):
        raise ConfigError(f"'defaults' in {config_path} must be an object")
    # ignore comment keys such as "_comment"
    return {k: v for k, v in defaults.items() if not str(k).startswith('_')}


def _parse_page_limit(raw) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ConfigError(f"PAGE_LIMIT must be a positive integer, got {raw!r}") from None
    if value < 1:
        raise ConfigError(f"PAGE_LIMIT must be a positive integer, got {raw!r}")
    return value


def load_config(environ: Optional[Mapping[str, str]] = None, env_file: Optional[Path] = None,
                config_path: Optional[Path] = None) -> VaultConfig:
    """Read and validate configuration; raises ConfigError before any network use.

    When ``environ`` is None the process environment is used, after loading
    ``env_file`` (default ``./.env``) without overriding variables already set.
    """
    if environ is None:
        load_dotenv(env_file or Path.cwd() / '.env', override=False)
        environ = os.environ

    def env(key: str) -> Optional[str]:
        value = environ.get(key)
        if value is None:
            return None
        value = value.strip()
        return value or None

    missing = [k for k in REQUIRED_ENV if not env(k)]
    if missing:
        raise ConfigError(f"Missing required env: {', '.join(missing)}")

    defaults = _read_json_defaults(config_path)

    page_limit = env('PAGE_LIMIT') or defaults.get('page_limit', DEFAULT_PAGE_LIMIT)
    json_path = env('VODS_JSON_PATH') or defaults.get('vods_json_path') or DEFAULT_JSON_PATH
    log_path = env('VAULT_LOG_PATH') or defaults.get('log_path')

    config = VaultConfig(
        base_url=env('VAULT_BASE_URL').rstrip('/'),
        username=env('VAULT_USERNAME'),
        password=env('VAULT_PASSWORD'),
        totp=env('VAULT_TOTP'),
        target_user=env('VAULT_TARGET_USER') or defaults.get('target_user'),
        json_path=Path(json_path).expanduser(),
        page_limit=_parse_page_limit(page_limit),
        log_path=Path(log_path).expanduser() if log_path else None,
    )
    logger.debug(f"load_config: {config!r}")
    return config
