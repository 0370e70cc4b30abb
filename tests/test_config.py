import json
from pathlib import Path

import pytest

from vault_lib.config import load_config
from vault_lib.errors import ConfigError

REQUIRED = {
    'VAULT_BASE_URL': 'https://vault.example.org/',
    'VAULT_USERNAME': 'alice',
    'VAULT_PASSWORD': 'secret',
}


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config(dict(REQUIRED))
    assert cfg.base_url == 'https://vault.example.org'
    assert cfg.totp is None
    assert cfg.target_user is None
    assert cfg.json_path == Path('vods.json')
    assert cfg.page_limit == 100
    assert cfg.log_path is None


@pytest.mark.parametrize('missing', ['VAULT_BASE_URL', 'VAULT_USERNAME', 'VAULT_PASSWORD'])
def test_missing_required_value(missing):
    env = dict(REQUIRED)
    env[missing] = '  '
    with pytest.raises(ConfigError, match=missing):
        load_config(env)


def test_optional_values():
    env = dict(REQUIRED, VAULT_TOTP='123456', VAULT_TARGET_USER='bob',
               VODS_JSON_PATH='public/vods.json', PAGE_LIMIT='25', VAULT_LOG_PATH='logs/update.log')
    cfg = load_config(env)
    assert cfg.totp == '123456'
    assert cfg.target_user == 'bob'
    assert cfg.json_path == Path('public/vods.json')
    assert cfg.page_limit == 25
    assert cfg.log_path == Path('logs/update.log')


@pytest.mark.parametrize('value', ['0', '-5', 'many'])
def test_invalid_page_limit(value):
    with pytest.raises(ConfigError, match='PAGE_LIMIT'):
        load_config(dict(REQUIRED, PAGE_LIMIT=value))


def test_json_defaults_are_overridden_by_env(tmp_path):
    cfg_path = tmp_path / 'vault_config.json'
    cfg_path.write_text(json.dumps({'defaults': {
        '_comment': 'ignored',
        'page_limit': 50,
        'vods_json_path': 'site/vods.json',
        'target_user': 'carol',
    }}), encoding='utf-8')

    cfg = load_config(dict(REQUIRED), config_path=cfg_path)
    assert cfg.page_limit == 50
    assert cfg.json_path == Path('site/vods.json')
    assert cfg.target_user == 'carol'

    cfg = load_config(dict(REQUIRED, PAGE_LIMIT='10', VAULT_TARGET_USER='dave'), config_path=cfg_path)
    assert cfg.page_limit == 10
    assert cfg.target_user == 'dave'


def test_unreadable_json_config(tmp_path):
    cfg_path = tmp_path / 'vault_config.json'
    cfg_path.write_text('{nope', encoding='utf-8')
    with pytest.raises(ConfigError):
        load_config(dict(REQUIRED), config_path=cfg_path)


def test_env_file_is_loaded_without_overriding(tmp_path, monkeypatch):
    env_file = tmp_path / '.env'
    env_file.write_text(
        'VAULT_BASE_URL=https://from-file.example.org\n'
        'VAULT_USERNAME=file-user\n'
        'VAULT_PASSWORD=file-pass\n',
        encoding='utf-8',
    )
    for key in ('VAULT_BASE_URL', 'VAULT_PASSWORD', 'VAULT_TOTP', 'VAULT_TARGET_USER',
                'VODS_JSON_PATH', 'PAGE_LIMIT', 'VAULT_LOG_PATH'):
        # set first so the values load_dotenv writes are removed again afterwards
        monkeypatch.setenv(key, 'placeholder')
        monkeypatch.delenv(key)
    monkeypatch.setenv('VAULT_USERNAME', 'real-user')
    monkeypatch.chdir(tmp_path)

    cfg = load_config(env_file=env_file)
    assert cfg.base_url == 'https://from-file.example.org'
    assert cfg.username == 'real-user'
    assert 'file-pass' not in repr(cfg)
