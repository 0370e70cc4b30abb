#!/usr/bin/env python3
"""
Vault VOD updater (daily runner)

Logs into a media vault, lists the target user's VODs and writes a merged
`vods.json` snapshot for the static viewer.

Steps:
- Warm-up GET to receive the session and XSRF-TOKEN cookies
- POST login with JSON body and anti-forgery headers
- GET the VOD listing page by page
- GET file_info only for new VODs or those whose saved files are missing/stale
- Merge with the previous snapshot and write it back

Configuration comes from the environment (or a `.env` file):
    VAULT_BASE_URL     e.g. https://vault.example.org     [required]
    VAULT_USERNAME                                         [required]
    VAULT_PASSWORD                                         [required]
    VAULT_TOTP         one-time-password                   [optional]
    VAULT_TARGET_USER  username or numeric ID              [optional, defaults to the logged-in user]
    VODS_JSON_PATH     default: vods.json
    PAGE_LIMIT         default: 100
    VAULT_LOG_PATH     rotating log file                   [optional]

Typical usage:
        python update_vods.py
        python update_vods.py --output public/vods.json --dry-run
"""
import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from utils.formatting import utc_now_iso
from vault_lib.config import VaultConfig, load_config
from vault_lib.errors import ConfigError, VaultError
from vault_lib.log import close_logger, setup_logger
from vault_lib.merge import merge_listing
from vault_lib.models import Snapshot
from vault_lib.normalize import normalize_files, normalize_vods
from vault_lib.session import VaultClient
from vault_lib.store import build_snapshot, load_snapshot, save_snapshot

LOGGER_NAME = 'vault_lib'


class VodUpdater:
    """Runs one update: authenticate, list, fetch missing file info, merge, save."""

    def __init__(self, config: VaultConfig, client: Optional[VaultClient] = None,
                 logger: Optional[logging.Logger] = None, clock: Callable[[], str] = utc_now_iso):
        """
        Args:
            config: Validated configuration
            client: Optional pre-built client (tests pass one with a fake session)
            logger: Logger for detailed events; defaults to the package logger
            clock: Returns the current time as an ISO-8601 string
        """
        self.config = config
        self.logger = logger or logging.getLogger(f'{LOGGER_NAME}.updater')
        self.client = client or VaultClient(config.base_url, page_limit=config.page_limit, logger=self.logger)
        self.clock = clock

    def _fetch_files(self, vod_id: str):
        print(f"  📥 file_info {vod_id}")
        return normalize_files(self.client.fetch_details(vod_id))

    def run(self, dry_run: bool = False) -> Snapshot:
        """Execute the update and return the new snapshot.

        Any VaultError aborts the run before anything is written.
        """
        cfg = self.config
        try:
            print("🔐 Warm-up…")
            self.client.warmup()

            print("🔐 Login…")
            user = self.client.login(cfg.username, cfg.password, cfg.totp)
            target_user = cfg.target_user or user.username
            print(f"✅ Logged in as {user.username} ({user.id}); targetUser={target_user}")
            self.logger.info(f"Logged in as {user.username} ({user.id}); targetUser={target_user}")

            existing = load_snapshot(cfg.json_path)
            if existing is None:
                self.logger.info(f"No usable snapshot at {cfg.json_path}; starting fresh")

            print("\n📋 Fetching VOD pages…")
            raw = self.client.fetch_listing(target_user)
            listing = normalize_vods(raw)
            print(f"  ✓ Total VODs listed: {len(listing)}")
            if len(listing) != len(raw):
                self.logger.warning(f"Skipped {len(raw) - len(listing)} listing record(s) without an id")

            result = merge_listing(listing, existing, self._fetch_files, clock=self.clock)
            print(f"\n✨ New VODs: {result.new_count}, refreshed missing/stale file info: {result.refreshed_count}")
            self.logger.info(f"merge: new={result.new_count} refreshed={result.refreshed_count} total={len(result.vods)}")

            snapshot = build_snapshot(result.vods, cfg.base_url, target_user, generated_at=self.clock())
        finally:
            self.client.close()

        if dry_run:
            print(f"\n🔎 Dry-run: would write {cfg.json_path} with {snapshot.meta.total} entries.")
            return snapshot

        save_snapshot(cfg.json_path, snapshot)
        print(f"\n💾 Wrote {cfg.json_path} with {snapshot.meta.total} entries.")
        self.logger.info(f"Wrote {cfg.json_path} with {snapshot.meta.total} entries")
        return snapshot


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Update vods.json from the media vault")
    parser.add_argument('--output', '-o', help='Snapshot path (overrides VODS_JSON_PATH)')
    parser.add_argument('--page-limit', type=int, help='Listing page size (overrides PAGE_LIMIT)')
    parser.add_argument('--target-user', help='Username or ID whose VODs are listed (overrides VAULT_TARGET_USER)')
    parser.add_argument('--env-file', help='Path to a .env file (default: ./.env)')
    parser.add_argument('--config', '-c', help='Path to vault_config.json (default: ./vault_config.json if present)')
    parser.add_argument('--dry-run', action='store_true', help='Run everything but do not write the snapshot')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    return parser


def main(argv=None) -> int:
    """Main entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            env_file=Path(args.env_file) if args.env_file else None,
            config_path=Path(args.config) if args.config else None,
        )
        overrides = {}
        if args.output:
            overrides['json_path'] = Path(args.output).expanduser()
        if args.page_limit is not None:
            if args.page_limit < 1:
                raise ConfigError(f"--page-limit must be a positive integer, got {args.page_limit}")
            overrides['page_limit'] = args.page_limit
        if args.target_user:
            overrides['target_user'] = args.target_user
        config = dataclasses.replace(config, **overrides)
    except VaultError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    logger = setup_logger(LOGGER_NAME, log_path=config.log_path, verbose=args.verbose)

    try:
        VodUpdater(config, logger=logger).run(dry_run=args.dry_run)
    except VaultError as e:
        logger.error(f"Update failed: {e}")
        print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    finally:
        close_logger(logger)
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
