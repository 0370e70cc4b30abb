"""Shared library for the vault VOD updater.

This package contains the pieces used by both the updater script and the viewer:
- session.py: Authenticated HTTP client for the vault API
- normalize.py: Mapping of raw API records into typed entries
- merge.py: Incremental merge of a fresh listing with the prior snapshot
- store.py: Snapshot load/save
"""

# No exports needed - import directly from submodules
__all__ = []
