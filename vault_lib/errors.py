"""Exception types raised by the vault updater.

Every error is fatal for a run: the updater aborts without writing the
snapshot and exits non-zero.
"""


class VaultError(RuntimeError):
    """Base class for all updater failures."""


class ConfigError(VaultError):
    """Raised when required configuration is missing or invalid."""


class SessionError(VaultError):
    """Raised when the warm-up request fails."""


class AuthError(VaultError):
    """Raised when login fails."""


class TotpRequiredError(AuthError):
    """Raised when the server asks for a one-time-password."""


class FetchError(VaultError):
    """Raised when a listing or file_info request fails."""
