"""Exception types raised by a status sync run."""

from __future__ import annotations


class StatusSyncError(Exception):
    """Base class for all errors that abort a run."""


class FetchError(StatusSyncError):
    """The feed could not be downloaded (network failure or non-2xx)."""


class ParseError(StatusSyncError):
    """The feed body is not well-formed XML."""


class NotifyError(StatusSyncError):
    """Slack rejected a post/update call or could not be reached."""


class ConfigError(StatusSyncError):
    """The configuration file exists but holds invalid values."""
