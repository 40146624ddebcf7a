"""
Configuration loader.

Reads config.yaml into TrackerSettings, falling back to defaults if the
file is missing. Slack credentials never live in the YAML file; they are
read from the environment (SLACK_BOT_TOKEN, SLACK_CHANNEL_ID).
"""

from __future__ import annotations

import os
from dataclasses import fields
from pathlib import Path
from typing import Mapping, Optional

import yaml

from status_sync import console
from status_sync.errors import ConfigError
from status_sync.models import SlackConfig, TrackerSettings

# Default path: config.yaml next to the project root
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

_STR_KEYS = {"feed_url", "status_page_url", "state_path", "log_level", "message_prefix", "header_emoji"}


def load_config(path: str | Path | None = None) -> TrackerSettings:
    """
    Load and parse the YAML configuration file.

    Unknown keys are ignored. An existing file that is not a mapping or
    has values of the wrong type raises ConfigError.
    """
    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    if not config_path.exists():
        console.print_warning(f"Config file not found at {config_path}, using defaults.")
        return TrackerSettings()

    with open(config_path, "r", encoding="utf-8") as fh:
        try:
            raw = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if raw is None:
        return TrackerSettings()
    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    known = {f.name for f in fields(TrackerSettings)}
    values = {}
    for key, value in raw.items():
        if key not in known or value is None:
            continue
        if key in _STR_KEYS:
            if not isinstance(value, str):
                raise ConfigError(f"{key} must be a string")
            values[key] = value
        elif key == "request_timeout":
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ConfigError("request_timeout must be a non-negative number")
            values[key] = float(value)

    settings = TrackerSettings(**values)
    settings.log_level = settings.log_level.upper()
    return settings


def load_slack_config(environ: Optional[Mapping[str, str]] = None) -> SlackConfig:
    """Read Slack credentials from the environment; blanks count as unset."""
    env = os.environ if environ is None else environ
    token = (env.get("SLACK_BOT_TOKEN") or "").strip()
    channel = (env.get("SLACK_CHANNEL_ID") or "").strip()
    return SlackConfig(bot_token=token or None, channel_id=channel or None)
