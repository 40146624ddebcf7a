"""
Console output — clean, structured run logs.

Every line a run prints goes through here, timestamped in UTC and
coloured with ANSI codes for readability in a terminal or CI log.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone

from status_sync.models import Status

# ANSI color codes for terminal styling
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_MAGENTA = "\033[95m"
_CYAN = "\033[96m"
_WHITE = "\033[97m"
_GRAY = "\033[90m"


def _status_color(status: Status) -> str:
    """Pick a color based on incident status."""
    if status is Status.RESOLVED:
        return _GREEN
    elif status is Status.MONITORING:
        return _CYAN
    elif status is Status.IDENTIFIED:
        return _YELLOW
    elif status is Status.INVESTIGATING:
        return _RED
    else:
        return _MAGENTA


def _ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def print_run_start(feed_url: str) -> None:
    """Print the header of a run."""
    print(f"{_GRAY}[{_ts()}]{_RESET} {_BOLD}{_CYAN}Checking Claude status...{_RESET}")
    print(f"  {_BOLD}{_BLUE}> Feed:{_RESET} {_DIM}{feed_url}{_RESET}")


def print_feed_count(count: int) -> None:
    print(f"  Found {_BOLD}{count}{_RESET} incidents in feed")


def print_first_run() -> None:
    """Explain why older incidents will not be posted."""
    print(
        f"  {_BOLD}{_YELLOW}First run detected{_RESET} - "
        f"will only post the most recent incident"
    )


def print_new_incident(title: str, status: Status) -> None:
    color = _status_color(status)
    print(
        f"  {_BOLD}{color}NEW INCIDENT{_RESET} {_WHITE}{title}{_RESET}"
        f" {_DIM}({status.value}){_RESET}"
    )


def print_suppressed(title: str) -> None:
    """Print an incident recorded without posting (first run backlog)."""
    print(f"  {_DIM}Tracking without posting: {title}{_RESET}")


def print_updated_incident(title: str, old: Status, new: Status) -> None:
    color = _status_color(new)
    print(
        f"  {_BOLD}{color}INCIDENT UPDATE{_RESET} {_WHITE}{title}{_RESET}"
        f" {_DIM}({old.value} -> {new.value}){_RESET}"
    )


def print_no_changes(title: str, status: Status) -> None:
    """Print a subtle line for an unchanged incident (debug level)."""
    print(f"  {_DIM}No changes: {title} ({status.value}){_RESET}")


def print_dry_run(action: str, title: str) -> None:
    print(f"  {_DIM}Slack not configured, would {action}:{_RESET} {title}")


def print_slack_result(action: str, title: str, ts: str) -> None:
    print(f"  {_GREEN}{action.capitalize()}{_RESET} Slack message {_DIM}{ts}{_RESET} for {title}")


def print_warning(message: str) -> None:
    """Print a non-fatal warning."""
    print(f"  {_GRAY}[{_ts()}]{_RESET} {_YELLOW}WARNING{_RESET} {message}")


def print_summary(new: int, updated: int) -> None:
    print(f"\n  {_BOLD}Summary:{_RESET} {new} new, {updated} updated")


def print_done() -> None:
    print(f"{_GRAY}[{_ts()}]{_RESET} {_BOLD}{_GREEN}Done!{_RESET}")


def print_error(message: str) -> None:
    """Print the single-line failure message on stderr."""
    print(f"Error: {message}", file=sys.stderr)
