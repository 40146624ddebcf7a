"""
Claude Status Sync — status feed to Slack relay.

Polls the Claude status RSS feed once per invocation and keeps exactly
one Slack message per incident, posting it once and editing it in place
as the incident's narrative changes.
"""

__version__ = "1.0.0"
