"""Slack to Dify relay.

Receives Slack app mentions over the Events API, asks a Dify workflow and
replies in the mention's thread.
"""

__version__ = "1.0.0"
