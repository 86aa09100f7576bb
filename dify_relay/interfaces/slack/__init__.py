# dify_relay/interfaces/slack/__init__.py
"""Slack integration package for the relay.

Event classification, the reply pipeline run after acknowledgment, and the
chat.postMessage wrapper. The HTTP endpoint lives in
dify_relay.interfaces.api.main.
"""
