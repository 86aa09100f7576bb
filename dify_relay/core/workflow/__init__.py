# dify_relay/core/workflow/__init__.py
"""Dify workflow client and answer extraction."""

from dify_relay.core.workflow.answer import OUTPUT_FIELD_PRECEDENCE, extract_answer
from dify_relay.core.workflow.client import DifyWorkflowClient, build_workflow_url

__all__ = [
    "DifyWorkflowClient",
    "build_workflow_url",
    "extract_answer",
    "OUTPUT_FIELD_PRECEDENCE",
]
