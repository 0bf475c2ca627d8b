"""Workflow engine integration: registry, matcher and webhook client."""

from application.services.workflows.client import (
    WorkflowClient,
    WorkflowResponse,
    format_workflow_response,
)
from application.services.workflows.matcher import (
    MatchResult,
    WorkflowMatcher,
    extract_parameters,
)
from application.services.workflows.registry import (
    WORKFLOW_REGISTRY,
    WorkflowDefinition,
    WorkflowParameter,
)

__all__ = [
    "WorkflowClient",
    "WorkflowResponse",
    "format_workflow_response",
    "MatchResult",
    "WorkflowMatcher",
    "extract_parameters",
    "WORKFLOW_REGISTRY",
    "WorkflowDefinition",
    "WorkflowParameter",
]
