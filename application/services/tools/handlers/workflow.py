"""Tools backed by workflow engine webhooks."""

import logging
from typing import Any, Dict, List

from application.services.tools.base import ToolHandler, ToolResult
from application.services.workflows.client import WorkflowClient
from common.exception import ToolExecutionError

logger = logging.getLogger(__name__)


class WorkflowTool(ToolHandler):
    """Forwards every argument to one workflow and returns its JSON answer."""

    def __init__(
        self,
        name: str,
        workflow_id: str,
        description: str,
        parameters: Dict[str, Any],
        client: WorkflowClient,
    ):
        self.name = name
        self.workflow_id = workflow_id
        self.description = description
        self.parameters = parameters
        self.client = client

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        try:
            data = await self.client.call_webhook(self.workflow_id, dict(args))
        except ToolExecutionError as e:
            return ToolResult.failure(e.message)
        return ToolResult.ok(data)


def build_workflow_tools(client: WorkflowClient) -> List[WorkflowTool]:
    """Workflow-backed tools exposed to the model."""
    return [
        WorkflowTool(
            name="rwanda_tax",
            workflow_id="bakame-tax",
            description=(
                "Answer questions about Rwanda taxes from RRA guidance: VAT, PAYE, income "
                "tax, TIN registration, EBM, filing deadlines and customs duties."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "The tax question"},
                    "tax_type": {
                        "type": "string",
                        "description": 'Tax involved, e.g. "vat", "paye", "income", "customs"',
                    },
                    "amount": {
                        "type": "number",
                        "description": "Amount in RWF when a calculation is needed",
                    },
                },
                "required": ["query"],
            },
            client=client,
        ),
        WorkflowTool(
            name="government_services",
            workflow_id="bakame-gov-services",
            description=(
                "Look up Rwandan government services (Irembo): passports, national ID, "
                "birth certificates, permits, licenses and business registration steps."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "The service question"},
                    "service": {
                        "type": "string",
                        "description": 'Service name, e.g. "passport", "driving license"',
                    },
                },
                "required": ["query"],
            },
            client=client,
        ),
        WorkflowTool(
            name="get_directions",
            workflow_id="bakame-maps",
            description=(
                "Get directions, travel time and distance between two places, mainly "
                "within Rwanda."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "origin": {"type": "string", "description": "Starting point"},
                    "destination": {"type": "string", "description": "Where to go"},
                    "mode": {
                        "type": "string",
                        "enum": ["driving", "walking", "transit"],
                        "description": "Travel mode (default: driving)",
                    },
                },
                "required": ["origin", "destination"],
            },
            client=client,
        ),
    ]
