"""
Workflow Engine Client

Calls workflow webhooks (``{base}/webhook/<id>``) on the workflow engine.
Used by the workflow tools and by the orchestrator's pre-router.
"""

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from common.config import config
from common.constants import WORKFLOW_TIMEOUT_SECONDS
from common.exception import ToolExecutionError, WorkflowTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class WorkflowResponse:
    """Outcome of a pre-routed workflow call."""

    success: bool
    type: str
    data: Any
    message: Optional[str] = None
    workflow_id: str = ""
    processing_time_ms: int = 0


class WorkflowClient:
    """HTTP client for the workflow engine."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        timeout: float = WORKFLOW_TIMEOUT_SECONDS,
    ):
        self.http_client = http_client
        self.base_url = (base_url or config.N8N_WEBHOOK_URL).rstrip("/")
        self.auth_token = config.N8N_AUTH_TOKEN if auth_token is None else auth_token
        self.timeout = timeout

    async def call_webhook(self, workflow_id: str, payload: Dict[str, Any]) -> Any:
        """POST ``payload`` plus an ISO timestamp and return the decoded body.

        Raises:
            WorkflowTimeoutError: If the engine does not answer in time
            ToolExecutionError: On non-2xx status, empty body or invalid JSON
        """
        url = f"{self.base_url}/webhook/{workflow_id}"
        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["X-Bakame-Auth"] = self.auth_token

        body = {**payload, "timestamp": datetime.now(timezone.utc).isoformat()}
        logger.info(f"📤 Calling workflow: {workflow_id}")

        try:
            response = await self.http_client.post(
                url, json=body, headers=headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            logger.error(f"⏱️ Workflow {workflow_id} timed out after {self.timeout}s")
            raise WorkflowTimeoutError(workflow_id, self.timeout) from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Workflow {workflow_id} request failed: {e}")
            raise ToolExecutionError(workflow_id, str(e) or "Workflow execution failed") from e

        if not response.is_success:
            logger.error(
                f"❌ Workflow {workflow_id} error: {response.status_code} - {response.text[:200]}"
            )
            raise ToolExecutionError(workflow_id, f"Workflow failed: {response.status_code}")

        text = response.text
        if not text or not text.strip():
            logger.error(f"❌ Empty response from workflow {workflow_id}")
            raise ToolExecutionError(
                workflow_id, "Workflow returned empty response - please try again"
            )

        try:
            data = json.loads(text)
        except ValueError as e:
            logger.error(f"❌ Invalid JSON from workflow {workflow_id}: {text[:200]}")
            raise ToolExecutionError(workflow_id, "Invalid response from workflow") from e

        logger.info(f"✅ Workflow {workflow_id} completed successfully")
        return data

    async def call_workflow(
        self,
        workflow_id: str,
        query: str,
        parameters: Optional[Dict[str, Any]] = None,
        language: str = "en",
        previous_messages: Optional[List[Dict[str, Any]]] = None,
    ) -> WorkflowResponse:
        """Call a workflow on behalf of the pre-router.

        Never raises for workflow failures; the response carries
        ``success=False`` and a message so the caller can fall through.
        """
        started = time.monotonic()
        payload = {
            "query": query,
            "parameters": parameters or {},
            "context": {
                "language": language,
                "previousMessages": (previous_messages or [])[-5:],
            },
        }

        try:
            result = await self.call_webhook(workflow_id, payload)
        except ToolExecutionError as e:
            return WorkflowResponse(
                success=False,
                type="error",
                data=None,
                message=e.message,
                workflow_id=workflow_id,
                processing_time_ms=int((time.monotonic() - started) * 1000),
            )

        elapsed = int((time.monotonic() - started) * 1000)
        logger.info(f"Workflow {workflow_id} answered in {elapsed}ms")

        if not isinstance(result, dict):
            return WorkflowResponse(
                success=True, type="text", data=result,
                workflow_id=workflow_id, processing_time_ms=elapsed,
            )
        return WorkflowResponse(
            success=True,
            type=result.get("type") or "text",
            data=result.get("data"),
            message=result.get("message"),
            workflow_id=workflow_id,
            processing_time_ms=elapsed,
        )


def format_workflow_response(response: WorkflowResponse) -> str:
    """Render a workflow response as chat markdown."""
    if not response.success:
        return response.message or "Habaye ikibazo. Ongera ugerageze."

    data = response.data
    if response.type == "text":
        return data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False)

    if response.type in ("image", "video", "audio", "file") and not isinstance(data, dict):
        return response.message or "Workflow completed."

    if response.type == "image":
        caption = f"\n\n{data['caption']}" if data.get("caption") else ""
        return f"![Generated Image]({data.get('url')}){caption}"
    if response.type == "video":
        caption = f"\n\n{data['caption']}" if data.get("caption") else ""
        return f"🎬 [Video]({data.get('url')}){caption}"
    if response.type == "audio":
        caption = f"\n\n{data['caption']}" if data.get("caption") else ""
        return f"🎵 [Audio]({data.get('url')}){caption}"
    if response.type == "file":
        return f"📎 [{data.get('filename')}]({data.get('url')})"
    if response.type == "data":
        return "```json\n" + json.dumps(data, indent=2, ensure_ascii=False) + "\n```"

    return response.message or "Workflow completed."
