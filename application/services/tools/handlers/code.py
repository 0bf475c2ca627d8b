"""Sandboxed code execution through the Piston API."""

import logging
from typing import Any, Dict, Optional

import httpx

from application.services.streaming.events import StreamEvent
from application.services.tools.base import ToolHandler, ToolResult
from common.config import config
from common.constants import MAX_CODE_LENGTH, MAX_CODE_OUTPUT_LENGTH

logger = logging.getLogger(__name__)

# Compile and run timeouts on the Piston side are 10 s each
EXECUTION_TIMEOUT_SECONDS = 30.0

PISTON_LANGUAGES: Dict[str, Dict[str, str]] = {
    "python": {"language": "python", "version": "3.10.0"},
    "javascript": {"language": "javascript", "version": "18.15.0"},
    "typescript": {"language": "typescript", "version": "5.0.3"},
    "java": {"language": "java", "version": "15.0.2"},
    "c": {"language": "c", "version": "10.2.0"},
    "cpp": {"language": "cpp", "version": "10.2.0"},
    "go": {"language": "go", "version": "1.16.2"},
    "rust": {"language": "rust", "version": "1.68.2"},
    "ruby": {"language": "ruby", "version": "3.0.1"},
    "php": {"language": "php", "version": "8.2.3"},
}


def combine_output(stdout: str, stderr: str, exit_code: int) -> str:
    """stderr alone on failure, otherwise stdout followed by any stderr."""
    if stderr and exit_code != 0:
        return stderr
    if stderr:
        return stdout + ("\n" if stdout else "") + stderr
    return stdout


class CodeExecutionTool(ToolHandler):
    name = "run_code"
    description = (
        "Run a code snippet in a sandbox and return its output. Supports Python, "
        "JavaScript, TypeScript, Java, C, C++, Go, Rust, Ruby and PHP."
    )
    parameters = {
        "type": "object",
        "properties": {
            "code": {"type": "string", "description": "The source code to run"},
            "language": {
                "type": "string",
                "enum": list(PISTON_LANGUAGES),
                "description": "Programming language (default: python)",
            },
        },
        "required": ["code"],
    }

    def __init__(self, http_client: httpx.AsyncClient, api_url: Optional[str] = None):
        self.http_client = http_client
        self.api_url = api_url or config.PISTON_API_URL

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        code = str(args.get("code") or "")
        language = str(args.get("language") or "python").lower()

        runtime = PISTON_LANGUAGES.get(language)
        if runtime is None:
            return ToolResult.failure(
                f"Unsupported language: {language}. Supported: {', '.join(PISTON_LANGUAGES)}"
            )
        if len(code) > MAX_CODE_LENGTH:
            return ToolResult.failure("Code too long. Maximum 50,000 characters.")

        logger.info(f"▶️ Running {language} code ({len(code)} chars)")
        try:
            response = await self.http_client.post(
                self.api_url,
                json={
                    "language": runtime["language"],
                    "version": runtime["version"],
                    "files": [{"content": code}],
                    "stdin": "",
                    "args": [],
                    "compile_timeout": 10000,
                    "run_timeout": 10000,
                    "compile_memory_limit": -1,
                    "run_memory_limit": -1,
                },
                timeout=EXECUTION_TIMEOUT_SECONDS,
            )
            if not response.is_success:
                logger.error(f"❌ Piston API error ({response.status_code}): {response.text[:200]}")
                return ToolResult.failure(
                    f"Code execution service error ({response.status_code})"
                )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Code execution error ({language}): {e}")
            return ToolResult.failure("Code execution failed. Please try again.")

        compile_stage = data.get("compile")
        if compile_stage and compile_stage.get("code") not in (0, None):
            error = compile_stage.get("stderr") or compile_stage.get("output") or "Compilation failed"
            exit_code = compile_stage["code"]
            return ToolResult.ok(
                {
                    "language": language,
                    "version": runtime["version"],
                    "code": code,
                    "output": None,
                    "error": error,
                    "exitCode": exit_code,
                    "isCompileError": True,
                },
                side_event=StreamEvent.code_output(code, language, None, error, exit_code),
            )

        run_stage = data.get("run") or {}
        stdout = run_stage.get("stdout") or ""
        stderr = run_stage.get("stderr") or ""
        exit_code = run_stage.get("code")
        if exit_code is None:
            exit_code = 0

        output = combine_output(stdout, stderr, exit_code)
        truncated = len(output) > MAX_CODE_OUTPUT_LENGTH
        if truncated:
            output = output[:MAX_CODE_OUTPUT_LENGTH] + "\n... (output truncated)"
        output = output or "(no output)"
        error = stderr if exit_code != 0 else None

        logger.info(f"✅ Code execution finished: exit={exit_code}, truncated={truncated}")
        return ToolResult.ok(
            {
                "language": language,
                "version": runtime["version"],
                "code": code,
                "output": output,
                "error": error,
                "exitCode": exit_code,
                "truncated": truncated,
            },
            side_event=StreamEvent.code_output(code, language, output, error, exit_code),
        )
