"""
Media generation tools.

Image generation goes through the shared OpenAI provider. Video generation
submits a text-to-video job to Kling and polls it until it finishes; every
request is signed with a freshly issued token.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx
from openai import APIError, APIStatusError

from application.services.openai_sdk_service import OpenAISDKService
from application.services.streaming.events import StreamEvent
from application.services.tools.base import ToolHandler, ToolResult
from common.config import config
from common.constants import (
    VIDEO_MAX_POLL_ATTEMPTS,
    VIDEO_POLL_INTERVAL_SECONDS,
    VIDEO_TOKEN_TTL_SECONDS,
)
from common.exception import UpstreamProviderError
from common.utils.jwt_utils import sign_service_token

logger = logging.getLogger(__name__)

IMAGE_FAILED_MESSAGE = "Image generation failed. Please try again."
VIDEO_FAILED_MESSAGE = "Video generation failed. Please try again."

KLING_MODEL = "kling-v1-6"
KLING_MODE = "std"


def select_image_size(width: Any, height: Any) -> Tuple[str, int, int]:
    """Pick the supported image size closest to the requested aspect ratio."""
    try:
        ratio = float(width or 1024) / float(height or 1024)
    except (TypeError, ValueError, ZeroDivisionError):
        ratio = 1.0
    if ratio > 1.3:
        return "1792x1024", 1792, 1024
    if ratio < 0.7:
        return "1024x1792", 1024, 1792
    return "1024x1024", 1024, 1024


class ImageGenerationTool(ToolHandler):
    name = "generate_image"
    description = (
        "Generate an image from a text description. Use when the user asks to draw, "
        "create or design a picture, illustration or photo."
    )
    parameters = {
        "type": "object",
        "properties": {
            "prompt": {
                "type": "string",
                "description": "Detailed description of the image to generate",
            },
            "width": {"type": "number", "description": "Desired width in pixels (default: 1024)"},
            "height": {"type": "number", "description": "Desired height in pixels (default: 1024)"},
        },
        "required": ["prompt"],
    }

    def __init__(self, provider: OpenAISDKService):
        self.provider = provider

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        prompt = str(args.get("prompt") or "")
        size, width, height = select_image_size(args.get("width"), args.get("height"))

        logger.info(f"🎨 Generating image ({size}): {prompt[:100]!r}")
        try:
            image = await self.provider.generate_image(prompt, size)
        except APIStatusError as e:
            logger.error(f"❌ Image generation error ({e.status_code}): {e}")
            if e.status_code == 400:
                return ToolResult.failure(
                    "Your prompt was rejected. Please try a different description."
                )
            if e.status_code == 429:
                return ToolResult.failure("Too many requests. Please wait a moment and try again.")
            return ToolResult.failure(IMAGE_FAILED_MESSAGE)
        except (APIError, UpstreamProviderError) as e:
            logger.error(f"❌ Image generation error: {e}")
            return ToolResult.failure(IMAGE_FAILED_MESSAGE)

        image_url = getattr(image, "url", None)
        if not image_url:
            logger.error("No image URL in provider response")
            return ToolResult.failure(IMAGE_FAILED_MESSAGE)

        final_prompt = getattr(image, "revised_prompt", None) or prompt
        logger.info("✅ Image generated successfully")
        return ToolResult.ok(
            {
                "image_url": image_url,
                "prompt": final_prompt,
                "width": width,
                "height": height,
                "provider": "DALL-E 3",
                "message": "Image generated successfully! Click to view full size.",
            },
            side_event=StreamEvent.generated_image(image_url, final_prompt, width, height),
        )


class VideoGenerationTool(ToolHandler):
    name = "generate_video"
    description = (
        "Generate a short video from a text description. Takes up to a few minutes. "
        "Use when the user asks to create, make or animate a video."
    )
    parameters = {
        "type": "object",
        "properties": {
            "prompt": {"type": "string", "description": "Description of the video"},
            "duration": {
                "type": "number",
                "enum": [5, 10],
                "description": "Length in seconds (default: 5)",
            },
            "aspect_ratio": {
                "type": "string",
                "enum": ["16:9", "9:16", "1:1"],
                "description": "Aspect ratio (default: 16:9)",
            },
        },
        "required": ["prompt"],
    }

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        api_base: Optional[str] = None,
        poll_interval: float = VIDEO_POLL_INTERVAL_SECONDS,
        max_attempts: int = VIDEO_MAX_POLL_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.http_client = http_client
        self.access_key = config.KLING_ACCESS_KEY if access_key is None else access_key
        self.secret_key = config.KLING_SECRET_KEY if secret_key is None else secret_key
        self.api_base = (api_base or config.KLING_API_BASE).rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    def _auth_headers(self) -> Dict[str, str]:
        token = sign_service_token(self.access_key, self.secret_key, VIDEO_TOKEN_TTL_SECONDS)
        return {"Authorization": f"Bearer {token}"}

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        prompt = str(args.get("prompt") or "")
        duration = args.get("duration") or 5
        aspect_ratio = args.get("aspect_ratio") or "16:9"

        if not self.access_key or not self.secret_key:
            logger.error("Kling API credentials not configured")
            return ToolResult.failure("Video generation service not configured.")

        logger.info(f"🎬 Starting video generation ({duration}s, {aspect_ratio}): {prompt[:100]!r}")
        try:
            return await self._generate(prompt, duration, aspect_ratio)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Video generation error: {e}")
            return ToolResult.failure(VIDEO_FAILED_MESSAGE)

    async def _generate(self, prompt: str, duration: Any, aspect_ratio: str) -> ToolResult:
        create_response = await self.http_client.post(
            f"{self.api_base}/videos/text2video",
            headers=self._auth_headers(),
            json={
                "model_name": KLING_MODEL,
                "prompt": prompt,
                "duration": str(duration),
                "aspect_ratio": aspect_ratio,
                "mode": KLING_MODE,
            },
        )

        if not create_response.is_success:
            status = create_response.status_code
            logger.error(f"❌ Kling create task failed ({status}): {create_response.text[:200]}")
            if status == 429:
                return ToolResult.failure("Kling API rate limit. Wait and try again.")
            if status == 401:
                return ToolResult.failure("Kling API authentication failed. Check API keys.")
            return ToolResult.failure(f"Video generation failed ({status}). Please try again.")

        task_id = (create_response.json().get("data") or {}).get("task_id")
        if not task_id:
            logger.error("No task_id in Kling response")
            return ToolResult.failure("Failed to start video generation.")

        logger.info(f"Kling task created: {task_id}")

        for attempt in range(self.max_attempts):
            await self._sleep(self.poll_interval)

            status_response = await self.http_client.get(
                f"{self.api_base}/videos/text2video/{task_id}",
                headers=self._auth_headers(),
            )
            if not status_response.is_success:
                logger.warning(f"Kling status check failed: {status_response.status_code}")
                continue

            task = status_response.json().get("data") or {}
            task_status = task.get("task_status")
            logger.debug(f"Kling poll {attempt + 1}/{self.max_attempts}: {task_status}")

            if task_status == "succeed":
                videos = (task.get("task_result") or {}).get("videos") or [{}]
                video_url = videos[0].get("url")
                if not video_url:
                    logger.error("No video URL in Kling result")
                    return ToolResult.failure("Video generated but URL not available.")

                video_duration = videos[0].get("duration") or duration
                logger.info(f"✅ Kling video ready: {video_url}")
                return ToolResult.ok(
                    {
                        "video_url": video_url,
                        "prompt": prompt,
                        "duration": video_duration,
                        "aspect_ratio": aspect_ratio,
                        "provider": "Kling AI",
                        "message": "Video generated successfully! Click to play.",
                    },
                    side_event=StreamEvent.generated_video(
                        video_url, prompt, video_duration, aspect_ratio
                    ),
                )

            if task_status == "failed":
                message = task.get("task_status_msg") or "Video generation failed"
                logger.error(f"❌ Kling task failed: {message}")
                return ToolResult.failure(message)

        logger.warning(f"⚠️ Kling video generation timed out: {task_id}")
        return ToolResult.failure("Video generation timed out. Please try a simpler prompt.")
