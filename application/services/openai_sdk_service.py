"""
OpenAI SDK Service

Provides integration with OpenAI's API for:
- Streaming chat completions with optional tool catalog
- Structured output generation using Pydantic schemas
- Query embeddings for knowledge search
- Image generation
- Retry logic and error mapping

One instance is built at startup and injected wherever the provider is needed.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    AsyncOpenAI,
    RateLimitError,
)
from pydantic import BaseModel, ValidationError

from common.config import config
from common.exception import UpstreamProviderError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


class OpenAISDKService:
    """
    OpenAI SDK integration service.

    Provides:
    - Streaming completions (the chunk stream is consumed by the caller)
    - Structured output with Pydantic schemas
    - Embeddings and image generation
    - Upstream error mapping to UpstreamProviderError
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        """
        Initialize OpenAI SDK client with configuration from environment.

        Environment variables:
            OPENAI_API_KEY: Required API key for OpenAI
            OPENAI_BASE_URL: Optional compatible endpoint (e.g. OpenRouter)
            OPENAI_MODEL: Model name (default: gpt-4-turbo)
            OPENAI_TEMPERATURE: Temperature for generation (default: 0.7)
            OPENAI_MAX_TOKENS: Max output tokens (default: 2048)
            OPENAI_TIMEOUT: Request timeout in seconds (default: 60)
            OPENAI_MAX_RETRIES: Max retry attempts (default: 3)
        """
        self.api_key = api_key or config.OPENAI_API_KEY
        if not self.api_key and client is None:
            logger.warning("OPENAI_API_KEY not set - OpenAISDKService will not function")

        self.model_name = model_name or config.OPENAI_MODEL
        self.temperature = config.OPENAI_TEMPERATURE
        self.max_tokens = config.OPENAI_MAX_TOKENS
        self.timeout = config.OPENAI_TIMEOUT
        self.max_retries = config.OPENAI_MAX_RETRIES

        if client is not None:
            self.client = client
        elif self.api_key:
            self.client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=config.OPENAI_BASE_URL,
                timeout=self.timeout,
                max_retries=0,
            )
        else:
            self.client = None

        logger.info(
            f"OpenAISDKService initialized: model={self.model_name}, "
            f"temperature={self.temperature}, max_tokens={self.max_tokens}, "
            f"timeout={self.timeout}s, max_retries={self.max_retries}"
        )

    def _require_client(self) -> AsyncOpenAI:
        if not self.client:
            raise UpstreamProviderError(None, "OpenAI client not initialized - check OPENAI_API_KEY")
        return self.client

    async def open_chat_stream(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Any:
        """
        Open a streaming chat completion.

        Retries transient failures (rate limit, connection, 5xx) with
        exponential backoff. Only the stream opening is retried; once chunks
        start flowing the caller owns the stream.

        Args:
            messages: Provider-ready message list
            tools: OpenAI tool catalog; omitted entirely when None
            temperature: Override default temperature
            max_tokens: Override default max output tokens

        Returns:
            The provider's async chunk stream (usable as an async context manager)

        Raises:
            UpstreamProviderError: On non-retryable or exhausted failures
        """
        client = self._require_client()

        params: Dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
            "stream": True,
        }
        if tools:
            params["tools"] = tools
            params["tool_choice"] = "auto"

        for attempt in range(self.max_retries):
            try:
                logger.debug(
                    f"Opening stream (attempt {attempt + 1}/{self.max_retries}): "
                    f"model={self.model_name}, messages={len(messages)}, tools={len(tools or [])}"
                )
                return await client.chat.completions.create(**params)

            except RateLimitError as e:
                if attempt < self.max_retries - 1:
                    wait_time = 2 ** attempt
                    logger.warning(f"Rate limited, retrying in {wait_time}s: {e}")
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(f"Rate limit exceeded after {self.max_retries} retries")
                    raise UpstreamProviderError(429, str(e)) from e

            except APIConnectionError as e:
                if attempt < self.max_retries - 1:
                    wait_time = 2 ** attempt
                    logger.warning(f"Connection error, retrying in {wait_time}s: {e}")
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(f"Connection failed after {self.max_retries} retries")
                    raise UpstreamProviderError(503, str(e)) from e

            except APIStatusError as e:
                if attempt < self.max_retries - 1 and e.status_code >= 500:
                    wait_time = 2 ** attempt
                    logger.warning(f"Server error, retrying in {wait_time}s: {e}")
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(f"API error: {e}")
                    raise UpstreamProviderError(e.status_code, str(e)) from e

            except APIError as e:
                logger.error(f"API error: {e}")
                raise UpstreamProviderError(None, str(e)) from e

        raise UpstreamProviderError(None, "No attempts made")

    async def generate_structured_output(
        self,
        prompt: str,
        schema: Type[T],
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        model_name: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> Optional[T]:
        """
        Generate structured output using Pydantic schema.

        Args:
            prompt: User question/request
            schema: Pydantic model class defining the expected output structure
            system_instruction: Optional system prompt
            temperature: Override default temperature
            model_name: Override the completion model
            max_tokens: Override default max output tokens

        Returns:
            Parsed object matching the schema, or None if the model refused

        Raises:
            UpstreamProviderError: If the client is missing or the call fails
        """
        client = self._require_client()
        messages = self._build_messages(prompt, None, system_instruction)

        try:
            logger.debug(f"Generating structured output with schema: {schema.__name__}")

            response = await client.chat.completions.parse(
                model=model_name or self.model_name,
                messages=messages,
                response_format=schema,
                temperature=self.temperature if temperature is None else temperature,
                max_tokens=max_tokens or self.max_tokens,
            )

            result = response.choices[0].message.parsed
            logger.debug(f"Structured output generated: {type(result).__name__}")
            return result

        except ValidationError as e:
            logger.error(f"Schema validation failed: {e}")
            raise UpstreamProviderError(None, f"Schema validation failed: {e}") from e
        except APIStatusError as e:
            logger.error(f"Structured output API error: {e}")
            raise UpstreamProviderError(e.status_code, str(e)) from e
        except APIError as e:
            logger.error(f"Structured output API error: {e}")
            raise UpstreamProviderError(None, str(e)) from e

    async def create_embedding(self, text: str, model_name: Optional[str] = None) -> List[float]:
        """Embed a single text for vector search."""
        client = self._require_client()
        try:
            response = await client.embeddings.create(
                model=model_name or config.EMBEDDING_MODEL,
                input=text.replace("\n", " "),
            )
            return list(response.data[0].embedding)
        except APIStatusError as e:
            raise UpstreamProviderError(e.status_code, str(e)) from e
        except APIError as e:
            raise UpstreamProviderError(None, str(e)) from e

    async def generate_image(self, prompt: str, size: str) -> Any:
        """Generate one image and return the provider's image datum.

        Provider status errors are re-raised unchanged so the caller can map
        prompt rejections and throttling to its own messages.
        """
        client = self._require_client()
        response = await client.images.generate(
            model=config.IMAGE_MODEL,
            prompt=prompt,
            n=1,
            size=size,
            quality="standard",
            response_format="url",
        )
        return response.data[0] if response.data else None

    def _build_messages(
        self,
        prompt: str,
        context: Optional[List[Dict[str, str]]] = None,
        system_instruction: Optional[str] = None,
    ) -> List[Dict[str, str]]:
        """
        Build message list for API call.

        Args:
            prompt: Current user message
            context: Previous conversation messages
            system_instruction: Optional system prompt

        Returns:
            Messages formatted for OpenAI API
        """
        messages: List[Dict[str, str]] = []

        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})

        if context:
            messages.extend(context)

        messages.append({"role": "user", "content": prompt})
        return messages

    def is_configured(self) -> bool:
        """
        Check if the service is properly configured.

        Returns:
            True if API key is set and client is initialized
        """
        return self.client is not None

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        if self.client is not None:
            await self.client.close()
