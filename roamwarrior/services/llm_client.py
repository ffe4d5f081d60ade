"""
LLM Client - Unified interface for multiple completion providers.
Supports OpenAI, Mistral, OpenRouter, Ollama and Gemini through their
OpenAI-compatible endpoints.
"""
import asyncio
import json
import logging
import re
from typing import Any, Optional, Protocol

import openai
from openai import AsyncOpenAI

from ..config import get_llm_config, settings
from ..errors import GenerationError, GenerationTimeoutError, MalformedResponseError

logger = logging.getLogger(__name__)


COMPLETION_SYSTEM_PROMPT = """You are the structured-output engine of a travel planning service.
Respond with ONLY valid JSON that conforms to the output schema below.
Do not wrap the JSON in explanations."""


class CompletionService(Protocol):
    """Anything that turns a prompt into JSON shaped by an output schema."""

    async def complete(self, prompt: str, output_schema: dict) -> Any:
        ...


def schema_messages(prompt: str, output_schema: dict) -> list[dict]:
    """Chat messages carrying the output schema and the instruction."""
    title = output_schema.get("title", "Response")
    system = (
        f"{COMPLETION_SYSTEM_PROMPT}\n\n"
        f"Output schema: {title}\n"
        f"{json.dumps(output_schema, indent=2)}"
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": prompt},
    ]


def parse_json_response(text: Optional[str]) -> Any:
    """
    Parse JSON from an LLM response, handling markdown code blocks.

    Raises:
        GenerationError: if the response is empty.
        MalformedResponseError: if no JSON object or array can be recovered.
    """
    if text is None or not text.strip():
        raise GenerationError("The completion service returned no output")
    text = text.strip()

    # Try direct parse first
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Try extracting from markdown code block
    json_match = re.search(r'```(?:json)?\s*([\s\S]*?)```', text)
    if json_match:
        try:
            return json.loads(json_match.group(1).strip())
        except json.JSONDecodeError:
            pass

    # Try finding a JSON object or array in text
    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except json.JSONDecodeError:
                pass

    raise MalformedResponseError(
        f"Could not parse the completion response as JSON: {text[:200]}"
    )


class LLMClient:
    """Async LLM client with OpenAI-compatible API."""

    def __init__(self):
        config = get_llm_config()

        # Use mock client if provider is 'mock'
        if settings.llm_provider == "mock":
            from .mock_llm import MockLLMClient
            self._mock = MockLLMClient()
            self.model = self._mock.model
            self.client = None
        else:
            self._mock = None
            # Retries are left to the caller; the SDK must not retry on its own
            self.client = AsyncOpenAI(
                api_key=config["api_key"],
                base_url=config["base_url"],
                timeout=config["timeout"],
                max_retries=0
            )
            self.model = config["model"]
        self.temperature = config["temperature"]
        self.max_tokens = config["max_tokens"]
        self.timeout = config["timeout"]
        self.json_mode = config["json_mode"]

    async def chat(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False
    ) -> str:
        """
        Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Override default temperature
            max_tokens: Override default max tokens
            json_mode: If True, request JSON response format

        Returns:
            The assistant's response content

        Raises:
            GenerationTimeoutError: if the call exceeds the configured timeout
            GenerationError: for any transport, auth or rate-limit failure
        """
        try:
            return await asyncio.wait_for(
                self._send(messages, temperature, max_tokens, json_mode),
                timeout=self.timeout
            )
        except (asyncio.TimeoutError, openai.APITimeoutError) as e:
            logger.error(f"Completion request timed out after {self.timeout}s")
            raise GenerationTimeoutError(
                f"The completion service did not answer within {self.timeout:g} seconds",
                cause=e
            ) from e
        except openai.APIError as e:
            logger.error(f"Completion request failed: {e}")
            raise GenerationError(f"Completion request failed: {e}", cause=e) from e

    async def _send(
        self,
        messages: list[dict],
        temperature: Optional[float],
        max_tokens: Optional[int],
        json_mode: bool
    ) -> str:
        # Use mock client if available
        if self._mock is not None:
            return await self._mock.chat(messages, temperature, max_tokens, json_mode)

        kwargs = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }

        # JSON mode support (not all providers support this; see llm_json_mode)
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(**kwargs)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def chat_json(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Any:
        """
        Send a chat request and parse JSON response.

        Returns:
            Parsed JSON (object or array)
        """
        response = await self.chat(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=self.json_mode
        )
        return parse_json_response(response)

    async def complete(self, prompt: str, output_schema: dict) -> Any:
        """Run one prompt and return the parsed JSON answer."""
        return await self.chat_json(schema_messages(prompt, output_schema))


# Global LLM client instance
llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create the global LLM client."""
    global llm_client
    if llm_client is None:
        llm_client = LLMClient()
    return llm_client
