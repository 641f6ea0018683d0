#!/usr/bin/env python3
"""
Model-Call Client for Swarm Agents

Every agent reaches its language model through a client exposing one
coroutine:

    await client.call(instructions, tools, messages, **options)
        -> ModelResponse(content, tool_calls, ...)

The call either returns a response or raises; agents convert raised
errors into failed results. Clients must be safe to call concurrently
for distinct agents.

Implementations:
- OpenAIChatClient: any OpenAI-compatible chat completions endpoint,
  with retries and tool calling
- EchoClient: offline client that acknowledges the conversation
  (used when no API key is configured)

Example Usage:
    from llm_client import create_client

    client = create_client()
    response = await client.call(
        "You are a code reviewer.",
        tools=[],
        messages=[{"role": "user", "content": "Review this diff"}],
    )
    print(response.content)
"""

import json
from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field
import logging

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion
from tenacity import retry, stop_after_attempt, wait_exponential

from config import APIConfig, DEFAULT_MODEL, validate_api_key

logger = logging.getLogger(__name__)


@dataclass
class ToolCall:
    """A tool invocation requested by the model"""
    name: str
    arguments: Union[Dict[str, Any], str] = field(default_factory=dict)
    id: str = ""

    def to_openai(self) -> Dict[str, Any]:
        """Render as an assistant message tool_calls entry"""
        arguments = self.arguments
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": arguments},
        }


@dataclass
class ModelResponse:
    """
    Structured response from a model call

    Attributes:
        content: The main response text
        tool_calls: Tool calls requested by the model, if any
        finish_reason: Why the response ended
        usage: Token usage statistics
        model: Model used for this response
    """
    content: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    finish_reason: str = "stop"
    usage: Optional[Dict[str, int]] = None
    model: str = ""

    @property
    def has_tool_calls(self) -> bool:
        """Check if response contains tool calls"""
        return bool(self.tool_calls)

    @property
    def total_tokens(self) -> int:
        """Get total tokens used"""
        return self.usage.get("total_tokens", 0) if self.usage else 0


class OpenAIChatClient:
    """
    Model-call client for OpenAI-compatible chat completions APIs.

    Works with the official OpenAI API or any provider exposing the same
    interface (set SWARM_API_BASE_URL).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = DEFAULT_MODEL,
    ):
        """
        Initialize the client.

        Args:
            api_key: API key (defaults to SWARM_API_KEY / OPENAI_API_KEY)
            base_url: API base URL (defaults to SWARM_API_BASE_URL)
            model: Model used when the caller does not pass one
        """
        config = APIConfig.from_env(base_url)
        if api_key:
            config.api_key = api_key

        self.async_client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
        )
        self.model = model

        logger.info(f"Initialized OpenAIChatClient with model: {model}")

    def _build_messages(
        self,
        instructions: str,
        messages: List[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        """Prepend the agent instructions as the system message"""
        built = []
        if instructions:
            built.append({"role": "system", "content": instructions})
        built.extend(messages)
        return built

    def _parse_response(self, response: ChatCompletion) -> ModelResponse:
        """Parse API response into ModelResponse"""
        choice = response.choices[0]
        message = choice.message

        tool_calls = []
        if getattr(message, "tool_calls", None):
            tool_calls = [
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    # Decoded by the tool executor so bad JSON fails only that call
                    arguments=tc.function.arguments,
                )
                for tc in message.tool_calls
            ]

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return ModelResponse(
            content=message.content or "",
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
            model=response.model,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        reraise=True,
    )
    async def call(
        self,
        instructions: str,
        tools: List[Dict[str, Any]],
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> ModelResponse:
        """
        Send the conversation and get the model's next turn.

        Args:
            instructions: Agent system prompt
            tools: Tool definitions in OpenAI function calling format
            messages: Full message history
            model: Model override
            temperature: Sampling temperature
            max_tokens: Completion token limit
            **kwargs: Ignored caller context (e.g. agent_name)

        Returns:
            ModelResponse with content and requested tool calls
        """
        params = {
            "model": model or self.model,
            "messages": self._build_messages(instructions, messages),
        }
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        if tools:
            params["tools"] = tools
            params["tool_choice"] = "auto"

        response = await self.async_client.chat.completions.create(**params)
        return self._parse_response(response)


class EchoClient:
    """
    Offline client that never requests tools.

    Each call acknowledges the conversation, so every turn is terminal.
    Useful for demos and dry runs without an API key.
    """

    async def call(
        self,
        instructions: str,
        tools: List[Dict[str, Any]],
        messages: List[Dict[str, Any]],
        agent_name: str = "agent",
        **kwargs
    ) -> ModelResponse:
        content = f"[{agent_name}] Processed {len(messages)} messages"
        return ModelResponse(
            content=content,
            usage={"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0},
            model="echo",
        )


def create_client(**kwargs) -> Union[OpenAIChatClient, EchoClient]:
    """Create an OpenAIChatClient when an API key is configured, else an EchoClient"""
    if validate_api_key():
        return OpenAIChatClient(**kwargs)
    logger.warning("No model API key configured, agents will use the offline EchoClient")
    return EchoClient()
