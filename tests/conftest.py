#!/usr/bin/env python3
"""
Pytest configuration and shared fixtures
"""

import os
import sys
import pytest
from unittest.mock import MagicMock, patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from llm_client import ModelResponse, ToolCall


class ScriptedClient:
    """Model-call client replaying queued responses.

    Queue items may be ModelResponse objects, plain strings (terminal
    content) or exceptions (raised from call()). Once the queue is
    empty every call returns `default`.
    """

    def __init__(self, responses=None, default="done"):
        self.responses = list(responses or [])
        self.default = default
        self.calls = []

    async def call(self, instructions, tools, messages, **kwargs):
        self.calls.append({
            "instructions": instructions,
            "tools": tools,
            "messages": list(messages),
            **kwargs,
        })
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return ModelResponse(content=item)
        return item


def tool_response(*calls, content=""):
    """ModelResponse requesting the given (name, arguments) tool calls"""
    return ModelResponse(
        content=content,
        tool_calls=[
            ToolCall(id=f"call_{i}", name=name, arguments=arguments)
            for i, (name, arguments) in enumerate(calls)
        ],
        finish_reason="tool_calls",
    )


@pytest.fixture(autouse=True)
def no_api_key():
    """Keep tests offline regardless of the developer's environment"""
    with patch.dict(os.environ, {}, clear=False):
        os.environ.pop("SWARM_API_KEY", None)
        os.environ.pop("OPENAI_API_KEY", None)
        yield


@pytest.fixture
def mock_api_key():
    """Fixture to provide a mock API key"""
    return "test_api_key_12345"


@pytest.fixture
def mock_env_with_key(mock_api_key):
    """Fixture to set up environment with mock API key"""
    with patch.dict(os.environ, {"SWARM_API_KEY": mock_api_key}, clear=False):
        yield mock_api_key


@pytest.fixture
def make_agent():
    """Factory for agents backed by a ScriptedClient"""
    from swarm.agents.base_agent import Agent

    def _make(name="Agent", responses=None, default="done", role="general", capabilities=None, **kwargs):
        return Agent(
            name=name,
            role=role,
            capabilities=capabilities,
            client=ScriptedClient(responses, default=default),
            **kwargs
        )

    return _make


@pytest.fixture
def swarm():
    """A running swarm with default configuration"""
    from swarm import Swarm

    s = Swarm()
    s.init()
    yield s
    s.stop()


@pytest.fixture
def user_messages():
    return [{"role": "user", "content": "Implement the feature"}]


@pytest.fixture
def mock_async_openai():
    """Fixture to provide a mocked AsyncOpenAI client"""
    with patch('llm_client.AsyncOpenAI') as mock_async:
        mock_async_instance = MagicMock()
        mock_async.return_value = mock_async_instance
        yield {
            'async': mock_async_instance,
            'async_class': mock_async,
        }


@pytest.fixture
def sample_chat_response():
    """Fixture to provide a sample chat completion response"""
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = "Test response"
    mock_response.choices[0].message.tool_calls = None
    mock_response.choices[0].finish_reason = "stop"
    mock_response.usage = MagicMock()
    mock_response.usage.prompt_tokens = 10
    mock_response.usage.completion_tokens = 5
    mock_response.usage.total_tokens = 15
    mock_response.model = "gpt-4o-mini"
    return mock_response


@pytest.fixture
def sample_tool_call_response():
    """Fixture to provide a sample tool call response"""
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = None

    mock_tool_call = MagicMock()
    mock_tool_call.id = "call_123"
    mock_tool_call.type = "function"
    mock_tool_call.function.name = "get_weather"
    mock_tool_call.function.arguments = '{"city": "Beijing"}'

    mock_response.choices[0].message.tool_calls = [mock_tool_call]
    mock_response.choices[0].finish_reason = "tool_calls"
    mock_response.usage = None
    mock_response.model = "gpt-4o-mini"
    return mock_response
