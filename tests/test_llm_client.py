#!/usr/bin/env python3
"""
Tests for llm_client.py module
"""

import os
import pytest
from unittest.mock import AsyncMock, patch

from llm_client import (
    ToolCall,
    ModelResponse,
    OpenAIChatClient,
    EchoClient,
    create_client,
)


class TestToolCall:
    """Test ToolCall dataclass"""

    def test_to_openai_encodes_dict_arguments(self):
        call = ToolCall(name="lint", arguments={"path": "src"}, id="call_1")
        assert call.to_openai() == {
            "id": "call_1",
            "type": "function",
            "function": {"name": "lint", "arguments": '{"path": "src"}'},
        }

    def test_to_openai_keeps_string_arguments(self):
        call = ToolCall(name="lint", arguments='{"path": "src"}', id="call_1")
        assert call.to_openai()["function"]["arguments"] == '{"path": "src"}'


class TestModelResponse:
    """Test ModelResponse dataclass"""

    def test_default_values(self):
        response = ModelResponse()
        assert response.content == ""
        assert response.tool_calls == []
        assert response.finish_reason == "stop"
        assert response.has_tool_calls is False

    def test_total_tokens(self):
        response = ModelResponse(usage={"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15})
        assert response.total_tokens == 15
        assert ModelResponse(content="Hello").total_tokens == 0


class TestOpenAIChatClient:
    """Test OpenAIChatClient"""

    def test_initialization_uses_env_key(self, mock_env_with_key, mock_async_openai):
        client = OpenAIChatClient(model="gpt-test")
        assert client.model == "gpt-test"
        call_kwargs = mock_async_openai['async_class'].call_args[1]
        assert call_kwargs['api_key'] == mock_env_with_key

    def test_custom_api_key(self, mock_env_with_key, mock_async_openai):
        OpenAIChatClient(api_key="custom_key")
        call_kwargs = mock_async_openai['async_class'].call_args[1]
        assert call_kwargs['api_key'] == "custom_key"

    def test_initialization_without_key_raises(self, mock_async_openai):
        with pytest.raises(ValueError):
            OpenAIChatClient()

    def test_build_messages_prepends_instructions(self, mock_env_with_key, mock_async_openai):
        client = OpenAIChatClient()
        built = client._build_messages("Be terse.", [{"role": "user", "content": "hi"}])
        assert built[0] == {"role": "system", "content": "Be terse."}
        assert built[1] == {"role": "user", "content": "hi"}

    def test_parse_response(self, mock_env_with_key, mock_async_openai, sample_chat_response):
        client = OpenAIChatClient()
        response = client._parse_response(sample_chat_response)
        assert response.content == "Test response"
        assert response.tool_calls == []
        assert response.total_tokens == 15
        assert response.model == "gpt-4o-mini"

    def test_parse_tool_call_response(self, mock_env_with_key, mock_async_openai, sample_tool_call_response):
        client = OpenAIChatClient()
        response = client._parse_response(sample_tool_call_response)
        assert response.content == ""
        assert response.has_tool_calls
        tool_call = response.tool_calls[0]
        assert tool_call.id == "call_123"
        assert tool_call.name == "get_weather"
        assert tool_call.arguments == '{"city": "Beijing"}'
        assert response.finish_reason == "tool_calls"
        assert response.usage is None

    @pytest.mark.asyncio
    async def test_call_sends_tools(self, mock_env_with_key, mock_async_openai, sample_chat_response):
        create = AsyncMock(return_value=sample_chat_response)
        mock_async_openai['async'].chat.completions.create = create
        client = OpenAIChatClient(model="gpt-test")

        tools = [{"type": "function", "function": {"name": "lint", "parameters": {}}}]
        response = await client.call(
            "Instructions",
            tools,
            [{"role": "user", "content": "hi"}],
            temperature=0.2,
            agent_name="Coder",
        )

        assert response.content == "Test response"
        params = create.call_args[1]
        assert params["model"] == "gpt-test"
        assert params["tools"] == tools
        assert params["tool_choice"] == "auto"
        assert params["temperature"] == 0.2
        assert params["messages"][0]["role"] == "system"
        assert "agent_name" not in params

    @pytest.mark.asyncio
    async def test_call_without_tools(self, mock_env_with_key, mock_async_openai, sample_chat_response):
        create = AsyncMock(return_value=sample_chat_response)
        mock_async_openai['async'].chat.completions.create = create
        client = OpenAIChatClient()

        await client.call("", [], [{"role": "user", "content": "hi"}], model="other")

        params = create.call_args[1]
        assert params["model"] == "other"
        assert "tools" not in params
        assert "tool_choice" not in params
        assert params["messages"] == [{"role": "user", "content": "hi"}]


class TestEchoClient:
    """Test the offline EchoClient"""

    @pytest.mark.asyncio
    async def test_echo_counts_messages(self):
        client = EchoClient()
        messages = [{"role": "user", "content": "a"}, {"role": "assistant", "content": "b"}]
        response = await client.call("", [], messages, agent_name="Coder")
        assert response.content == "[Coder] Processed 2 messages"
        assert response.has_tool_calls is False
        assert response.model == "echo"


class TestCreateClient:
    """Test create_client factory"""

    def test_without_key_returns_echo(self):
        assert isinstance(create_client(), EchoClient)

    def test_with_key_returns_openai_client(self, mock_env_with_key, mock_async_openai):
        assert isinstance(create_client(), OpenAIChatClient)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
