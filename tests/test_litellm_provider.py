"""Tests for the litellm-backed provider."""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from reagent.models.message import ToolCall, ToolDefinition, Turn
from reagent.providers.litellm_provider import (
    MOCK_ENV_VAR,
    LiteLLMProvider,
    _ToolCallAccumulator,
    to_chat_messages,
)


def _chunk(content=None, tool_calls=None):
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


def _call_delta(index, call_id=None, name=None, arguments=None):
    return SimpleNamespace(
        index=index, id=call_id, function=SimpleNamespace(name=name, arguments=arguments)
    )


async def _collect(provider, turns, tools=()):
    return [chunk async for chunk in provider.stream(turns, list(tools))]


class TestChatMessages:
    def test_roles_rendered(self):
        call = ToolCall(id="call_1", name="echo", arguments='{"text": "hi"}')
        messages = to_chat_messages(
            [
                Turn.system("sys"),
                Turn.user("hi"),
                Turn.assistant("", [call]),
                Turn.tool("call_1", "echo", "hi"),
                Turn.assistant("done"),
            ]
        )
        assert messages[0] == {"role": "system", "content": "sys"}
        assert messages[2]["content"] is None
        assert messages[2]["tool_calls"][0]["function"] == {
            "name": "echo",
            "arguments": '{"text": "hi"}',
        }
        assert messages[3] == {
            "role": "tool",
            "tool_call_id": "call_1",
            "name": "echo",
            "content": "hi",
        }
        assert messages[4] == {"role": "assistant", "content": "done"}


class TestToolCallAccumulator:
    def test_reassembles_fragments_by_index(self):
        acc = _ToolCallAccumulator()
        acc.add(_call_delta(0, "call_a", "echo", '{"te'))
        acc.add(_call_delta(1, "call_b", "add", '{"a": 1}'))
        acc.add(_call_delta(0, arguments='xt": "hi"}'))

        calls = acc.calls()

        assert [c.id for c in calls] == ["call_a", "call_b"]
        assert json.loads(calls[0].arguments) == {"text": "hi"}

    def test_missing_id_generated(self):
        acc = _ToolCallAccumulator()
        acc.add(_call_delta(0, None, "echo", None))
        (call,) = acc.calls()
        assert call.id.startswith("call_")
        assert call.arguments == "{}"


class TestLiteLLMProvider:
    async def test_mock_mode(self, monkeypatch):
        monkeypatch.setenv(MOCK_ENV_VAR, "1")
        provider = LiteLLMProvider("openai/gpt-4o-mini")

        chunks = await _collect(provider, [Turn.user("What is 2+2?")])

        text = "".join(c.text or "" for c in chunks)
        assert "Mock LLM response to: What is 2+2?" in text
        assert chunks[-1].is_complete

    async def test_streams_text_and_tool_calls(self, monkeypatch):
        import litellm

        monkeypatch.delenv(MOCK_ENV_VAR, raising=False)
        captured = {}

        async def fake_stream():
            yield _chunk(content="Let me check.")
            yield _chunk(tool_calls=[_call_delta(0, "call_1", "echo", '{"text":')])
            yield _chunk(tool_calls=[_call_delta(0, arguments=' "hi"}')])
            yield SimpleNamespace(choices=[])

        async def fake_acompletion(**kwargs):
            captured.update(kwargs)
            return fake_stream()

        monkeypatch.setattr(litellm, "acompletion", fake_acompletion)
        provider = LiteLLMProvider("openai/gpt-4o-mini", temperature=0.2)
        tools = [ToolDefinition(name="echo", description="Echo text")]

        chunks = await _collect(provider, [Turn.user("hi")], tools)

        assert chunks[0].text == "Let me check."
        final = chunks[-1]
        assert final.is_complete
        assert final.tool_calls is not None
        assert final.tool_calls[0].name == "echo"
        assert json.loads(final.tool_calls[0].arguments) == {"text": "hi"}
        assert captured["stream"] is True
        assert captured["temperature"] == 0.2
        assert captured["tools"][0]["function"]["name"] == "echo"

    async def test_no_tools_key_when_none_advertised(self, monkeypatch):
        import litellm

        monkeypatch.delenv(MOCK_ENV_VAR, raising=False)
        captured = {}

        async def fake_stream():
            yield _chunk(content="ok")

        async def fake_acompletion(**kwargs):
            captured.update(kwargs)
            return fake_stream()

        monkeypatch.setattr(litellm, "acompletion", fake_acompletion)

        chunks = await _collect(LiteLLMProvider("openai/gpt-4o-mini"), [Turn.user("hi")])

        assert "tools" not in captured
        assert chunks[-1].tool_calls is None

    def test_defaults(self):
        provider = LiteLLMProvider("openai/gpt-4o-mini", max_tools=5)
        assert provider.name == "litellm:openai/gpt-4o-mini"
        assert provider.max_tools == 5
        assert provider.handles_tools_natively is False
        assert provider.is_available


@pytest.mark.parametrize("model", ["openai/gpt-4o-mini", "anthropic/claude-3-5-haiku"])
async def test_complete_drains_stream(monkeypatch, model):
    monkeypatch.setenv(MOCK_ENV_VAR, "1")
    turn = await LiteLLMProvider(model).complete([Turn.user("ping")], [])
    assert turn.role == "assistant"
    assert "ping" in turn.content
