"""Tests for the model protocol types and the scripted model."""

import pytest

from reactloop.agent.cancellation import CancellationToken
from reactloop.core.errors import OperationCancelledError
from reactloop.models import Message, ModelProtocol, ModelResponse, ScriptedModel, ToolCall


class TestToolCall:
    """Argument decoding."""

    def test_mapping_arguments(self) -> None:
        assert ToolCall(id="1", name="t", arguments={"a": 1}).parse_arguments() == {"a": 1}

    def test_json_arguments(self) -> None:
        assert ToolCall(id="1", name="t", arguments='{"a": 1}').parse_arguments() == {"a": 1}

    def test_empty_string_is_empty_object(self) -> None:
        assert ToolCall(id="1", name="t", arguments="  ").parse_arguments() == {}

    def test_invalid_json(self) -> None:
        with pytest.raises(ValueError):
            ToolCall(id="1", name="t", arguments="{oops").parse_arguments()

    def test_non_object_json(self) -> None:
        with pytest.raises(ValueError, match="JSON object"):
            ToolCall(id="1", name="t", arguments="[1, 2]").parse_arguments()


class TestMessage:
    def test_to_dict(self) -> None:
        message = Message(
            role="assistant",
            content="Checking.",
            tool_calls=(ToolCall(id="c1", name="lookup", arguments={"id": "42"}),),
        )
        assert message.to_dict() == {
            "role": "assistant",
            "content": "Checking.",
            "tool_calls": [{"id": "c1", "name": "lookup", "arguments": {"id": "42"}}],
        }

    def test_tool_message(self) -> None:
        assert Message(role="tool", content="{}", tool_call_id="c1").to_dict()["tool_call_id"] == "c1"


class TestScriptedModel:
    """Mock model used by tests and the replay command."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(ScriptedModel(), ModelProtocol)

    @pytest.mark.asyncio
    async def test_responses_cycle(self) -> None:
        model = ScriptedModel([ModelResponse(content="a"), ModelResponse(content="b")])
        contents = [(await model.call("k", [], [])).content for _ in range(3)]
        assert contents == ["a", "b", "a"]
        assert model.call_count == 3

    @pytest.mark.asyncio
    async def test_default_response(self) -> None:
        model = ScriptedModel()
        assert (await model.call("k", [], [])).content == "Mock response #1"

    @pytest.mark.asyncio
    async def test_scripted_exception_raised(self) -> None:
        model = ScriptedModel([ConnectionError("reset")])
        with pytest.raises(ConnectionError):
            await model.call("k", [], [])

    @pytest.mark.asyncio
    async def test_records_calls(self) -> None:
        model = ScriptedModel()
        await model.call("tool_calling", [Message(role="user", content="hi")], [])
        [call] = model.calls
        assert call.task_kind == "tool_calling"
        assert call.messages[0].content == "hi"

    @pytest.mark.asyncio
    async def test_cancelled_token_raises(self) -> None:
        token = CancellationToken()
        token.cancel("server_shutdown")
        with pytest.raises(OperationCancelledError) as exc_info:
            await ScriptedModel().call("k", [], [], cancel_token=token)
        assert exc_info.value.reason == "server_shutdown"

    @pytest.mark.asyncio
    async def test_streams_words(self) -> None:
        chunks: list[str] = []
        model = ScriptedModel([ModelResponse(content="one two")], stream=True)
        await model.call("k", [], [], on_chunk=chunks.append)
        assert chunks == ["one ", "two "]

    def test_has_tool_calls(self) -> None:
        assert not ModelResponse(content="x").has_tool_calls
        assert ModelResponse(tool_calls=(ToolCall(id="1", name="t"),)).has_tool_calls
