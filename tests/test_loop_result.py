"""Tests for loop state transitions and result building."""

from reactloop.agent.loop import LoopState, LoopStatus, ToolCallRecord, build_result
from reactloop.models import Message
from reactloop.tools import ToolErrorCode, ToolResult


def _record(call_id: str, result: ToolResult) -> ToolCallRecord:
    return ToolCallRecord(
        id=call_id,
        tool_name="lookup_status",
        arguments={"order_id": "42"},
        result=result,
        timestamp=1700000000.0,
        duration_ms=3,
    )


class TestLoopState:
    def test_terminal_statuses(self) -> None:
        assert not LoopStatus.RUNNING.is_terminal
        assert all(
            status.is_terminal
            for status in (
                LoopStatus.COMPLETED,
                LoopStatus.MAX_ITERATIONS,
                LoopStatus.ERROR,
                LoopStatus.CANCELLED,
            )
        )

    def test_finish_only_once(self) -> None:
        state = LoopState()
        assert state.finish(LoopStatus.CANCELLED, cancellation_reason="timeout")
        assert not state.finish(LoopStatus.ERROR, error="late failure")
        assert state.status is LoopStatus.CANCELLED
        assert state.cancellation_reason == "timeout"
        assert state.error is None
        assert state.ended_at is not None


class TestBuildResult:
    """Result derivation from terminal state."""

    def test_content_is_last_assistant_message(self) -> None:
        state = LoopState(
            messages=[
                Message(role="user", content="Where is 42?"),
                Message(role="assistant", content="Checking."),
                Message(role="tool", content="{}", tool_call_id="c1"),
                Message(role="assistant", content="Shipped."),
            ],
            iteration=2,
        )
        state.finish(LoopStatus.COMPLETED)

        result = build_result(state)

        assert result.content == "Shipped."
        assert result.iterations == 2
        assert result.completed
        assert result.duration_ms >= 0

    def test_no_assistant_message_gives_empty_content(self) -> None:
        state = LoopState(messages=[Message(role="user", content="Hi")])
        state.finish(LoopStatus.ERROR, error="rate limited")

        result = build_result(state)

        assert result.content == ""
        assert result.error == "rate limited"
        assert not result.completed

    def test_tool_calls_copied_in_order(self) -> None:
        ok = _record("c1", ToolResult.ok("shipped"))
        failed = _record("c2", ToolResult.failure(ToolErrorCode.TOOL_NOT_FOUND, "Tool 'x' is not registered"))
        state = LoopState(tool_calls=[ok, failed], iteration=1)
        state.finish(LoopStatus.MAX_ITERATIONS)

        result = build_result(state)

        assert result.tool_calls == (ok, failed)
        assert [r.success for r in result.tool_calls] == [True, False]

    def test_to_dict(self) -> None:
        state = LoopState(tool_calls=[_record("c1", ToolResult.ok("shipped"))], iteration=1)
        state.finish(LoopStatus.CANCELLED, cancellation_reason="user_cancelled")

        data = build_result(state).to_dict()

        assert data["status"] == "cancelled"
        assert data["cancellation_reason"] == "user_cancelled"
        assert "error" not in data
        assert data["tool_calls"][0]["result"] == {"success": True, "content": "shipped"}
