"""
Unit tests for tool-call reassembly from streamed deltas.
"""

from types import SimpleNamespace

from application.services.streaming.tool_call_accumulator import (
    ToolCall,
    ToolCallAccumulator,
)


class TestToolCallAccumulator:
    """Test fragment open/append/close rules."""

    def test_fragments_are_concatenated(self):
        """Test that continuation deltas append to the open call."""
        acc = ToolCallAccumulator()
        acc.add_delta("call_1", "calc", '{"expr')
        acc.add_delta(None, "ulate", 'ession": ')
        acc.add_delta(None, None, '"2 + 2"}')

        calls = acc.finish()

        assert calls == [ToolCall(id="call_1", name="calculate", arguments='{"expression": "2 + 2"}')]

    def test_new_id_closes_previous_call(self):
        """Test that a delta with a new id finalizes the open call."""
        acc = ToolCallAccumulator()
        acc.add_delta("call_1", "get_weather", '{"location": "Kigali"}')
        acc.add_delta("call_2", "get_current_time", "{}")

        calls = acc.finish()

        assert [c.id for c in calls] == ["call_1", "call_2"]
        assert [c.name for c in calls] == ["get_weather", "get_current_time"]

    def test_call_without_name_is_dropped(self):
        """Test that a call whose name never arrived is discarded."""
        acc = ToolCallAccumulator()
        acc.add_delta("call_1", None, '{"a": 1}')
        acc.add_delta("call_2", "calculate", '{"expression": "1"}')

        calls = acc.finish()

        assert len(calls) == 1
        assert calls[0].id == "call_2"

    def test_continuation_without_open_fragment_is_ignored(self):
        """Test that an id-less delta before any call is ignored."""
        acc = ToolCallAccumulator()
        acc.add_delta(None, "calculate", "{}")

        assert acc.finish() == []
        assert not acc.has_open_fragment

    def test_finish_closes_open_fragment(self):
        """Test that finish finalizes the last open call."""
        acc = ToolCallAccumulator()
        acc.add_delta("call_1", "calculate", "")
        assert acc.has_open_fragment

        calls = acc.finish()

        assert not acc.has_open_fragment
        assert calls[0].arguments == ""

    def test_add_tool_call_delta_reads_provider_objects(self):
        """Test reading id/name/arguments from a provider delta object."""
        acc = ToolCallAccumulator()
        acc.add_tool_call_delta(
            SimpleNamespace(id="call_9", function=SimpleNamespace(name="web_search", arguments='{"q'))
        )
        acc.add_tool_call_delta(
            SimpleNamespace(id=None, function=SimpleNamespace(name=None, arguments='uery": "x"}'))
        )

        calls = acc.finish()

        assert calls[0].name == "web_search"
        assert calls[0].arguments == '{"query": "x"}'

    def test_to_message_dict(self):
        """Test the assistant tool_calls entry format."""
        call = ToolCall(id="call_1", name="calculate", arguments='{"expression": "1+1"}')

        assert call.to_message_dict() == {
            "id": "call_1",
            "type": "function",
            "function": {"name": "calculate", "arguments": '{"expression": "1+1"}'},
        }
