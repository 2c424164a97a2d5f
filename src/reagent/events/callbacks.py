"""Observability callbacks a presentation layer implements to follow a run."""

from __future__ import annotations


class AgentCallbacks:
    """
    Hooks invoked synchronously from the loop driving ``Agent.run()``.

    Every method is a no-op by default; override the ones you need.
    Implementations must return promptly, since a blocking callback stalls
    the loop. Exceptions raised here are logged and ignored.

    Ordering: ``on_stream_chunk`` follows the provider's stream order;
    ``on_tool_call``/``on_tool_result`` pairs follow the order the model
    requested the calls.
    """

    def on_thinking(self) -> None:
        """A provider call (or retry attempt) is starting."""

    def on_tool_call(self, name: str, arguments: str) -> None:
        """A tool is about to be dispatched."""

    def on_tool_result(self, name: str, result: str, success: bool) -> None:
        """A tool finished. On failure ``result`` is the JSON failure payload."""

    def on_stream_chunk(self, text: str) -> None:
        """A text fragment arrived from the provider."""

    def on_response(self, text: str) -> None:
        """The final answer for this run."""

    def on_error(self, error: Exception) -> None:
        """The run is about to fail with ``error``."""
