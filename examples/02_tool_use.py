"""
Example 02: Tool Use with a BYO Provider
========================================

Demonstrates the ReAct loop dispatching tools:
- A TypedTool with pydantic-validated arguments
- A FunctionTool wrapping a plain function
- A disabled tool surfaced in the system prompt
- Following tool calls through callbacks and the event bus

The provider here is a stub that asks for the calculator once and then
answers, so it runs without any API key. Swap it for LiteLLMProvider to
let a real model drive the loop.

Run:
    uv run python examples/02_tool_use.py
"""

import asyncio
import json
import sys
from collections.abc import AsyncIterator, Sequence
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pydantic import BaseModel  # noqa: E402

from reagent import (  # noqa: E402
    Agent,
    AgentCallbacks,
    AgentEvent,
    FunctionTool,
    LLMProvider,
    StreamChunk,
    ToolCall,
    ToolDefinition,
    ToolPriority,
    ToolRegistry,
    Turn,
    TypedTool,
)


class CalculatorArgs(BaseModel):
    expression: str


class Calculator(TypedTool[CalculatorArgs]):
    name = "calculator"
    description = "Evaluate a simple arithmetic expression like '85 * 0.2'"
    priority = ToolPriority.CORE
    arguments_model = CalculatorArgs

    async def run(self, args: CalculatorArgs) -> str:
        left, op, right = args.expression.split()
        a, b = float(left), float(right)
        result = {"+": a + b, "-": a - b, "*": a * b, "/": a / b}[op]
        return json.dumps({"result": result})


def weather(city: str) -> dict:
    """Get the current weather for a city"""
    return {"city": city, "condition": "sunny", "temp_c": 21}


class StubProvider(LLMProvider):
    """Requests the calculator on the first call, then reads the tool result back."""

    name = "stub"

    async def stream(
        self,
        turns: Sequence[Turn],
        tools: Sequence[ToolDefinition],
    ) -> AsyncIterator[StreamChunk]:
        last = turns[-1]
        if last.role == "user":
            call = ToolCall(name="calculator", arguments='{"expression": "85 * 0.2"}')
            yield StreamChunk(text="Let me calculate that. ")
            yield StreamChunk(tool_calls=(call,), is_complete=True)
            return
        result = json.loads(last.content).get("result")
        for word in f"20% of 85 is {result:g}.".split(" "):
            yield StreamChunk(text=word + " ")
        yield StreamChunk(is_complete=True)


class PrintingCallbacks(AgentCallbacks):
    def on_thinking(self) -> None:
        print("  ...thinking")

    def on_tool_call(self, name: str, arguments: str) -> None:
        print(f"  -> {name}({arguments})")

    def on_tool_result(self, name: str, result: str, success: bool) -> None:
        print(f"  <- {name}: {result} ({'ok' if success else 'failed'})")


async def main() -> None:
    print("=== Reagent Tool Use Example ===\n")

    registry = ToolRegistry([Calculator(), FunctionTool(weather)])
    registry.disable("weather")

    agent = Agent(provider=StubProvider(), tools=registry, callbacks=PrintingCallbacks())
    agent.event_bus.subscribe(
        AgentEvent.RUN_COMPLETED,
        lambda event, payload: print(
            f"  [run {payload['run_id']}: {payload['iterations']} tool round(s), "
            f"{payload['provider_calls']} provider call(s)]"
        ),
    )
    prompt = agent.build_system_prompt("You are a concise assistant.")
    print(f"System prompt:\n{prompt}\n")

    answer = await agent.run("What's 20% of 85?")
    print(f"\nAnswer: {answer}")


if __name__ == "__main__":
    asyncio.run(main())
