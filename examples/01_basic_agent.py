"""
Example 01: Basic Agent
=======================

Demonstrates the simplest end-to-end usage of Agent:
- Creating an agent around a LiteLLMProvider
- Streaming text through callbacks
- Monitoring context usage with get_context_stats()
- Saving and restoring a conversation

Run without an API key:
    REAGENT_MOCK_LLM=1 uv run python examples/01_basic_agent.py

Run with a real LLM (set your API key first):
    OPENAI_API_KEY=sk-... uv run python examples/01_basic_agent.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


async def main() -> None:
    from reagent import Agent, AgentCallbacks, LiteLLMProvider, dump_turns, load_turns

    class PrintingCallbacks(AgentCallbacks):
        def on_stream_chunk(self, text: str) -> None:
            print(text, end="", flush=True)

        def on_response(self, text: str) -> None:
            print()

    print("=== Reagent Basic Agent Example ===\n")

    agent = Agent(
        provider=LiteLLMProvider("openai/gpt-4o-mini"),
        callbacks=PrintingCallbacks(),
        system_prompt="You are a helpful coding assistant. Be concise.",
    )

    questions = [
        "What is Python's GIL?",
        "How does asyncio work at a high level?",
        "When should I use asyncio vs multiprocessing?",
    ]
    for i, question in enumerate(questions, 1):
        print(f"Turn {i}: {question}")
        await agent.run(question)
        stats = agent.get_context_stats()
        print(
            f"  [{stats.current_tokens}/{stats.max_tokens} history tokens, "
            f"{stats.usage_percent:.0%} used, {stats.trimmed_count} trimmed]\n"
        )

    saved = dump_turns(agent.get_messages_for_save())
    print(f"Saved conversation: {len(saved)} bytes of JSON")

    restored = Agent(
        provider=LiteLLMProvider("openai/gpt-4o-mini"),
        system_prompt="You are a helpful coding assistant. Be concise.",
    )
    restored.load_messages(load_turns(saved))
    print(f"Restored agent holds {len(restored.get_history())} turns")


if __name__ == "__main__":
    asyncio.run(main())
