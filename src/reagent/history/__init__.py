"""Conversation history."""

from reagent.history.conversation import ConversationHistory, dump_turns, load_turns

__all__ = ["ConversationHistory", "dump_turns", "load_turns"]
