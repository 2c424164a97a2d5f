"""Provider boundary and bundled transports."""

from reagent.providers.base import LLMProvider
from reagent.providers.litellm_provider import LiteLLMProvider, to_chat_messages

__all__ = ["LLMProvider", "LiteLLMProvider", "to_chat_messages"]
