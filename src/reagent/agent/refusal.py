"""Replace bare model refusals with a redirect to what the assistant can do."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

DEFAULT_REFUSAL_PHRASES: tuple[str, ...] = (
    "i cannot fulfill",
    "i can't fulfill",
    "i'm not able to",
    "i am not able to",
    "i cannot help with",
    "i can't help with",
    "i'm unable to",
    "i am unable to",
    "i cannot assist",
    "i can't assist",
    "sorry, but i cannot",
    "sorry, but i can't",
)

DEFAULT_REFUSAL_REDIRECT = (
    "I'm best at helping with tasks like checking your calendar, setting reminders, "
    "getting weather updates, and doing calculations. What can I help you with?"
)


class RefusalFilter:
    """
    Detects refusals in final answers and substitutes a redirect.

    Only final text passes through here; errors never do, so a genuine
    failure is never masked.
    """

    def __init__(
        self,
        phrases: Iterable[str] = DEFAULT_REFUSAL_PHRASES,
        redirect: str = DEFAULT_REFUSAL_REDIRECT,
    ) -> None:
        self._phrases = tuple(p.lower() for p in phrases)
        self._redirect = redirect
        self._logger = structlog.get_logger("reagent.agent")

    def is_refusal(self, text: str) -> bool:
        # Curly apostrophes are common in model output.
        lowered = text.lower().replace("’", "'")
        return any(phrase in lowered for phrase in self._phrases)

    def apply(self, text: str) -> str:
        if self.is_refusal(text):
            self._logger.info("refusal_detected")
            return self._redirect
        return text
