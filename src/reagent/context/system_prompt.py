"""System prompt assembly under per-section token caps."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from reagent.tokens.estimator import TokenEstimator

_ELLIPSIS = "…"


@dataclass(frozen=True)
class SectionBudget:
    """Per-section token caps. Their sum should stay within ``TokenBudget.system_reserve``."""

    core: int = 250
    memories: int = 80
    disabled_tools: int = 40


class SystemPromptBuilder:
    """
    Builds the system turn from caller-supplied instructions plus optional
    context sections, truncating each section to its token cap.

    Sections, in order:

    1. Core instructions (always present).
    2. Disabled features, so the model can tell the user what to enable.
    3. A memory summary string produced by an external memory store.

    Example::

        builder = SystemPromptBuilder(TokenEstimator())
        prompt = builder.build(
            "You are a concise assistant.",
            disabled_tools=[("weather", "Get weather forecasts")],
            memory_summary="User prefers metric units.",
        )
    """

    def __init__(
        self,
        estimator: TokenEstimator,
        budget: SectionBudget | None = None,
    ) -> None:
        self._estimator = estimator
        self._budget = budget or SectionBudget()
        self._logger = structlog.get_logger("reagent.system_prompt")

    def build(
        self,
        instructions: str,
        *,
        disabled_tools: Sequence[tuple[str, str]] = (),
        memory_summary: str | None = None,
    ) -> str:
        """
        Assemble the system prompt.

        Args:
            instructions: Core instructions.
            disabled_tools: ``(name, capability)`` pairs for tools the user has turned off.
            memory_summary: Pre-rendered memory text, or None.

        Returns:
            The assembled prompt.
        """
        sections = [self.truncate(instructions.strip(), self._budget.core)]

        if disabled_tools:
            listing = "\n".join(f"- {name}: {capability}" for name, capability in disabled_tools)
            sections.append(
                "DISABLED FEATURES (tell user to enable in Settings if they ask for these):\n"
                + self.truncate(listing, self._budget.disabled_tools)
            )

        if memory_summary and memory_summary.strip():
            sections.append(
                "CONTEXT:\n" + self.truncate(memory_summary.strip(), self._budget.memories)
            )

        prompt = "\n\n".join(sections)
        self._logger.debug(
            "system_prompt_built",
            tokens=self._estimator.estimate(prompt),
            sections=len(sections),
        )
        return prompt

    def truncate(self, text: str, max_tokens: int) -> str:
        """
        Return the longest prefix of ``text`` (plus an ellipsis) that fits ``max_tokens``.

        Text that already fits is returned unchanged.
        """
        if self._estimator.estimate(text) <= max_tokens:
            return text
        if max_tokens <= 0:
            return ""
        low, high = 0, len(text)
        while low < high:
            mid = (low + high + 1) // 2
            if self._estimator.estimate(text[:mid] + _ELLIPSIS) <= max_tokens:
                low = mid
            else:
                high = mid - 1
        return text[:low].rstrip() + _ELLIPSIS
