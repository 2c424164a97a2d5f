"""Context window management: trimming and system prompt assembly."""

from reagent.context.system_prompt import SectionBudget, SystemPromptBuilder
from reagent.context.trimmer import HistoryTrimmer, TrimResult, group_exchanges

__all__ = [
    "HistoryTrimmer",
    "SectionBudget",
    "SystemPromptBuilder",
    "TrimResult",
    "group_exchanges",
]
