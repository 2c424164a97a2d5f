"""Budget-aware history trimming: standard exchange trim plus an aggressive escape valve."""

from __future__ import annotations

import structlog
from pydantic import BaseModel

from reagent.history.conversation import ConversationHistory
from reagent.models.config import TokenBudget
from reagent.models.message import Turn
from reagent.tokens.estimator import TokenEstimator

# Aggressive trim keeps this many non-system turns (one user/assistant exchange).
AGGRESSIVE_KEEP_TURNS = 2


class TrimResult(BaseModel):
    """The result of a trimming pass."""

    removed_count: int
    tokens_before: int
    tokens_after: int
    aggressive: bool = False
    """True if the aggressive escape valve ran."""

    @property
    def changed(self) -> bool:
        return self.removed_count > 0


def group_exchanges(turns: list[Turn]) -> list[list[Turn]]:
    """
    Split non-system turns into exchanges.

    An exchange starts at each user turn and owns every assistant and tool
    turn up to the next user turn. Turns before the first user turn (possible
    in loaded sessions) form their own leading group.
    """
    groups: list[list[Turn]] = []
    current: list[Turn] = []
    for turn in turns:
        if turn.role == "system":
            continue
        if turn.role == "user" and current:
            groups.append(current)
            current = []
        current.append(turn)
    if current:
        groups.append(current)
    return groups


class HistoryTrimmer:
    """
    Keeps the estimated cost of history within ``TokenBudget.max_history_tokens``.

    Standard trim walks exchanges oldest first and discards their non-pinned
    turns one exchange at a time until the history fits. The most recent
    exchange and the system turn are never touched.

    When that is not enough (one huge exchange), :meth:`fit` falls back to
    :meth:`aggressive_trim`, which keeps only the system turn and the last two
    non-system turns regardless of pinning. Pinning is a preference, not a
    guarantee.

    Example::

        trimmer = HistoryTrimmer(TokenEstimator(), TokenBudget())
        result = trimmer.fit(history)
        if result.aggressive:
            ...
    """

    def __init__(self, estimator: TokenEstimator, budget: TokenBudget) -> None:
        self._estimator = estimator
        self._budget = budget
        self._logger = structlog.get_logger("reagent.trimmer")

    def history_tokens(self, history: ConversationHistory) -> int:
        """Estimated cost of the non-system turns."""
        return self._estimator.estimate_turns(history.non_system())

    def is_over_budget(self, history: ConversationHistory) -> bool:
        return not self._budget.fits(self.history_tokens(history))

    def trim(self, history: ConversationHistory) -> TrimResult:
        """
        Run a standard trim pass.

        Returns:
            TrimResult describing how many turns were discarded.
        """
        turns = history.non_system()
        tokens_before = self._estimator.estimate_turns(turns)
        if self._budget.fits(tokens_before):
            return TrimResult(removed_count=0, tokens_before=tokens_before, tokens_after=tokens_before)

        keep = {turn.id for turn in turns}
        tokens = tokens_before
        # The newest exchange is never a candidate.
        for exchange in group_exchanges(turns)[:-1]:
            if self._budget.fits(tokens):
                break
            # Tool results of a pinned request stay with it.
            pinned_calls: set[str] = set()
            for turn in exchange:
                if turn.pinned:
                    pinned_calls |= turn.requested_call_ids
                    continue
                if turn.role == "tool" and turn.tool_call_id in pinned_calls:
                    continue
                keep.discard(turn.id)
                tokens -= self._estimator.estimate(turn.content)

        removed = history.retain(keep)
        tokens_after = self.history_tokens(history)
        if removed:
            self._logger.info(
                "history_trimmed",
                removed=removed,
                tokens_before=tokens_before,
                tokens_after=tokens_after,
                budget=self._budget.max_history_tokens,
            )
        return TrimResult(
            removed_count=removed, tokens_before=tokens_before, tokens_after=tokens_after
        )

    def aggressive_trim(self, history: ConversationHistory) -> int:
        """
        Collapse history to the system turn plus the last two non-system turns.

        If a surviving tool turn answers an assistant turn that would be
        discarded, that assistant turn and all of its tool turns are kept too,
        so the provider never sees a tool result without its request.

        Returns:
            Number of turns discarded; 0 when there were already <= 2.
        """
        turns = history.non_system()
        if len(turns) <= AGGRESSIVE_KEEP_TURNS:
            return 0
        tail = turns[-AGGRESSIVE_KEEP_TURNS:]
        keep = {turn.id for turn in tail}
        unanswered = {turn.tool_call_id for turn in tail if turn.role == "tool"}
        for turn in reversed(turns[:-AGGRESSIVE_KEEP_TURNS]):
            if not unanswered:
                break
            if turn.role == "assistant" and turn.requested_call_ids & unanswered:
                keep.add(turn.id)
                keep.update(
                    t.id for t in turns if t.role == "tool" and t.tool_call_id in turn.requested_call_ids
                )
                unanswered -= turn.requested_call_ids
        removed = history.retain(keep)
        self._logger.warning("history_aggressive_trim", removed=removed, kept=len(history))
        return removed

    def fit(self, history: ConversationHistory) -> TrimResult:
        """Standard trim, then the aggressive escape valve if still over budget."""
        result = self.trim(history)
        if self._budget.fits(result.tokens_after):
            return result
        removed = self.aggressive_trim(history)
        return TrimResult(
            removed_count=result.removed_count + removed,
            tokens_before=result.tokens_before,
            tokens_after=self.history_tokens(history),
            aggressive=True,
        )
