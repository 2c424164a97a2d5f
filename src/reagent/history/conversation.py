"""Ordered, append-only conversation history with invariant checking."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

import structlog
from pydantic import TypeAdapter

from reagent.errors import HistoryInvariantError
from reagent.models.message import Turn

_TURN_LIST = TypeAdapter(list[Turn])


class ConversationHistory:
    """
    The ordered turn log replayed verbatim to the provider.

    Invariants:
    1. At most one ``system`` turn, and only at index 0.
    2. Every ``tool`` turn is preceded by an ``assistant`` turn whose
       ``tool_calls`` contain a request with the matching ID.

    Violations are programming errors. In strict mode they raise
    :class:`~reagent.errors.HistoryInvariantError`; otherwise the offending
    turn is dropped and a warning is logged, so a corrupted saved session
    degrades instead of failing to load.

    Turns themselves are immutable; the only mutations are append, wholesale
    replacement and removal by ``retain()`` (used by trimming).
    """

    def __init__(self, *, strict: bool = False) -> None:
        self._turns: list[Turn] = []
        self._strict = strict
        self._logger = structlog.get_logger("reagent.history")

    # ── Read access ───────────────────────────────────────────────────────────

    @property
    def turns(self) -> list[Turn]:
        """Full turn list (copy), system turn included, for submission to the provider."""
        return list(self._turns)

    @property
    def system_turn(self) -> Turn | None:
        if self._turns and self._turns[0].role == "system":
            return self._turns[0]
        return None

    def non_system(self) -> list[Turn]:
        """All turns except the system turn, in order. Used for persistence/export."""
        return [t for t in self._turns if t.role != "system"]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(list(self._turns))

    # ── Mutation ──────────────────────────────────────────────────────────────

    def append(self, turn: Turn) -> bool:
        """
        Append a turn after validating it against the current history.

        Returns:
            True if the turn was appended, False if it was dropped (non-strict mode).

        Raises:
            HistoryInvariantError: In strict mode, if the turn violates an invariant.
        """
        problem = self._violation(turn, self._turns)
        if problem is not None:
            return self._reject(turn, problem)
        self._turns.append(turn)
        return True

    def set_system(self, content: str) -> None:
        """Install or replace the leading system turn."""
        system = Turn.system(content)
        if self.system_turn is not None:
            self._turns[0] = system
        else:
            self._turns.insert(0, system)

    def replace(self, turns: Iterable[Turn], *, keep_system: bool = True) -> int:
        """
        Replace the history wholesale, re-validating every turn.

        System turns in ``turns`` are ignored; the current system turn is kept
        when ``keep_system`` is True.

        Returns:
            Number of turns dropped during validation.
        """
        system = self.system_turn if keep_system else None
        self._turns = [system] if system is not None else []
        dropped = 0
        for turn in turns:
            if turn.role == "system":
                continue
            if not self.append(turn):
                dropped += 1
        return dropped

    def retain(self, keep_ids: set[str]) -> int:
        """
        Keep only turns whose ID is in ``keep_ids`` (the system turn is always kept).

        Tool turns whose originating assistant turn is not retained are removed
        as well so the result still satisfies the invariants.

        Returns:
            Number of turns removed.
        """
        before = len(self._turns)
        kept: list[Turn] = []
        for turn in self._turns:
            if turn.role != "system" and turn.id not in keep_ids:
                continue
            if turn.role == "tool" and self._violation(turn, kept) is not None:
                continue
            kept.append(turn)
        self._turns = kept
        return before - len(kept)

    def clear(self, *, keep_system: bool = True) -> None:
        """Drop every turn, optionally keeping the system turn."""
        system = self.system_turn if keep_system else None
        self._turns = [system] if system is not None else []

    # ── Validation ────────────────────────────────────────────────────────────

    @staticmethod
    def _violation(turn: Turn, preceding: Sequence[Turn]) -> str | None:
        if turn.role == "system":
            if preceding:
                return "system turn must be first"
            return None
        if turn.role == "tool":
            if turn.tool_call_id is None:
                return "tool turn has no tool_call_id"
            for prior in reversed(preceding):
                if prior.role == "assistant" and turn.tool_call_id in prior.requested_call_ids:
                    return None
            return f"no assistant turn requested tool call {turn.tool_call_id!r}"
        return None

    def _reject(self, turn: Turn, problem: str) -> bool:
        if self._strict:
            raise HistoryInvariantError(f"Invalid {turn.role} turn {turn.id}: {problem}")
        self._logger.warning(
            "history_turn_dropped", turn_id=turn.id, role=turn.role, reason=problem
        )
        return False


def dump_turns(turns: Sequence[Turn]) -> str:
    """Serialize turns (typically ``get_messages_for_save()``) to a JSON string."""
    return _TURN_LIST.dump_json(list(turns)).decode()


def load_turns(data: str | bytes) -> list[Turn]:
    """Parse turns previously produced by :func:`dump_turns`."""
    return _TURN_LIST.validate_json(data)
