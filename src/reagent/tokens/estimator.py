"""Script-aware heuristic token estimation."""

from __future__ import annotations

import math
import unicodedata
from collections.abc import Iterable
from itertools import groupby
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reagent.models.message import Turn

# Latin-like scripts average roughly four characters per token.
_NARROW_CHARS_PER_TOKEN = 4


def _is_wide(char: str) -> bool:
    """True for East Asian wide/fullwidth characters (CJK ideographs, kana, hangul)."""
    return unicodedata.east_asian_width(char) in ("W", "F")


class TokenEstimator:
    """
    Approximate token counting proportional to text length.

    This is not a tokenizer. Text is split into runs of wide (CJK) and narrow
    (Latin, digits, punctuation, whitespace) characters:

    - wide runs cost one token per character
    - narrow runs cost ``ceil(len / 4)`` tokens

    so mixed-script text interpolates between the two rates. Empty text is
    exactly zero tokens; any non-empty text is at least one.

    The estimator holds no state and is safe to share between agents.
    """

    def estimate(self, text: str) -> int:
        """
        Estimate the token count for a string.

        Args:
            text: The text to estimate.

        Returns:
            Estimated token count, always >= 1 for non-empty text.
        """
        if not text:
            return 0
        total = 0
        for wide, run in groupby(text, key=_is_wide):
            length = sum(1 for _ in run)
            total += length if wide else math.ceil(length / _NARROW_CHARS_PER_TOKEN)
        return max(1, total)

    def estimate_turn(self, turn: Turn) -> int:
        """Estimate a single turn from its content."""
        return self.estimate(turn.content)

    def estimate_turns(self, turns: Iterable[Turn]) -> int:
        """
        Estimate a sequence of turns.

        Always equal to the sum of ``estimate(t.content)`` over the sequence,
        so callers may subtract a removed turn's estimate from a running total.
        """
        return sum(self.estimate(turn.content) for turn in turns)
