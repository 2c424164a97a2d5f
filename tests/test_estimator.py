"""Tests for the heuristic token estimator."""

from __future__ import annotations

import math

import pytest

from reagent.models.message import Turn


class TestEstimate:
    def test_empty_is_zero(self, estimator):
        assert estimator.estimate("") == 0

    @pytest.mark.parametrize("text", ["a", " ", ".", "é"])
    def test_non_empty_is_at_least_one(self, estimator, text):
        assert estimator.estimate(text) >= 1

    def test_ascii_is_about_four_chars_per_token(self, estimator):
        text = "The quick brown fox jumps over the lazy dog. " * 10
        estimate = estimator.estimate(text)
        assert len(text) / 4 <= estimate <= len(text) / 4 + 1
        assert estimator.estimate("abcd") == 1
        assert estimator.estimate("abcde") == 2

    def test_cjk_costs_at_least_half_the_characters(self, estimator):
        text = "今日はいい天気ですね"
        assert estimator.estimate(text) >= math.ceil(len(text) / 2)

    def test_hangul_counted_as_wide(self, estimator):
        assert estimator.estimate("안녕하세요") == 5

    def test_mixed_script_sums_runs(self, estimator):
        # "hello" -> 2, "世界" -> 2, "!!" -> 1
        assert estimator.estimate("hello世界!!") == 5


class TestTurns:
    def test_additivity(self, estimator):
        turns = [
            Turn.user("What's the weather in Tokyo?"),
            Turn.assistant("東京は晴れです。"),
            Turn.user(""),
        ]
        assert estimator.estimate_turns(turns) == sum(estimator.estimate(t.content) for t in turns)

    def test_estimate_turn_uses_content(self, estimator):
        turn = Turn.assistant("abcdefgh")
        assert estimator.estimate_turn(turn) == 2

    def test_empty_sequence(self, estimator):
        assert estimator.estimate_turns([]) == 0
