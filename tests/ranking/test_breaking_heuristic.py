"""Tests for the breaking-news and contested-event heuristics.

Tests cover:
- Breaking keywords, and two urgency keywords, mark a headline breaking
- Urgency score accumulation and its cap
- Contested events: minimum votes, split ratio, low credibility with heavy voting
"""

import pytest

from realtea_engine.data_management.schemas import Event
from realtea_engine.ranking.breaking_heuristic import (
    calculate_urgency_score,
    is_breaking_heuristic,
    is_contested,
)


# ── Breaking Tests ───────────────────────────────────────────────────────


class TestIsBreaking:
    def test_empty_headline(self):
        assert is_breaking_heuristic("", "") is False
        assert is_breaking_heuristic(None, None) is False

    def test_breaking_keyword(self):
        assert is_breaking_heuristic("Developing story at the harbour", None)

    def test_keyword_in_description(self):
        assert is_breaking_heuristic("Update", "Emergency crews respond downtown")

    def test_single_urgency_keyword_not_enough(self):
        assert is_breaking_heuristic("Trade war talks resume", "") is False

    def test_two_urgency_keywords(self):
        assert is_breaking_heuristic("Explosion at plant, dozens injured", "")

    def test_case_insensitive(self):
        assert is_breaking_heuristic("JUST IN: markets halt", "")


class TestUrgencyScore:
    def test_base_score(self):
        assert calculate_urgency_score("Quiet council meeting", "") == 30

    def test_points_per_keyword(self):
        # base 30 + breaking 15 + explosion 10
        assert calculate_urgency_score("Breaking: explosion near port", None) == 55

    def test_capped_at_hundred(self):
        title = "Breaking urgent alert: live deadly war attack"
        assert calculate_urgency_score(title, "") == 100


# ── Contested Tests ──────────────────────────────────────────────────────


def _voted(up: int, down: int, credibility=None) -> Event:
    return Event(
        id="e", title="t", upvotes=up, downvotes=down, credibility_score=credibility
    )


class TestIsContested:
    def test_too_few_votes(self):
        assert is_contested(_voted(4, 5)) is False

    @pytest.mark.parametrize("up,down", [(5, 5), (4, 6), (6, 4)])
    def test_split_vote(self, up, down):
        assert is_contested(_voted(up, down, credibility=90))

    def test_one_sided_credible_event(self):
        assert is_contested(_voted(18, 2, credibility=90)) is False

    def test_low_credibility_heavy_voting(self):
        assert is_contested(_voted(55, 5, credibility=30))

    def test_unchecked_event_uses_default_credibility(self):
        assert is_contested(_voted(55, 5)) is False
