"""Tests for duplication confidence scoring."""

import pytest

from clonewatch.scoring import duplication_confidence


class TestLineTiers:
    @pytest.mark.parametrize(
        ("lines", "expected"),
        [
            (6, 0.35),
            (14, 0.45),
            (15, 0.45),
            (29, 0.60),
            (30, 0.60),
            (49, 0.75),
            (50, 0.75),
            (500, 0.75),
        ],
    )
    def test_tier_boundaries(self, lines, expected):
        assert duplication_confidence(lines, 2, False) == pytest.approx(expected)

    def test_linear_within_tier(self):
        assert duplication_confidence(10, 2, False) == pytest.approx(0.40)

    def test_monotonic_in_line_count(self):
        scores = [duplication_confidence(n, 2, False) for n in range(6, 80)]
        assert scores == sorted(scores)

    def test_below_window_clamps_to_minimum(self):
        assert duplication_confidence(3, 2, False) == pytest.approx(0.35)


class TestAdjustments:
    def test_extra_location_bonus(self):
        assert duplication_confidence(6, 3, False) == pytest.approx(0.40)

    def test_location_bonus_capped(self):
        assert duplication_confidence(6, 4, False) == pytest.approx(0.45)
        assert duplication_confidence(6, 10, False) == pytest.approx(0.45)

    def test_near_clone_penalty(self):
        assert duplication_confidence(6, 2, True) == pytest.approx(0.30)

    def test_capped_at_080(self):
        assert duplication_confidence(100, 10, False) == pytest.approx(0.80)

    def test_near_clone_below_cap(self):
        assert duplication_confidence(100, 10, True) == pytest.approx(0.80)
        assert duplication_confidence(100, 2, True) == pytest.approx(0.70)

    def test_never_exceeds_cap(self):
        for lines in range(6, 120, 7):
            for locations in range(2, 8):
                for near in (False, True):
                    assert 0.0 <= duplication_confidence(lines, locations, near) <= 0.80
