"""Confidence scoring for clone groups."""

from __future__ import annotations

# (first_line, last_line, confidence_at_first, confidence_at_last); linear
# within a tier. Tiers meet at equal values so the curve never drops.
_LINE_TIERS = (
    (6, 14, 0.35, 0.45),
    (15, 29, 0.45, 0.60),
    (30, 49, 0.60, 0.75),
)
_PLATEAU_LINES = 50
_PLATEAU_CONFIDENCE = 0.75

_BASE_LOCATIONS = 2
_LOCATION_BONUS = 0.05
_MAX_LOCATION_BONUS = 0.10
_NEAR_CLONE_PENALTY = 0.05
_MAX_CONFIDENCE = 0.80


def _size_confidence(line_count: int) -> float:
    if line_count >= _PLATEAU_LINES:
        return _PLATEAU_CONFIDENCE
    for first, last, low, high in reversed(_LINE_TIERS):
        if line_count >= first:
            return low + (high - low) * (line_count - first) / (last - first)
    return _LINE_TIERS[0][2]


def duplication_confidence(
    line_count: int, location_count: int, near_clone: bool
) -> float:
    """Map clone size, spread and type to a confidence in ``[0, 0.80]``.

    Args:
        line_count: Length of the clone in normalized lines.
        location_count: Number of places the clone occurs.
        near_clone: True if the clone only matched after identifier blinding.

    Returns:
        0.35 for a minimal 6-line pair, rising to 0.75 at 50 lines; +0.05 per
        extra location (at most +0.10); -0.05 for near-clones; capped at 0.80.
    """
    confidence = _size_confidence(line_count)
    extra_locations = max(location_count - _BASE_LOCATIONS, 0)
    confidence += min(extra_locations * _LOCATION_BONUS, _MAX_LOCATION_BONUS)
    if near_clone:
        confidence -= _NEAR_CLONE_PENALTY
    return max(0.0, min(confidence, _MAX_CONFIDENCE))
