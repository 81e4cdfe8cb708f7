from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Tuple

from .cards import Card


class HandCategory(IntEnum):
    HIGH_CARD = 0
    PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8
    ROYAL_FLUSH = 9


@dataclass(frozen=True, order=True)
class HandStrength:
    """Comparable hand value: category first, then kickers left to right."""

    category: HandCategory
    kickers: Tuple[int, ...] = ()

    @property
    def name(self) -> str:
        return describe_rank(self)

    def __str__(self) -> str:
        return self.name.replace("_", " ")


def describe_rank(strength: HandStrength) -> str:
    return strength.category.name.lower()


def evaluate_best(cards: Sequence[Card]) -> HandStrength:
    """Return the best five-card strength among 5 to 7 distinct cards."""
    if len(cards) < 5 or len(cards) > 7:
        raise ValueError(f"Expected 5 to 7 cards, got {len(cards)}")
    if len(set(cards)) != len(cards):
        raise ValueError("Duplicate cards detected")

    best: Optional[HandStrength] = None
    for combo in itertools.combinations(cards, 5):
        strength = evaluate_five(combo)
        if best is None or strength > best:
            best = strength
    assert best is not None
    return best


def evaluate_five(cards: Sequence[Card]) -> HandStrength:
    values = sorted((card.value for card in cards), reverse=True)
    is_flush = len({card.suit for card in cards}) == 1
    high = straight_high(values)

    if high is not None and is_flush:
        if high == 14:
            return HandStrength(HandCategory.ROYAL_FLUSH, (14,))
        return HandStrength(HandCategory.STRAIGHT_FLUSH, (high,))

    counts: Dict[int, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    # (count, value) descending: quads before trips before pairs, higher values first
    groups = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    pattern = [count for _, count in groups]

    if pattern[0] == 4:
        quad = groups[0][0]
        return HandStrength(HandCategory.FOUR_OF_A_KIND, (quad, _kickers(values, {quad}, 1)[0]))
    if pattern[0] == 3 and len(pattern) > 1 and pattern[1] >= 2:
        return HandStrength(HandCategory.FULL_HOUSE, (groups[0][0], groups[1][0]))
    if is_flush:
        return HandStrength(HandCategory.FLUSH, tuple(values))
    if high is not None:
        return HandStrength(HandCategory.STRAIGHT, (high,))
    if pattern[0] == 3:
        trips = groups[0][0]
        return HandStrength(HandCategory.THREE_OF_A_KIND, (trips, *_kickers(values, {trips}, 2)))
    if pattern[0] == 2 and pattern[1] == 2:
        pair_high, pair_low = groups[0][0], groups[1][0]
        kicker = _kickers(values, {pair_high, pair_low}, 1)
        return HandStrength(HandCategory.TWO_PAIR, (pair_high, pair_low, *kicker))
    if pattern[0] == 2:
        pair = groups[0][0]
        return HandStrength(HandCategory.PAIR, (pair, *_kickers(values, {pair}, 3)))
    return HandStrength(HandCategory.HIGH_CARD, tuple(values))


def straight_high(values: Sequence[int]) -> Optional[int]:
    """High card of a five-value straight, 5 for the wheel, else None."""
    distinct = sorted(set(values), reverse=True)
    if len(distinct) != 5:
        return None
    if distinct[0] - distinct[4] == 4:
        return distinct[0]
    if distinct == [14, 5, 4, 3, 2]:
        return 5
    return None


def _kickers(values: List[int], used: set, count: int) -> List[int]:
    return [value for value in values if value not in used][:count]
