from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set

RANKS = "23456789TJQKA"
SUITS = "shdc"
RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def value(self) -> int:
        return RANK_VALUE[self.rank]

    @property
    def label(self) -> str:
        return f"{self.rank}{self.suit}"

    def __str__(self) -> str:
        return self.label


def full_deck() -> List[Card]:
    return [Card(rank, suit) for suit in SUITS for rank in RANKS]


def remaining_cards(excluded: Iterable[Card]) -> List[Card]:
    """Every card of a fresh 52-card deck that is not in ``excluded``."""
    dead = set(excluded)
    return [card for card in full_deck() if card not in dead]


class Deck:
    """Shuffled draw pile for one hand.

    Cards handed out since the last ``reset`` are tracked as in play. If the
    pile ever runs dry it is rebuilt from the cards that are *not* in play, so
    a card can never be dealt twice within a hand.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()
        self.cards: List[Card] = []
        self.in_play: Set[Card] = set()
        self.reset()

    def __len__(self) -> int:
        return len(self.cards)

    def reset(self) -> None:
        self.in_play.clear()
        self.cards = full_deck()
        self.rng.shuffle(self.cards)

    def _rebuild(self) -> None:
        self.cards = remaining_cards(self.in_play)
        if not self.cards:
            raise RuntimeError("Deck exhausted: every card is already in play")
        self.rng.shuffle(self.cards)

    def draw(self) -> Card:
        if not self.cards:
            self._rebuild()
        card = self.cards.pop()
        self.in_play.add(card)
        return card

    def deal(self, count: int) -> List[Card]:
        return [self.draw() for _ in range(count)]


def cards_to_labels(cards: Sequence[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    if len(label) != 2:
        raise ValueError(f"Invalid card label: {label}")
    return Card(label[0].upper(), label[1].lower())


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]
