from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .cards import Card, remaining_cards
from .evaluator import evaluate_best
from .models import BOARD_SIZE, Phase

DEFAULT_TRIALS = 600
WEAK_ACCEPT_PROBABILITY = 0.30
WEAK_RETRIES = 2


@dataclass(frozen=True)
class EquityResult:
    wins: int
    ties: int
    losses: int

    @property
    def trials(self) -> int:
        return self.wins + self.ties + self.losses

    @property
    def win_probability(self) -> float:
        if not self.trials:
            return 0.0
        return (self.wins + 0.5 * self.ties) / self.trials


def is_strong_starting_hand(first: Card, second: Card) -> bool:
    """Pocket pair, two cards ten or higher, or any ace."""
    if first.rank == second.rank:
        return True
    if first.value >= 10 and second.value >= 10:
        return True
    return first.rank == "A" or second.rank == "A"


def sample_opponent_hand(
    pool: List[Card],
    rng: random.Random,
    biased: bool,
    retries: int = WEAK_RETRIES,
    weak_accept: float = WEAK_ACCEPT_PROBABILITY,
) -> Tuple[Card, Card]:
    """Draw two cards from the top of a shuffled ``pool``.

    With ``biased`` set, weak holdings are rejected unless a coin flip keeps
    them; each rejection reshuffles the pool and draws again. After
    ``retries`` extra draws the last pair is kept regardless.
    """
    hand = (pool[0], pool[1])
    if not biased:
        return hand
    for _ in range(retries):
        if is_strong_starting_hand(*hand) or rng.random() < weak_accept:
            return hand
        rng.shuffle(pool)
        hand = (pool[0], pool[1])
    return hand


def _check_inputs(hero: Sequence[Card], board: Sequence[Card], phase: Optional[Phase]) -> None:
    if len(hero) != 2:
        raise ValueError("Hero hand must be exactly 2 cards")
    if len(board) not in (0, 3, 4, 5):
        raise ValueError("Board must hold 0, 3, 4 or 5 cards")
    if phase is not None and phase in BOARD_SIZE and BOARD_SIZE[phase] != len(board):
        raise ValueError(f"Board of {len(board)} cards does not match phase {phase.value}")
    known = list(hero) + list(board)
    if len(set(known)) != len(known):
        raise ValueError("Duplicate cards in known cards")


def simulate_equity(
    hero: Sequence[Card],
    board: Sequence[Card],
    phase: Optional[Phase] = None,
    *,
    trials: int = DEFAULT_TRIALS,
    rng: Optional[random.Random] = None,
    range_bias: bool = True,
) -> EquityResult:
    """Monte Carlo showdown of ``hero`` against one sampled opponent hand."""
    _check_inputs(hero, board, phase)
    if trials <= 0:
        raise ValueError("trials must be positive")
    rng = rng or random.Random()
    hero = list(hero)
    board = list(board)
    needed = 5 - len(board)
    # Pre-flop an opponent may hold anything; once cards are out, assume a tighter range.
    biased = range_bias and bool(board)
    unseen = remaining_cards(hero + board)

    wins = ties = losses = 0
    for _ in range(trials):
        deck = list(unseen)
        rng.shuffle(deck)
        runout = board + deck[:needed]
        villain = sample_opponent_hand(deck[needed:], rng, biased)

        hero_strength = evaluate_best(hero + runout)
        villain_strength = evaluate_best(list(villain) + runout)
        if hero_strength > villain_strength:
            wins += 1
        elif hero_strength == villain_strength:
            ties += 1
        else:
            losses += 1

    return EquityResult(wins=wins, ties=ties, losses=losses)


def estimate_equity(
    hero: Sequence[Card],
    board: Sequence[Card],
    phase: Optional[Phase] = None,
    *,
    trials: int = DEFAULT_TRIALS,
    rng: Optional[random.Random] = None,
    range_bias: bool = True,
) -> float:
    return simulate_equity(hero, board, phase, trials=trials, rng=rng, range_bias=range_bias).win_probability
