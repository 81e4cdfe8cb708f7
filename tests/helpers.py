from __future__ import annotations

import random
from typing import List, Optional, Sequence

from holdem.cards import Card, Deck, parse_cards, remaining_cards
from holdem.game import GameEngine
from holdem.models import ActionType, Phase, Seat, TableConfig
from holdem.policy import OpponentPolicy, PolicyConfig


class HighRoll(random.Random):
    """Random source whose coin flips never land (no bluffs, weak hands rejected)."""

    def __init__(self, roll: float = 0.99, seed: int = 0) -> None:
        super().__init__(seed)
        self.roll = roll

    def random(self) -> float:
        return self.roll


class FixedEquityPolicy(OpponentPolicy):
    """Opponent policy that skips Monte Carlo and reports a fixed equity."""

    def __init__(self, equity: float, roll: float = 0.99, config: Optional[PolicyConfig] = None) -> None:
        super().__init__(config or PolicyConfig(trials=10), rng=HighRoll(roll))
        self.fixed_equity = equity

    def equity(self, hand, board, phase) -> float:
        return self.fixed_equity


def create_engine(
    *,
    starting_stack: int = 1_000,
    sb: int = 10,
    bb: int = 20,
    equity: Optional[float] = 0.1,
    seed: int = 7,
) -> GameEngine:
    """Engine with a deterministic opponent; ``equity=None`` keeps the real policy."""
    config = TableConfig(starting_stack=starting_stack, sb=sb, bb=bb, equity_trials=50, seed=seed)
    policy = FixedEquityPolicy(equity) if equity is not None else None
    return GameEngine(config, policy=policy)


def deal_order(human: Sequence[str], ai: Sequence[str], board: Sequence[str] = (), button: Seat = Seat.HUMAN) -> List[str]:
    """Labels in the order the engine draws them: hole cards non-button first, then the board."""
    first, second = (ai, human) if button == Seat.HUMAN else (human, ai)
    return [first[0], second[0], first[1], second[1], *board]


def rig_deck(monkeypatch, labels: Sequence[str]) -> None:
    """Make every new hand draw ``labels`` first, then the rest of the deck."""
    order = parse_cards(labels)

    class RiggedDeck(Deck):
        def reset(self) -> None:
            self.in_play.clear()
            # draw() pops from the end.
            self.cards = remaining_cards(order) + list(reversed(order))

    monkeypatch.setattr("holdem.game.Deck", RiggedDeck)


def labels(cards: Sequence[Card]) -> List[str]:
    return [card.label for card in cards]


def auto_complete_hand(engine: GameEngine) -> None:
    """Check or call for whoever is to act and deal streets until the hand settles."""
    while not engine.is_hand_complete():
        ctx = engine.hand
        assert ctx is not None
        if ctx.to_act is None:
            engine.advance_phase()
            continue
        legal, *_ = engine.legal_actions(ctx.to_act)
        if ActionType.CHECK in legal:
            engine.apply_action(ctx.to_act, ActionType.CHECK)
        else:
            engine.apply_action(ctx.to_act, ActionType.CALL)


def play_to_flop(engine: GameEngine) -> None:
    """Button limps, big blind checks, flop is dealt."""
    ctx = engine.hand
    assert ctx is not None and ctx.phase == Phase.PRE_FLOP
    engine.apply_action(ctx.button, ActionType.CALL)
    engine.apply_action(ctx.button.other, ActionType.CHECK)
    engine.advance_phase()
