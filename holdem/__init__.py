"""Heads-up No-Limit Hold'em engine: cards, evaluator, equity, opponent policy, betting."""

from .cards import Card, Deck, RANKS, SUITS, parse_cards
from .equity import EquityResult, estimate_equity, simulate_equity
from .evaluator import HandCategory, HandStrength, evaluate_best
from .events import EventBus, StateChange
from .game import GameEngine, HandContext
from .models import ActionType, Phase, PlayerState, Seat, TableConfig
from .policy import Decision, OpponentPolicy, PolicyConfig

__all__ = [
    "Card",
    "Deck",
    "RANKS",
    "SUITS",
    "parse_cards",
    "EquityResult",
    "estimate_equity",
    "simulate_equity",
    "HandCategory",
    "HandStrength",
    "evaluate_best",
    "EventBus",
    "StateChange",
    "GameEngine",
    "HandContext",
    "ActionType",
    "Phase",
    "PlayerState",
    "Seat",
    "TableConfig",
    "Decision",
    "OpponentPolicy",
    "PolicyConfig",
]
