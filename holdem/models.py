from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional

from .cards import Card


class Phase(str, Enum):
    PRE_FLOP = "PRE_FLOP"
    FLOP = "FLOP"
    TURN = "TURN"
    RIVER = "RIVER"
    SHOWDOWN = "SHOWDOWN"


# Community cards on the table at the start of each betting street.
BOARD_SIZE = {
    Phase.PRE_FLOP: 0,
    Phase.FLOP: 3,
    Phase.TURN: 4,
    Phase.RIVER: 5,
}


class ActionType(str, Enum):
    FOLD = "FOLD"
    CHECK = "CHECK"
    CALL = "CALL"
    RAISE = "RAISE"


class Seat(IntEnum):
    HUMAN = 0
    AI = 1

    @property
    def other(self) -> "Seat":
        return Seat.AI if self is Seat.HUMAN else Seat.HUMAN


@dataclass
class TableConfig:
    starting_stack: int = 1_000
    sb: int = 10
    bb: int = 20
    equity_trials: int = 600
    ai_delay_ms: int = 800
    phase_delay_ms: int = 800
    seed: Optional[int] = None


@dataclass
class PlayerState:
    seat: Seat
    stack: int
    committed: int = 0
    total_in_pot: int = 0
    acted: bool = False
    hole_cards: List[Card] = field(default_factory=list)

    @property
    def all_in(self) -> bool:
        return self.stack == 0

    def reset_for_hand(self) -> None:
        self.committed = 0
        self.total_in_pot = 0
        self.acted = False
        self.hole_cards.clear()

    def reset_for_round(self) -> None:
        self.committed = 0
        self.acted = False
