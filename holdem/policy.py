from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from .cards import Card
from .equity import estimate_equity
from .models import ActionType, Phase

LOGGER = logging.getLogger("holdem.policy")


@dataclass
class PolicyConfig:
    trials: int = 600
    bluff_probability: float = 0.08
    bluff_equity_ceiling: float = 0.35
    value_margin: float = 0.25
    pot_raise_equity: float = 0.80


@dataclass(frozen=True)
class Decision:
    action: ActionType
    equity: float
    required_equity: float
    raise_to: Optional[int] = None
    bluff: bool = False

    @property
    def rationale(self) -> str:
        label = "BLUFF " + self.action.value if self.bluff else self.action.value
        text = f"equity {self.equity:.1%} vs needed {self.required_equity:.1%} -> {label}"
        if self.raise_to is not None:
            text += f" to {self.raise_to}"
        return text


def required_equity(pot: int, to_call: int) -> float:
    """Pot odds: the share of the final pot a call has to win back."""
    if to_call <= 0:
        return 0.0
    return to_call / (pot + to_call)


class OpponentPolicy:
    """Equity-versus-pot-odds ladder with an occasional scripted bluff."""

    def __init__(self, config: Optional[PolicyConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.config = config or PolicyConfig()
        self.rng = rng or random.Random()

    def equity(self, hand: Sequence[Card], board: Sequence[Card], phase: Optional[Phase]) -> float:
        return estimate_equity(hand, board, phase, trials=self.config.trials, rng=self.rng)

    def decide(
        self,
        hand: Sequence[Card],
        board: Sequence[Card],
        pot: int,
        to_call: int,
        phase: Optional[Phase] = None,
        *,
        stack: int,
        committed: int = 0,
        opponent_committed: int = 0,
        big_blind: int = 20,
        can_raise: bool = True,
    ) -> Decision:
        cfg = self.config
        equity = self.equity(hand, board, phase)
        needed = required_equity(pot, to_call)

        bluff = False
        # Without a legal raise there is nothing to bluff with; fall through the ladder.
        if can_raise and equity < cfg.bluff_equity_ceiling and self.rng.random() < cfg.bluff_probability:
            bluff = True
            action = ActionType.RAISE
        elif equity >= needed + cfg.value_margin:
            action = ActionType.RAISE if can_raise else (ActionType.CALL if to_call > 0 else ActionType.CHECK)
        elif equity > needed:
            action = ActionType.CALL if to_call > 0 else ActionType.CHECK
        else:
            action = ActionType.FOLD

        if action == ActionType.FOLD and to_call <= 0:
            action = ActionType.CHECK

        raise_to = None
        if action == ActionType.RAISE:
            raise_to = self.raise_target(
                pot,
                equity,
                bluff,
                stack=stack,
                committed=committed,
                opponent_committed=opponent_committed,
                big_blind=big_blind,
            )

        decision = Decision(
            action=action,
            equity=equity,
            required_equity=needed,
            raise_to=raise_to,
            bluff=bluff,
        )
        LOGGER.debug("Policy decision phase=%s pot=%s to_call=%s: %s", phase, pot, to_call, decision.rationale)
        return decision

    def raise_target(
        self,
        pot: int,
        equity: float,
        bluff: bool,
        *,
        stack: int,
        committed: int,
        opponent_committed: int,
        big_blind: int,
    ) -> int:
        """Total street contribution to raise to: pot or half pot on top of a call."""
        added = pot if (equity >= self.config.pot_raise_equity and not bluff) else pot // 2
        target = opponent_committed + added
        target = min(target, stack + committed)
        return max(target, big_blind)
