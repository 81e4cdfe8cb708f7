from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Tuple

from .cards import Card, Deck, cards_to_labels
from .evaluator import HandStrength, evaluate_best
from .events import EventBus, StateChange
from .models import ActionType, Phase, PlayerState, Seat, TableConfig
from .policy import Decision, OpponentPolicy, PolicyConfig

LOGGER = logging.getLogger("holdem")

# GameEngine keeps the whole heads-up table in memory. No scheduling or
# networking lives here, only poker rules, chip accounting and turn order.

NEXT_PHASE = {
    Phase.PRE_FLOP: (Phase.FLOP, 3),
    Phase.FLOP: (Phase.TURN, 1),
    Phase.TURN: (Phase.RIVER, 1),
}

NAMES = {Seat.HUMAN: "You", Seat.AI: "CPU"}


@dataclass
class HandContext:
    # All mutable info about the current hand.
    hand_id: str
    seed: int
    button: Seat
    deck: Deck
    community: List[Card] = field(default_factory=list)
    phase: Phase = Phase.PRE_FLOP
    pot: int = 0
    to_act: Optional[Seat] = None
    message: str = ""
    showdown: bool = False
    winners: List[Seat] = field(default_factory=list)
    results: Dict[Seat, HandStrength] = field(default_factory=dict)
    last_decision: Optional[Decision] = None


class GameEngine:
    """Heads-up No-Limit Texas Hold'em between a human seat and the AI seat."""

    def __init__(
        self,
        config: TableConfig,
        policy: Optional[OpponentPolicy] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.rng = rng or random.Random(config.seed)
        self.policy = policy or OpponentPolicy(
            PolicyConfig(trials=config.equity_trials),
            rng=random.Random(self.rng.getrandbits(32)),
        )
        self.players: Dict[Seat, PlayerState] = {
            seat: PlayerState(seat=seat, stack=config.starting_stack) for seat in Seat
        }
        self.button: Optional[Seat] = None
        self.hand_counter = 0
        self.hand: Optional[HandContext] = None
        self.bus = EventBus()

    # Observers -------------------------------------------------------

    def subscribe(self, listener: Callable[[StateChange], None]) -> Callable[[], None]:
        return self.bus.subscribe(listener)

    def unsubscribe(self, listener: Callable[[StateChange], None]) -> None:
        self.bus.unsubscribe(listener)

    def _publish(self, kind: str, events: List[Dict[str, object]]) -> None:
        self.bus.emit(StateChange(kind=kind, events=list(events), state=self.public_state()))

    # Hand lifecycle --------------------------------------------------

    def is_hand_live(self) -> bool:
        return bool(self.hand and self.hand.phase != Phase.SHOWDOWN)

    def is_hand_complete(self) -> bool:
        return bool(self.hand and self.hand.phase == Phase.SHOWDOWN and self.hand.pot == 0)

    def start_hand(self, seed: Optional[int] = None) -> HandContext:
        if self.is_hand_live():
            raise RuntimeError("Hand already in progress")

        refilled = self._replenish_stacks()
        for player in self.players.values():
            player.reset_for_hand()

        if seed is None:
            seed = self.rng.getrandbits(32)
        self.button = Seat.HUMAN if self.button is None else self.button.other

        ctx = HandContext(
            hand_id=f"H-{self.hand_counter:05d}",
            seed=seed,
            button=self.button,
            deck=Deck(random.Random(seed)),
        )
        self.hand_counter += 1
        self.hand = ctx

        self._deal_hole_cards(ctx)
        events = self._post_blinds(ctx)
        # Pre-flop the button acts first.
        ctx.to_act = self._next_to_act(ctx.button)

        role = "the button (small blind)" if ctx.button == Seat.HUMAN else "the big blind"
        ctx.message = f"You are {role}."
        if refilled:
            ctx.message = "Stacks replenished. " + ctx.message

        LOGGER.info(
            "Hand %s started; button=%s stacks=%s",
            ctx.hand_id,
            ctx.button.name,
            {seat.name: player.stack for seat, player in self.players.items()},
        )
        self._publish("start_hand", events)
        return ctx

    def _replenish_stacks(self) -> bool:
        if all(player.stack >= self.config.bb for player in self.players.values()):
            return False
        for player in self.players.values():
            player.stack = self.config.starting_stack
        LOGGER.info("Stack below one big blind; both stacks reset to %s", self.config.starting_stack)
        return True

    def _deal_hole_cards(self, ctx: HandContext) -> None:
        order = (ctx.button.other, ctx.button)
        for _ in range(2):
            for seat in order:
                self.players[seat].hole_cards.append(ctx.deck.draw())

    def _post_blinds(self, ctx: HandContext) -> List[Dict[str, object]]:
        sb_seat = ctx.button
        bb_seat = ctx.button.other
        self._commit_chips(self.players[sb_seat], self.config.sb, ctx)
        self._commit_chips(self.players[bb_seat], self.config.bb, ctx)
        return [
            {
                "ev": "POST_BLINDS",
                "sb_seat": sb_seat.name,
                "bb_seat": bb_seat.name,
                "sb": self.players[sb_seat].committed,
                "bb": self.players[bb_seat].committed,
            }
        ]

    def _commit_chips(self, player: PlayerState, amount: int, ctx: HandContext) -> int:
        amount = max(0, min(amount, player.stack))
        player.stack -= amount
        player.committed += amount
        player.total_in_pot += amount
        ctx.pot += amount
        return amount

    # Turn order ------------------------------------------------------

    def needs_action(self, seat: Seat) -> bool:
        """A seat must still act if it has chips and has not acted or owes chips."""
        player = self.players[seat]
        opponent = self.players[seat.other]
        if player.stack == 0:
            return False
        if player.committed < opponent.committed:
            return True
        if opponent.stack == 0:
            return False
        return not player.acted

    def _next_to_act(self, candidate: Seat) -> Optional[Seat]:
        if self.needs_action(candidate):
            return candidate
        if self.needs_action(candidate.other):
            return candidate.other
        return None

    def is_street_complete(self) -> bool:
        return bool(self.is_hand_live() and self.hand and self.hand.to_act is None)

    # Action handling -------------------------------------------------

    def min_raise_target(self, seat: Seat = Seat.HUMAN) -> int:
        opponent_committed = self.players[seat.other].committed
        target = self.config.bb if opponent_committed == 0 else opponent_committed * 2
        return min(target, self.max_raise_target(seat))

    def max_raise_target(self, seat: Seat = Seat.HUMAN) -> int:
        player = self.players[seat]
        return player.stack + player.committed

    def can_raise(self, seat: Seat) -> bool:
        opponent = self.players[seat.other]
        return opponent.stack > 0 and self.max_raise_target(seat) > opponent.committed

    def legal_actions(self, seat: Seat) -> Tuple[List[ActionType], Optional[int], Optional[int], Optional[int]]:
        # Every legal move plus helper numbers (amount to call, min/max raise target).
        if not self.is_hand_live() or self.hand is None or self.hand.to_act != seat:
            return [], None, None, None

        player = self.players[seat]
        opponent = self.players[seat.other]
        legal: List[ActionType] = [ActionType.FOLD]
        call_amount = opponent.committed - player.committed
        if call_amount <= 0:
            legal.append(ActionType.CHECK)
        else:
            legal.append(ActionType.CALL)

        min_raise_to = max_raise_to = None
        if self.can_raise(seat):
            legal.append(ActionType.RAISE)
            min_raise_to = self.min_raise_target(seat)
            max_raise_to = self.max_raise_target(seat)

        return legal, (min(call_amount, player.stack) if call_amount > 0 else None), min_raise_to, max_raise_to

    def _rejection_reason(self, seat: Seat, action: ActionType, amount: Optional[int]) -> Optional[str]:
        if not self.is_hand_live():
            return "no hand in progress"
        assert self.hand is not None
        if self.hand.to_act != seat:
            return "out of turn"
        legal, _, min_raise_to, max_raise_to = self.legal_actions(seat)
        if action not in legal:
            if action == ActionType.CHECK:
                return "cannot check when facing a bet"
            if action == ActionType.CALL:
                return "nothing to call"
            return f"{action} not legal"
        if action == ActionType.RAISE:
            if not isinstance(amount, int) or isinstance(amount, bool):
                return "raise requires an integer amount"
            assert min_raise_to is not None and max_raise_to is not None
            if amount < min_raise_to:
                return "raise below minimum"
            if amount > max_raise_to:
                return "raise exceeds stack"
        return None

    def apply_action(self, seat: Seat, action: ActionType, amount: Optional[int] = None) -> List[Dict[str, object]]:
        """Apply one action; illegal submissions are rejected without touching state."""
        reason = self._rejection_reason(seat, action, amount)
        if reason is not None:
            LOGGER.info("Rejected action seat=%s action=%s amount=%s reason=%s", seat.name, action, amount, reason)
            return []
        events = self._perform(seat, action, amount)
        self._publish("action", events)
        return events

    def _perform(self, seat: Seat, action: ActionType, amount: Optional[int]) -> List[Dict[str, object]]:
        ctx = self.hand
        assert ctx is not None
        player = self.players[seat]
        opponent = self.players[seat.other]
        name = NAMES[seat]
        events: List[Dict[str, object]] = []

        if action == ActionType.FOLD:
            events.append({"ev": "FOLD", "seat": seat.name})
            ctx.message = f"{name} folded. {NAMES[seat.other]} won {ctx.pot}."
            events.extend(self._award_pot(ctx, seat.other))
        elif action == ActionType.CHECK:
            player.acted = True
            events.append({"ev": "CHECK", "seat": seat.name})
            ctx.message = f"{name}: check"
        elif action == ActionType.CALL:
            paid = self._commit_chips(player, opponent.committed - player.committed, ctx)
            player.acted = True
            events.append({"ev": "CALL", "seat": seat.name, "amount": paid})
            ctx.message = f"{name}: call {paid}" + (" (all-in)" if player.all_in else "")
        elif action == ActionType.RAISE:
            assert amount is not None
            paid = self._commit_chips(player, amount - player.committed, ctx)
            player.acted = True
            opponent.acted = False
            events.append({"ev": "RAISE", "seat": seat.name, "amount": paid, "to": player.committed})
            ctx.message = f"{name}: raise to {player.committed}" + (" (all-in)" if player.all_in else "")

        LOGGER.debug("Applied action hand=%s seat=%s action=%s amount=%s", ctx.hand_id, seat.name, action, amount)

        if ctx.phase != Phase.SHOWDOWN:
            ctx.to_act = self._next_to_act(seat.other)
        return events

    # AI turn ---------------------------------------------------------

    def ai_decide(self) -> Optional[Decision]:
        """Run the opponent policy for the AI seat; does not mutate the hand."""
        ctx = self.hand
        if ctx is None or not self.is_hand_live() or ctx.to_act != Seat.AI:
            return None
        ai = self.players[Seat.AI]
        human = self.players[Seat.HUMAN]
        return self.policy.decide(
            list(ai.hole_cards),
            list(ctx.community),
            ctx.pot,
            max(0, min(human.committed - ai.committed, ai.stack)),
            ctx.phase,
            stack=ai.stack,
            committed=ai.committed,
            opponent_committed=human.committed,
            big_blind=self.config.bb,
            can_raise=self.can_raise(Seat.AI),
        )

    def _resolve_decision(self, decision: Decision) -> Tuple[ActionType, Optional[int]]:
        legal, _, min_raise_to, max_raise_to = self.legal_actions(Seat.AI)
        action = decision.action
        if action == ActionType.RAISE:
            if ActionType.RAISE in legal:
                assert min_raise_to is not None and max_raise_to is not None
                target = decision.raise_to if decision.raise_to is not None else min_raise_to
                return ActionType.RAISE, min(max(target, min_raise_to), max_raise_to)
            action = ActionType.CALL
        if action == ActionType.CALL and ActionType.CHECK in legal:
            action = ActionType.CHECK
        if action == ActionType.CHECK and ActionType.CALL in legal:
            action = ActionType.CALL
        if action == ActionType.FOLD and ActionType.CHECK in legal:
            action = ActionType.CHECK
        return action, None

    def apply_decision(self, decision: Decision) -> List[Dict[str, object]]:
        ctx = self.hand
        if ctx is None or not self.is_hand_live() or ctx.to_act != Seat.AI:
            return []
        action, amount = self._resolve_decision(decision)
        reason = self._rejection_reason(Seat.AI, action, amount)
        if reason is not None:
            LOGGER.warning("AI decision %s mapped to illegal %s: %s", decision.rationale, action, reason)
            return []
        # Record what was actually played, not what the policy asked for.
        applied = replace(decision, action=action, raise_to=amount, bluff=decision.bluff and action == ActionType.RAISE)
        ctx.last_decision = applied
        events = self._perform(Seat.AI, action, amount)
        events.insert(0, {"ev": "AI_DECISION", "equity": round(applied.equity, 4), "rationale": applied.rationale})
        self._publish("action", events)
        return events

    def take_ai_turn(self) -> List[Dict[str, object]]:
        decision = self.ai_decide()
        if decision is None:
            return []
        return self.apply_decision(decision)

    def announce_ai_thinking(self) -> None:
        if self.hand is None or self.hand.to_act != Seat.AI:
            return
        self.hand.message = "CPU is thinking..."
        self._publish("thinking", [])

    # Street progression ----------------------------------------------

    def advance_phase(self) -> List[Dict[str, object]]:
        """Close the finished street: deal the next one or settle the showdown."""
        if not self.is_street_complete():
            return []
        ctx = self.hand
        assert ctx is not None

        events = self._return_uncalled(ctx)
        for player in self.players.values():
            player.reset_for_round()

        if ctx.phase == Phase.RIVER:
            events.extend(self._resolve_showdown(ctx))
            self._publish("advance", events)
            return events

        ctx.phase, count = NEXT_PHASE[ctx.phase]
        cards = ctx.deck.deal(count)
        ctx.community.extend(cards)
        events.append({"ev": ctx.phase.value, "cards": cards_to_labels(cards)})

        # Post-flop the non-button seat acts first; an all-in leaves nobody to act.
        ctx.to_act = self._next_to_act(ctx.button.other)
        street = ctx.phase.value.replace("_", "-").title()
        if ctx.to_act == Seat.HUMAN:
            ctx.message = f"{street} dealt. Your action."
        else:
            ctx.message = f"{street} dealt."
        self._publish("advance", events)
        return events

    def _return_uncalled(self, ctx: HandContext) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []
        for seat, player in self.players.items():
            excess = player.committed - self.players[seat.other].committed
            if excess > 0:
                player.stack += excess
                player.committed -= excess
                player.total_in_pot -= excess
                ctx.pot -= excess
                events.append({"ev": "RETURN", "seat": seat.name, "amount": excess})
        return events

    def _award_pot(self, ctx: HandContext, winner: Seat) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []
        if ctx.pot > 0:
            self.players[winner].stack += ctx.pot
            events.append({"ev": "POT_AWARD", "seat": winner.name, "amount": ctx.pot})
        ctx.winners = [winner]
        self._finish_hand(ctx)
        return events

    def _resolve_showdown(self, ctx: HandContext) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []
        board_labels = cards_to_labels(ctx.community)
        for seat, player in self.players.items():
            score = evaluate_best(player.hole_cards + ctx.community)
            ctx.results[seat] = score
            events.append(
                {
                    "ev": "SHOWDOWN",
                    "seat": seat.name,
                    "hand": cards_to_labels(player.hole_cards),
                    "board": board_labels,
                    "rank": score.name,
                }
            )
        ctx.showdown = True

        human, ai = ctx.results[Seat.HUMAN], ctx.results[Seat.AI]
        pot = ctx.pot
        summary = f"You: {human} vs CPU: {ai}"
        if human != ai:
            winner = Seat.HUMAN if human > ai else Seat.AI
            ctx.message = f"{NAMES[winner]} won {pot}. {summary}"
            events.extend(self._award_pot(ctx, winner))
            return events

        # Split pot: the odd chip, if any, is not awarded to either seat.
        share, dropped = divmod(pot, 2)
        for seat in Seat:
            self.players[seat].stack += share
            events.append({"ev": "POT_AWARD", "seat": seat.name, "amount": share})
        if dropped:
            events.append({"ev": "CHIP_DROPPED", "amount": dropped})
        ctx.winners = [Seat.HUMAN, Seat.AI]
        ctx.message = f"Split pot. {summary}"
        self._finish_hand(ctx)
        return events

    def _finish_hand(self, ctx: HandContext) -> None:
        ctx.pot = 0
        ctx.phase = Phase.SHOWDOWN
        ctx.to_act = None
        for player in self.players.values():
            player.committed = 0
            player.total_in_pot = 0
        LOGGER.info(
            "Hand %s finished; winners=%s stacks=%s",
            ctx.hand_id,
            [seat.name for seat in ctx.winners],
            {seat.name: player.stack for seat, player in self.players.items()},
        )

    # Public/Snapshot helpers -----------------------------------------

    def total_chips(self) -> int:
        pot = self.hand.pot if self.hand else 0
        return pot + sum(player.stack for player in self.players.values())

    def public_state(self, viewer: Seat = Seat.HUMAN) -> Dict[str, object]:
        ctx = self.hand
        reveal = bool(ctx and ctx.showdown)
        players = []
        for seat, player in self.players.items():
            visible = seat == viewer or reveal
            players.append(
                {
                    "seat": seat.name,
                    "stack": player.stack,
                    "committed": player.committed,
                    "hole": cards_to_labels(player.hole_cards) if visible else [],
                    "is_button": ctx is not None and ctx.button == seat,
                }
            )
        if ctx is None:
            return {"hand_id": None, "phase": None, "pot": 0, "players": players, "message": "Waiting for a new hand."}

        legal, call_amount, min_raise_to, max_raise_to = self.legal_actions(viewer)
        decision = ctx.last_decision
        return {
            "hand_id": ctx.hand_id,
            "phase": ctx.phase.value,
            "pot": ctx.pot,
            "community": cards_to_labels(ctx.community),
            "button": ctx.button.name,
            "to_act": ctx.to_act.name if ctx.to_act is not None else None,
            "message": ctx.message,
            "players": players,
            "legal": [action.value for action in legal],
            "call_amount": call_amount,
            "min_raise_to": min_raise_to,
            "max_raise_to": max_raise_to,
            "hand_complete": self.is_hand_complete(),
            "winners": [seat.name for seat in ctx.winners],
            "results": {seat.name: score.name for seat, score in ctx.results.items()},
            "ai_equity": round(decision.equity, 4) if decision else None,
            "ai_rationale": decision.rationale if decision else None,
        }
