from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Union

from holdem.events import StateChange
from holdem.game import GameEngine
from holdem.models import ActionType, Seat, TableConfig

LOGGER = logging.getLogger("holdem_table")

# TableSession paces the engine for a presentation layer. Every AI turn and
# phase advance is queued as a step; one worker runs the steps in the order
# they were scheduled, so at most one mutation is ever in flight.


@dataclass
class Step:
    hand_id: str
    label: str
    delay: float
    run: Callable[[], Awaitable[None]]


class TableSession:
    def __init__(self, config: TableConfig, engine: Optional[GameEngine] = None) -> None:
        self.config = config
        self.engine = engine or GameEngine(config)
        self.queue: "asyncio.Queue[Step]" = asyncio.Queue()
        self.worker: Optional[asyncio.Task] = None

    # Lifecycle -------------------------------------------------------

    def start(self) -> None:
        if self.worker is None or self.worker.done():
            self.worker = asyncio.get_running_loop().create_task(self._run())

    async def close(self) -> None:
        if self.worker is None:
            return
        self.worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self.worker
        self.worker = None

    async def wait_idle(self) -> None:
        """Wait until every scheduled step, including follow-ups, has run."""
        await self.queue.join()

    async def _run(self) -> None:
        while True:
            step = await self.queue.get()
            try:
                if step.delay > 0:
                    await asyncio.sleep(step.delay)
                hand = self.engine.hand
                if hand is None or hand.hand_id != step.hand_id:
                    LOGGER.debug("Skipping stale step %s for hand %s", step.label, step.hand_id)
                    continue
                await step.run()
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("Scheduled step %s failed for hand %s: %s", step.label, step.hand_id, exc)
            finally:
                self.queue.task_done()

    def _schedule(self, label: str, delay_ms: int, run: Callable[[], Awaitable[None]]) -> None:
        hand = self.engine.hand
        assert hand is not None
        self.start()
        self.queue.put_nowait(Step(hand_id=hand.hand_id, label=label, delay=max(delay_ms, 0) / 1000, run=run))

    def _schedule_followup(self) -> None:
        hand = self.engine.hand
        if hand is None or not self.engine.is_hand_live():
            return
        if self.engine.is_street_complete():
            self._schedule("advance", self.config.phase_delay_ms, self._advance_step)
        elif hand.to_act == Seat.AI:
            self._schedule("ai_turn", self.config.ai_delay_ms, self._ai_step)

    # Scheduled steps -------------------------------------------------

    async def _ai_step(self) -> None:
        self.engine.announce_ai_thinking()
        # Monte Carlo runs off the loop; only reads happen there, the mutation
        # below is back on the loop.
        decision = await asyncio.to_thread(self.engine.ai_decide)
        if decision is None:
            return
        self.engine.apply_decision(decision)
        self._schedule_followup()

    async def _advance_step(self) -> None:
        self.engine.advance_phase()
        self._schedule_followup()

    # Presentation-facing API -----------------------------------------

    def subscribe(self, listener: Callable[[StateChange], None]) -> Callable[[], None]:
        return self.engine.subscribe(listener)

    def start_hand(self, seed: Optional[int] = None) -> Dict[str, object]:
        self.engine.start_hand(seed=seed)
        self._schedule_followup()
        return self.state()

    def submit_action(self, action: Union[ActionType, str, None], amount: Optional[int] = None) -> bool:
        """Apply a human action. Returns False, with state untouched, when rejected."""
        if isinstance(action, str) and not isinstance(action, ActionType):
            try:
                action = ActionType(action.strip().upper())
            except ValueError:
                LOGGER.info("Rejected unknown action %r", action)
                return False
        if not isinstance(action, ActionType):
            LOGGER.info("Rejected action without a type")
            return False
        events = self.engine.apply_action(Seat.HUMAN, action, amount)
        if not events:
            return False
        self._schedule_followup()
        return True

    def state(self) -> Dict[str, object]:
        return self.engine.public_state(Seat.HUMAN)

    def min_raise_target(self) -> int:
        return self.engine.min_raise_target(Seat.HUMAN)

    def max_raise_target(self) -> int:
        return self.engine.max_raise_target(Seat.HUMAN)
