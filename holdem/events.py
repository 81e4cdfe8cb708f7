from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List

LOGGER = logging.getLogger("holdem.events")


@dataclass
class StateChange:
    """Published after every mutating engine call.

    ``kind`` names the operation (``start_hand``, ``action``, ``advance``,
    ``thinking``), ``events`` holds the engine's event dicts for it and
    ``state`` is the public snapshot taken right after the change.
    """

    kind: str
    events: List[Dict[str, object]] = field(default_factory=list)
    state: Dict[str, object] = field(default_factory=dict)


Listener = Callable[[StateChange], None]


class EventBus:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, change: StateChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:  # noqa: BLE001
                LOGGER.exception("State listener %r failed on %s", listener, change.kind)
