from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Dict, Optional, Set

import websockets
from websockets.asyncio.server import ServerConnection, serve
from websockets.http11 import Request, Response

from holdem.events import StateChange
from holdem.models import TableConfig
from .session import TableSession

LOGGER = logging.getLogger("holdem_table")

# TableServer glues a TableSession to a local presentation client over
# websockets. Rendering lives in the client; rules live in the engine.


class TableServer:
    def __init__(self, config: TableConfig, session: Optional[TableSession] = None) -> None:
        self.config = config
        self.session = session or TableSession(config)
        self.clients: Set[ServerConnection] = set()
        self.outbox: "asyncio.Queue[str]" = asyncio.Queue()
        self.pump_task: Optional[asyncio.Task] = None
        self._unsubscribe = self.session.subscribe(self._on_state_change)

    async def start(self, host: str = "127.0.0.1", port: int = 8765) -> None:
        self.session.start()
        self.pump_task = asyncio.get_running_loop().create_task(self._pump())
        try:
            async with serve(self._handle_connection, host, port, process_request=_process_request):
                LOGGER.info("Table server listening on %s:%s", host, port)
                await asyncio.Future()
        finally:
            await self.close()

    async def close(self) -> None:
        self._unsubscribe()
        if self.pump_task is not None:
            self.pump_task.cancel()
            try:
                await self.pump_task
            except asyncio.CancelledError:
                pass
            self.pump_task = None
        await self.session.close()

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        # First message must be "hello"; anything else is turned away.
        hello = await self._read_message(websocket)
        if hello is None or hello.get("type") != "hello":
            await self._send_error(websocket, code="BAD_HELLO", msg="Expected hello")
            await websocket.close()
            return

        self.clients.add(websocket)
        LOGGER.info("Presentation client connected (%s open)", len(self.clients))
        await self._send_json(websocket, "welcome", {"config": self._config_payload()})
        await self._send_json(websocket, "state", self.session.state())

        try:
            async for raw in websocket:
                await self._handle_message(websocket, self._decode(raw))
        except websockets.ConnectionClosed:
            pass
        finally:
            self.clients.discard(websocket)
            LOGGER.info("Presentation client disconnected")

    async def _handle_message(self, websocket: ServerConnection, message: Dict[str, object]) -> None:
        msg_type = message.get("type")
        if msg_type == "start_hand":
            try:
                self.session.start_hand()
            except RuntimeError as exc:
                await self._send_error(websocket, code="HAND_IN_PROGRESS", msg=str(exc))
        elif msg_type == "action":
            amount = message.get("amount")
            if not self.session.submit_action(message.get("action"), amount if isinstance(amount, int) else None):
                await self._send_error(websocket, code="INVALID_ACTION", msg="Action rejected")
        elif msg_type == "state":
            await self._send_json(websocket, "state", self.session.state())
        else:
            await self._send_error(websocket, code="UNKNOWN_TYPE", msg="Unsupported message type")

    def _on_state_change(self, change: StateChange) -> None:
        payload = dict(change.state)
        payload["kind"] = change.kind
        payload["events"] = change.events
        self.outbox.put_nowait(self._envelope("state", payload))

    async def _pump(self) -> None:
        # Single sender keeps state pushes in the order the engine emitted them.
        while True:
            message = await self.outbox.get()
            try:
                targets = list(self.clients)
                if targets:
                    await asyncio.gather(*(socket.send(message) for socket in targets), return_exceptions=True)
            finally:
                self.outbox.task_done()

    def _config_payload(self) -> Dict[str, object]:
        return {
            "starting_stack": self.config.starting_stack,
            "sb": self.config.sb,
            "bb": self.config.bb,
            "ai_delay_ms": self.config.ai_delay_ms,
            "phase_delay_ms": self.config.phase_delay_ms,
        }

    async def _send_json(self, websocket: ServerConnection, msg_type: str, payload: Dict[str, object]) -> None:
        try:
            await websocket.send(self._envelope(msg_type, payload))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(self, websocket: ServerConnection, code: str, msg: str) -> None:
        await self._send_json(websocket, "error", {"code": code, "msg": msg})

    def _envelope(self, msg_type: str, payload: Dict[str, object]) -> str:
        body = {"type": msg_type, "v": 1, "ts": datetime.now(timezone.utc).isoformat()}
        body.update(payload)
        return json.dumps(body)

    async def _read_message(self, websocket: ServerConnection) -> Optional[Dict[str, object]]:
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=5)
        except (asyncio.TimeoutError, websockets.ConnectionClosed):
            return None
        return self._decode(raw)

    def _decode(self, raw) -> Dict[str, object]:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return message if isinstance(message, dict) else {}


def _process_request(connection: ServerConnection, request: Request) -> Optional[Response]:
    """Return a plain-text response for health checks."""

    if request.headers.get("Upgrade", "").lower() == "websocket":
        return None  # let the WebSocket handshake continue
    if request.path in {"/", "/health", "/healthz"}:
        return connection.respond(HTTPStatus.OK, "holdem table running\n")
    return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")
