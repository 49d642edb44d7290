import asyncio
import json
import logging
import typing
import weakref

import websockets
import websockets.asyncio.server
import websockets.exceptions

logger = logging.getLogger(__name__)

class WebUI:

    """
    Background WebSocket broadcaster.
    Pushes the engine's visual state to connected browser renderers as JSON
    without blocking the clock loop.  Clients may send ``{"key": "q"}`` to
    play, which makes a browser tab both the renderer and the input source.
    """

    def __init__ (self, sequencer: typing.Any, ws_port: int = 8765, interval: float = 0.1) -> None:

        self.sequencer_ref = weakref.ref(sequencer)
        self.ws_port = ws_port
        self.interval = interval
        self._ws_server: typing.Optional[websockets.asyncio.server.Server] = None
        self._broadcast_task: typing.Optional[asyncio.Task] = None
        self._clients: typing.Set[websockets.asyncio.server.ServerConnection] = set()

    async def start (self) -> None:

        try:
            self._ws_server = await websockets.asyncio.server.serve(self._handle_client, "0.0.0.0", self.ws_port)
            self._broadcast_task = asyncio.create_task(self._broadcast_loop())
            logger.info(f"Visual WebSocket feed on ws://localhost:{self.ws_port}")
        except OSError as e:
            logger.error(f"WebSocket server error: {e}")

    async def _handle_client (self, websocket: websockets.asyncio.server.ServerConnection) -> None:

        self._clients.add(websocket)
        try:
            async for message in websocket:
                self._handle_message(message)
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self._clients.discard(websocket)

    def _handle_message (self, message: typing.Union[str, bytes]) -> None:

        try:
            data = json.loads(message)
        except (ValueError, TypeError):
            logger.warning(f"Ignoring malformed WebSocket message: {message!r}")
            return

        if not isinstance(data, dict) or "key" not in data:
            return

        seq = self.sequencer_ref()
        if seq is not None:
            seq.key_pressed(str(data["key"]))

    async def _broadcast_loop (self) -> None:

        while True:
            await asyncio.sleep(self.interval)

            if not self._clients:
                continue

            seq = self.sequencer_ref()
            if seq is None:
                break

            try:
                websockets.broadcast(self._clients, json.dumps(self.get_state(seq)))
            except Exception:
                logger.exception("Error broadcasting visual state")

    def get_state (self, seq: typing.Any) -> typing.Dict[str, typing.Any]:

        engine = seq.engine
        state = engine.visual_state().as_dict()
        state["bpm"] = engine.bpm
        state["bar"] = engine.clock.bar
        state["style_id"] = engine.director.current_style.id
        return state

    async def stop (self) -> None:

        if self._broadcast_task:
            self._broadcast_task.cancel()
            try:
                await self._broadcast_task
            except asyncio.CancelledError:
                pass
            self._broadcast_task = None

        if self._ws_server:
            self._ws_server.close()
            await self._ws_server.wait_closed()
            self._ws_server = None
