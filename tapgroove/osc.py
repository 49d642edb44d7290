"""OSC input and visual broadcasting.

The server listens on a UDP port (default 9000) for input and control
messages and sends the visual state to a target host/port (default
127.0.0.1:9001) on every display frame.

Receive Handlers
────────────────
- ``/key <symbol>``: A key press (boosts energy, plays melody)
- ``/style <id>``: Switch style immediately
- ``/transition [id]``: Start a regular transition, optionally to a given style

Send Events (every frame)
─────────────────────────
- ``/energy <float>``
- ``/stage <string>``
- ``/pulse/melody <int>`` and ``/pulse/sparkle <int>``: monotonically increasing counters
- ``/hue <float>``: Interpolated hue shift
- ``/style <string>``: Current style name
- ``/transition <float>``: Transition progress (0 when stable)
"""

import asyncio
import logging
import typing

import pythonosc.dispatcher
import pythonosc.osc_server
import pythonosc.udp_client

import tapgroove.commands

if typing.TYPE_CHECKING:
	from tapgroove.sequencer import Sequencer


logger = logging.getLogger(__name__)


class OscServer:

	"""Async OSC server/client: an input source and a visual backend."""

	def __init__ (
		self,
		sequencer: "Sequencer",
		receive_port: int = 9000,
		send_port: int = 9001,
		send_host: str = "127.0.0.1"
	) -> None:

		self._sequencer = sequencer
		self._receive_port = receive_port
		self._send_port = send_port
		self._send_host = send_host

		self._server: typing.Optional[typing.Any] = None
		self._transport: typing.Optional[asyncio.BaseTransport] = None
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = None
		self._dispatcher = pythonosc.dispatcher.Dispatcher()

		self._dispatcher.map("/key", self._handle_key)
		self._dispatcher.map("/style", self._handle_style)
		self._dispatcher.map("/transition", self._handle_transition)


	async def start (self) -> None:

		"""Start the OSC server and client."""

		self._client = pythonosc.udp_client.SimpleUDPClient(self._send_host, self._send_port)

		self._server = pythonosc.osc_server.AsyncIOOSCUDPServer(
			("0.0.0.0", self._receive_port),
			self._dispatcher,
			asyncio.get_event_loop()  # type: ignore[arg-type]
		)

		transport, _ = await self._server.create_serve_endpoint()
		self._transport = transport

		logger.info(f"OSC listening on :{self._receive_port}, sending to {self._send_host}:{self._send_port}")


	async def stop (self) -> None:

		"""Stop the OSC server."""

		if self._transport:
			self._transport.close()
			self._transport = None
			logger.info("OSC server stopped")


	def send (self, address: str, *args: typing.Any) -> None:

		"""Send an OSC message."""

		if self._client:
			try:
				self._client.send_message(address, args)
			except Exception as e:
				logger.warning(f"OSC send error: {e}")


	def publish (self, state: tapgroove.commands.VisualState) -> None:

		"""Send one frame of visual state."""

		self.send("/energy", state.energy)
		self.send("/stage", state.stage)
		self.send("/pulse/melody", state.melody_pulses)
		self.send("/pulse/sparkle", state.sparkle_pulses)
		self.send("/hue", state.hue_shift)
		self.send("/style", state.style_name)
		self.send("/transition", state.transition_progress)


	# Handlers

	def _handle_key (self, address: str, *args: typing.Any) -> None:
		symbol = str(args[0]) if args else None
		self._sequencer.key_pressed(symbol)

	def _handle_style (self, address: str, *args: typing.Any) -> None:
		if not args:
			logger.warning("OSC /style needs a style id")
			return
		self._sequencer.engine.force_style(str(args[0]))

	def _handle_transition (self, address: str, *args: typing.Any) -> None:
		target = str(args[0]) if args else None
		self._sequencer.engine.request_transition(target)
