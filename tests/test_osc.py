import asyncio
import typing

import pythonosc.udp_client
import pytest

import conftest
import tapgroove.commands
import tapgroove.engine
import tapgroove.osc


class FakeSequencer:

	"""Stands in for the runtime: records key presses and exposes an engine."""

	def __init__ (self) -> None:

		self.engine = tapgroove.engine.PerformanceEngine(rng=conftest.ScriptedRandom())
		self.keys: typing.List[typing.Optional[str]] = []

	def key_pressed (self, symbol: typing.Optional[str]) -> None:

		self.keys.append(symbol)


class FakeClient:

	"""Collects outgoing OSC messages instead of sending them."""

	def __init__ (self) -> None:

		self.sent: typing.List[typing.Tuple[str, typing.Any]] = []

	def send_message (self, address: str, value: typing.Any) -> None:

		self.sent.append((address, value))


async def start_server (sequencer: FakeSequencer) -> typing.Tuple[tapgroove.osc.OscServer, pythonosc.udp_client.SimpleUDPClient]:

	"""Start a server on a free port and return it with a client aimed at it."""

	server = tapgroove.osc.OscServer(sequencer, receive_port=0, send_port=0)  # type: ignore[arg-type]
	await server.start()

	port = server._transport.get_extra_info("sockname")[1]

	return server, pythonosc.udp_client.SimpleUDPClient("127.0.0.1", port)


@pytest.mark.asyncio
async def test_osc_key_handler () -> None:

	"""Sending /key should deliver the symbol to the sequencer."""

	sequencer = FakeSequencer()
	server, client = await start_server(sequencer)

	client.send_message("/key", "q")
	await asyncio.sleep(0.1)

	assert sequencer.keys == ["q"]

	await server.stop()


@pytest.mark.asyncio
async def test_osc_style_handler () -> None:

	"""Sending /style should switch the engine's style immediately."""

	sequencer = FakeSequencer()
	server, client = await start_server(sequencer)

	client.send_message("/style", "tech")
	await asyncio.sleep(0.1)

	assert sequencer.engine.director.current_style.id == "tech"

	await server.stop()


@pytest.mark.asyncio
async def test_osc_transition_handler () -> None:

	"""Sending /transition should start a transition toward the named style."""

	sequencer = FakeSequencer()
	server, client = await start_server(sequencer)

	client.send_message("/transition", "deep")
	await asyncio.sleep(0.1)

	assert sequencer.engine.director.in_transition
	assert sequencer.engine.director.transition.to_style.id == "deep"

	await server.stop()


@pytest.mark.asyncio
async def test_publish_sends_every_visual_field () -> None:

	"""Each frame sends energy, stage, pulse counters, hue, style and transition progress."""

	server = tapgroove.osc.OscServer(FakeSequencer(), receive_port=0, send_port=0)  # type: ignore[arg-type]
	await server.start()

	client = FakeClient()
	server._client = client  # type: ignore[assignment]

	server.publish(tapgroove.commands.VisualState(0.5, 3, 1, "groove", -20.0, "Disco House", 0.5, True))

	assert dict(client.sent) == {
		"/energy": (0.5,),
		"/stage": ("groove",),
		"/pulse/melody": (3,),
		"/pulse/sparkle": (1,),
		"/hue": (-20.0,),
		"/style": ("Disco House",),
		"/transition": (0.5,),
	}

	await server.stop()
