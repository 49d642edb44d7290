import asyncio
import json
import typing

import pytest
import websockets.asyncio.client

import conftest
import tapgroove.engine
import tapgroove.web_ui


class FakeSequencer:

	"""Records key presses and exposes an engine."""

	def __init__ (self) -> None:

		self.engine = tapgroove.engine.PerformanceEngine(rng=conftest.ScriptedRandom())
		self.keys: typing.List[str] = []

	def key_pressed (self, symbol: str) -> None:

		self.keys.append(symbol)


def test_get_state_includes_visual_state () -> None:

	"""The broadcast payload is the visual state plus tempo, bar and style id."""

	sequencer = FakeSequencer()
	state = tapgroove.web_ui.WebUI(sequencer).get_state(sequencer)

	assert state["style_name"] == "Disco House"
	assert state["style_id"] == "disco"
	assert state["stage"] == "idle"
	assert state["bpm"] == 128
	assert state["bar"] == 0


def test_malformed_messages_are_ignored () -> None:

	"""Only JSON objects with a key field reach the sequencer."""

	sequencer = FakeSequencer()
	ui = tapgroove.web_ui.WebUI(sequencer)

	ui._handle_message("not json")
	ui._handle_message(json.dumps([1, 2]))
	ui._handle_message(json.dumps({"style": "deep"}))
	ui._handle_message(json.dumps({"key": "s"}))

	assert sequencer.keys == ["s"]


@pytest.mark.asyncio
async def test_websocket_round_trip () -> None:

	"""A connected client receives state and can play keys."""

	sequencer = FakeSequencer()
	ui = tapgroove.web_ui.WebUI(sequencer, ws_port=0, interval=0.01)
	await ui.start()

	port = list(ui._ws_server.sockets)[0].getsockname()[1]

	async with websockets.asyncio.client.connect(f"ws://127.0.0.1:{port}") as websocket:
		state = json.loads(await asyncio.wait_for(websocket.recv(), timeout=2.0))
		await websocket.send(json.dumps({"key": "q"}))
		await asyncio.sleep(0.05)

	await ui.stop()

	assert state["style_id"] == "disco"
	assert sequencer.keys == ["q"]
