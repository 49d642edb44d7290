import random
import typing

import mido
import pytest

import tapgroove.commands
import tapgroove.config
import tapgroove.engine


class FakeMidiOut:

	"""MIDI output stub that remembers what was sent."""

	def __init__ (self) -> None:

		self.sent: typing.List[mido.Message] = []
		self.closed = False

	def send (self, message: mido.Message) -> None:

		"""Record an outgoing MIDI message."""

		self.sent.append(message)


	def close (self) -> None:

		"""Mark the fake device closed."""

		self.closed = True


	def of_type (self, message_type: str) -> typing.List[mido.Message]:

		"""Sent messages of one type."""

		return [message for message in self.sent if message.type == message_type]


class BrokenMidiOut (FakeMidiOut):

	"""An output whose device has gone away."""

	def send (self, message: mido.Message) -> None:

		raise OSError("device disconnected")


class ScriptedRandom (random.Random):

	"""
	A random source whose ``random()`` calls return scripted values.

	Once the script runs out every call returns ``default``.  Integer draws
	(``choice``, ``randint``) still come from the seeded generator, so they do
	not consume the script.
	"""

	def __init__ (self, values: typing.Iterable[float] = (), default: float = 0.99, seed: int = 0) -> None:

		super().__init__(seed)
		self.values = list(values)
		self.default = default

	def random (self) -> float:

		if self.values:
			return self.values.pop(0)

		return self.default

	def getrandbits (self, k: int) -> int:

		return super().getrandbits(k)


def _fake_get_output_names () -> list[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


# Module-level reference so tests can inspect the most recently opened FakeMidiOut.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	fake = FakeMidiOut()
	_current_fake_output = fake
	return fake


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use a fake MIDI output for all tests that need it."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def backend () -> tapgroove.commands.RecordingBackend:

	"""An in-memory audio and visual backend."""

	return tapgroove.commands.RecordingBackend()


@pytest.fixture
def engine (backend: tapgroove.commands.RecordingBackend) -> tapgroove.engine.PerformanceEngine:

	"""A started engine in Disco House whose random rolls never succeed."""

	performance = tapgroove.engine.PerformanceEngine(
		config = tapgroove.config.EngineConfig(bpm=128),
		audio = backend,
		rng = ScriptedRandom(),
	)
	performance.start(0.0)
	return performance
