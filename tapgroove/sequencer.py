import asyncio
import logging
import time
import typing

import tapgroove.constants
import tapgroove.constants.pulses
import tapgroove.engine
import tapgroove.midi_backend


logger = logging.getLogger(__name__)


class Sequencer:

	"""
	The real-time runtime that drives a :class:`~tapgroove.engine.PerformanceEngine`.

	Two asyncio tasks share one event loop:

	- the **clock loop** runs at 24 pulses per quarter note, hands due MIDI
	  messages to the backend on every pulse and calls ``engine.tick()`` on every
	  sixteenth (six pulses);
	- the **display loop** calls ``engine.frame()`` at the configured frame rate.

	Neither loop preempts the other, so engine state is only ever observed
	between whole operations.
	"""

	def __init__ (
		self,
		engine: tapgroove.engine.PerformanceEngine,
		midi: typing.Optional[tapgroove.midi_backend.MidiBackend] = None,
		spin_wait: bool = True
	) -> None:

		"""Initialize the sequencer.

		Parameters:
			engine: The engine to drive.  Its ``audio`` backend should be *midi*
				when MIDI output is wanted.
			midi: Backend whose queued messages are flushed every pulse.
			spin_wait: When True (default), busy-wait the final millisecond
				before each pulse for tighter timing.
		"""

		self.engine = engine
		self.midi = midi
		self.pulses_per_beat = tapgroove.constants.pulses.PULSES_PER_QUARTER
		self.pulses_per_step = tapgroove.constants.pulses.PULSES_PER_SIXTEENTH
		self.seconds_per_pulse = 60.0 / engine.bpm / self.pulses_per_beat
		self.frame_interval = 1.0 / engine.config.frame_rate

		self.running = False
		self.start_time = 0.0
		self.pulse_count = 0
		self._clock_task: typing.Optional[asyncio.Task] = None
		self._display_task: typing.Optional[asyncio.Task] = None

		self._spin_wait = spin_wait
		# Sleep to within this many seconds of the target, then busy-wait.
		self._spin_threshold = 0.001

	def elapsed (self) -> float:

		"""Seconds on the performance clock since :meth:`start`."""

		if not self.running:
			return self.pulse_count * self.seconds_per_pulse

		return time.perf_counter() - self.start_time

	async def start (self) -> None:

		"""Start both loops as background tasks."""

		if self.running:
			return

		self.running = True
		self.pulse_count = 0
		self.start_time = time.perf_counter()
		self.engine.start(0.0)

		self._clock_task = asyncio.create_task(self._run_clock_loop())
		self._display_task = asyncio.create_task(self._run_display_loop())

		logger.info("Sequencer started")

	async def stop (self) -> None:

		"""
		Stop both loops, cancel pending engine timers and silence the output.
		"""

		if not self.running:
			return

		logger.info("Stopping sequencer...")

		self.running = False

		for task in (self._clock_task, self._display_task):
			if task is not None:
				task.cancel()
				try:
					await task
				except asyncio.CancelledError:
					pass

		self._clock_task = None
		self._display_task = None

		self.engine.stop()

		if self.midi is not None:
			self.midi.panic()

		logger.info("Sequencer stopped")

	async def play (self) -> None:

		"""
		Start playback and wait until cancelled.
		"""

		await self.start()

		try:
			if self._clock_task:
				await self._clock_task
		except asyncio.CancelledError:
			pass
		finally:
			await self.stop()

	def key_pressed (self, symbol: typing.Optional[str]) -> None:

		"""Forward an input event to the engine at the current performance time."""

		if not self.running:
			return

		self.engine.key_pressed(symbol, self.elapsed())

	def _advance_pulse (self, pulse_time: float) -> None:

		"""Tick the engine on sixteenth boundaries, then flush due MIDI."""

		if self.pulse_count % self.pulses_per_step == 0:
			self.engine.tick(pulse_time)

		if self.midi is not None:
			self.midi.process(pulse_time)

		self.pulse_count += 1

	async def _run_clock_loop (self) -> None:

		"""Pulse loop scheduled against absolute target times, so it never drifts."""

		next_pulse_time = 0.0

		while self.running:

			current_time = time.perf_counter() - self.start_time

			while current_time >= next_pulse_time:
				self._advance_pulse(next_pulse_time)
				next_pulse_time += self.seconds_per_pulse

			sleep_time = next_pulse_time - (time.perf_counter() - self.start_time)

			if sleep_time > 0:
				if self._spin_wait and sleep_time > self._spin_threshold:
					await asyncio.sleep(sleep_time - self._spin_threshold)
					while time.perf_counter() - self.start_time < next_pulse_time:
						pass
				else:
					await asyncio.sleep(sleep_time)
			else:
				await asyncio.sleep(0)

	async def _run_display_loop (self) -> None:

		while self.running:
			self.engine.frame(self.elapsed())
			await asyncio.sleep(self.frame_interval)

	def render (self, bars: int, keys: typing.Optional[typing.Mapping[float, str]] = None) -> None:

		"""
		Run *bars* bars as fast as possible on a simulated clock.

		Both loops are interleaved in time order without sleeping.  *keys* maps
		performance times to key symbols to press along the way.
		"""

		pending_keys = sorted((keys or {}).items())
		total_pulses = bars * tapgroove.constants.STEPS_PER_BAR * self.pulses_per_step
		next_frame = 0.0

		self.engine.start(0.0)

		for pulse in range(total_pulses):

			pulse_time = pulse * self.seconds_per_pulse

			while next_frame <= pulse_time:
				self.engine.frame(next_frame)
				next_frame += self.frame_interval

			while pending_keys and pending_keys[0][0] <= pulse_time:
				at, symbol = pending_keys.pop(0)
				self.engine.key_pressed(symbol, at)

			self._advance_pulse(pulse_time)

		self.engine.stop()
