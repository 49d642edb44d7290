"""Sixteenth-note tick counter and the bar/beat/step coordinates derived from it."""

import dataclasses

import tapgroove.constants


@dataclasses.dataclass(frozen=True)
class BeatPosition:

	"""A snapshot of the clock at one tick."""

	tick: int
	bar: int
	beat_in_bar: int
	sixteenth_in_beat: int
	step_index: int

	@property
	def is_bar_start (self) -> bool:
		return self.step_index == 0

	@property
	def is_beat_start (self) -> bool:
		return self.sixteenth_in_beat == 0


class BeatClock:

	"""
	Monotonic tick counter, one tick per sixteenth note.

	Only the derived fields wrap; the raw counter never decreases except
	through :meth:`reset`.
	"""

	def __init__ (self) -> None:

		self._tick = 0

	def tick (self) -> int:

		"""Advance by one sixteenth and return the new count."""

		self._tick += 1

		return self._tick

	def reset (self) -> None:

		self._tick = 0

	@property
	def tick_count (self) -> int:
		return self._tick

	@property
	def bar (self) -> int:
		return self._tick // tapgroove.constants.STEPS_PER_BAR

	@property
	def beat_in_bar (self) -> int:
		return (self._tick % tapgroove.constants.STEPS_PER_BAR) // tapgroove.constants.STEPS_PER_BEAT

	@property
	def sixteenth_in_beat (self) -> int:
		return self._tick % tapgroove.constants.STEPS_PER_BEAT

	@property
	def step_index (self) -> int:
		return self._tick % tapgroove.constants.STEPS_PER_BAR

	@property
	def is_bar_start (self) -> bool:
		return self.step_index == 0

	@property
	def position (self) -> BeatPosition:

		"""Freeze the current coordinates into a :class:`BeatPosition`."""

		return BeatPosition(
			tick = self._tick,
			bar = self.bar,
			beat_in_bar = self.beat_in_bar,
			sixteenth_in_beat = self.sixteenth_in_beat,
			step_index = self.step_index,
		)


def seconds_per_step (bpm: float) -> float:

	"""Length of one sixteenth note in seconds."""

	return 60.0 / bpm / tapgroove.constants.STEPS_PER_BEAT


def seconds_per_bar (bpm: float) -> float:

	"""Length of one 4/4 bar in seconds."""

	return seconds_per_step(bpm) * tapgroove.constants.STEPS_PER_BAR
