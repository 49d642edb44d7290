"""Key presses to melody notes.

Each keyboard row walks up the current style's scale from its root: the top
row from octave 3, the home row from octave 2, the bottom row from octave 1.
The table is derived from the scale, so every style gets its own mapping
without hand-written tables.

A mapped key snaps to the nearest note that fits the current chord (ties go
up); an unmapped key picks one at random.  Every press plays the lead and a
sub-octave double.  From flow upward a perfect fifth joins the lead, and above
the ultra energy threshold a short metallic voice plays an octave up.

Notes are not played immediately: the engine holds them until the next
sixteenth so user input always lands on the grid.
"""

import dataclasses
import logging
import random
import typing

import tapgroove.chords
import tapgroove.constants.durations
import tapgroove.constants.energy
import tapgroove.energy
import tapgroove.styles


logger = logging.getLogger(__name__)

Stage = tapgroove.energy.Stage

KEYBOARD_ROWS: typing.Tuple[typing.Tuple[str, int], ...] = (
	("qwertyuiop", 3),
	("asdfghjkl", 2),
	("zxcvbnm", 1),
)

FIFTH = 7

LEAD_VELOCITY: typing.Dict[Stage, float] = {
	Stage.IDLE: 0.5,
	Stage.AWAKENING: 0.6,
	Stage.GROOVE: 0.75,
	Stage.FLOW: 0.8,
	Stage.EUPHORIA: 0.9,
}

SUB_VELOCITY: typing.Dict[Stage, float] = {
	Stage.IDLE: 0.35,
	Stage.AWAKENING: 0.4,
	Stage.GROOVE: 0.5,
	Stage.FLOW: 0.55,
	Stage.EUPHORIA: 0.6,
}

METAL_VELOCITY = 0.4

NOTE_DURATION: typing.Dict[Stage, float] = {
	Stage.IDLE: tapgroove.constants.durations.QUARTER,
	Stage.AWAKENING: tapgroove.constants.durations.EIGHTH,
	Stage.GROOVE: tapgroove.constants.durations.SIXTEENTH,
	Stage.FLOW: tapgroove.constants.durations.SIXTEENTH,
	Stage.EUPHORIA: tapgroove.constants.durations.SIXTEENTH,
}


@dataclasses.dataclass(frozen=True)
class MelodyNote:

	"""One voice of a melodic event.  Duration is in beats."""

	voice: str
	pitch: str
	velocity: float
	duration: float


def build_key_table (style: tapgroove.styles.Style) -> typing.Dict[str, str]:

	"""
	Map each keyboard symbol to a note of *style*'s scale.

	Each row starts on the scale root at its octave and climbs one degree per
	key; the octave number goes up whenever the walk passes C.
	"""

	table: typing.Dict[str, str] = {}

	for row, start_octave in KEYBOARD_ROWS:

		octave = start_octave
		previous_pc: typing.Optional[int] = None

		for index, symbol in enumerate(row):

			name = style.scale[index % len(style.scale)]
			pc = tapgroove.chords.NOTE_NAME_TO_PC[name]

			if previous_pc is not None and pc <= previous_pc:
				octave += 1

			previous_pc = pc
			table[symbol] = f"{name}{octave}"

	return table


def contextual_notes (style: tapgroove.styles.Style, chord: tapgroove.chords.Chord, stage: Stage) -> typing.List[str]:

	"""The stage scale filtered to chord tones, or the whole stage scale if none fit."""

	stage_scale = tapgroove.styles.scale_for_stage(style, stage)
	fitting = [note for note in stage_scale if chord.contains(note)]

	return fitting or stage_scale


def nearest_note (target: str, candidates: typing.Sequence[str]) -> str:

	"""The candidate closest in pitch to *target*; ties resolve upward."""

	target_midi = tapgroove.chords.note_to_midi(target)

	return min(candidates, key=lambda note: (abs(tapgroove.chords.note_to_midi(note) - target_midi), -tapgroove.chords.note_to_midi(note)))


class MelodyMapper:

	"""
	Stateful key-to-note mapper with its own input throttle.

	Parameters:
		min_interval: Seconds between accepted key presses; faster ones are dropped.
		ultra_threshold: Energy above which the metallic voice joins.
		rng: Random source for unmapped keys.
	"""

	def __init__ (
		self,
		min_interval: float = 0.06,
		ultra_threshold: float = tapgroove.constants.energy.THRESHOLD_ULTRA,
		rng: typing.Optional[random.Random] = None
	) -> None:

		self.min_interval = min_interval
		self.ultra_threshold = ultra_threshold
		self._rng = rng or random.Random()
		self._tables: typing.Dict[str, typing.Dict[str, str]] = {}
		self.last_time: typing.Optional[float] = None

	def reset (self) -> None:

		self.last_time = None

	def key_table (self, style: tapgroove.styles.Style) -> typing.Dict[str, str]:

		"""The (cached) symbol table for a style."""

		if style.id not in self._tables:
			self._tables[style.id] = build_key_table(style)

		return self._tables[style.id]

	def pick_note (self, symbol: typing.Optional[str], style: tapgroove.styles.Style, chord: tapgroove.chords.Chord, stage: Stage) -> str:

		"""Choose the lead pitch for a key press."""

		candidates = contextual_notes(style, chord, stage)
		mapped = self.key_table(style).get(symbol.lower()) if symbol else None

		if mapped is None:
			return self._rng.choice(candidates)

		return nearest_note(mapped, candidates)

	def play (
		self,
		symbol: typing.Optional[str],
		now: float,
		style: tapgroove.styles.Style,
		chord: tapgroove.chords.Chord,
		stage: Stage,
		energy: float
	) -> typing.List[MelodyNote]:

		"""
		Build the notes for one key press, or nothing if throttled.
		"""

		if self.last_time is not None and now - self.last_time < self.min_interval:
			logger.debug(f"Melody input {symbol!r} dropped by throttle")
			return []

		self.last_time = now

		lead = self.pick_note(symbol, style, chord, stage)
		name, octave = tapgroove.chords.split_note(lead)
		duration = NOTE_DURATION[stage]

		notes = [
			MelodyNote("lead", lead, LEAD_VELOCITY[stage], duration),
			MelodyNote("sub", f"{name}{max(1, octave - 1)}", SUB_VELOCITY[stage], duration),
		]

		if stage >= Stage.FLOW:
			notes.append(MelodyNote("lead", tapgroove.chords.transpose(lead, FIFTH), LEAD_VELOCITY[stage], duration))

		if energy > self.ultra_threshold:
			notes.append(MelodyNote("metal", f"{name}{octave + 1}", METAL_VELOCITY, tapgroove.constants.durations.THIRTYSECOND))

		return notes
