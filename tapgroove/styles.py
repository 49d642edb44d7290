"""The style catalog: immutable musical configurations and their query helpers.

A :class:`Style` bundles everything that makes one genre sound like itself:
key and scale, a four-chord progression, the lead's timbre, 16-step drum and
bass patterns, and the reverb/delay atmosphere.  Styles are validated at
construction, so a malformed table fails at import rather than mid-set.

:data:`DEFAULT_CATALOG` holds the five built-in styles in order; the first of
them is the fallback for unknown ids.
"""

import dataclasses
import logging
import random
import typing

import tapgroove.chords
import tapgroove.constants
import tapgroove.energy


logger = logging.getLogger(__name__)

PROGRESSION_LENGTH = 4
BARS_PER_CHORD = 4

KICK_STYLES = ("soft", "punchy", "hard")
HIHAT_STYLES = ("closed", "open", "mixed")

# Octave range of the melody scale at each stage.
STAGE_OCTAVES: typing.Dict[tapgroove.energy.Stage, typing.Tuple[int, int]] = {
	tapgroove.energy.Stage.IDLE: (1, 2),
	tapgroove.energy.Stage.AWAKENING: (1, 3),
	tapgroove.energy.Stage.GROOVE: (2, 4),
	tapgroove.energy.Stage.FLOW: (2, 4),
	tapgroove.energy.Stage.EUPHORIA: (1, 5),
}


def steps (pattern: str) -> typing.Tuple[float, ...]:

	"""Turn a ``"1000100010001000"`` string into a tuple of step intensities."""

	return tuple(float(char) for char in pattern)


@dataclasses.dataclass(frozen=True)
class LeadEnvelope:

	"""ADSR envelope of the lead synth, in seconds (sustain is a level)."""

	attack: float
	decay: float
	sustain: float
	release: float


@dataclasses.dataclass(frozen=True)
class Patterns:

	"""Per-voice 16-step intensity arrays (0 = silent, 1 = full)."""

	kick: typing.Tuple[float, ...]
	bass: typing.Tuple[float, ...]
	hihat: typing.Tuple[float, ...]
	snare: typing.Tuple[float, ...]

	def __post_init__ (self) -> None:

		for field in dataclasses.fields(self):

			pattern = getattr(self, field.name)

			if len(pattern) != tapgroove.constants.STEPS_PER_BAR:
				raise ValueError(f"{field.name} pattern must have {tapgroove.constants.STEPS_PER_BAR} steps, got {len(pattern)}")

			if any(value < 0.0 or value > 1.0 for value in pattern):
				raise ValueError(f"{field.name} pattern values must be within [0, 1]")

	def for_voice (self, voice: str) -> typing.Tuple[float, ...]:

		"""Return the pattern for a voice id."""

		return typing.cast(typing.Tuple[float, ...], getattr(self, voice))


@dataclasses.dataclass(frozen=True)
class Style:

	"""
	A complete named musical configuration.

	Categorical timbre fields (``lead_waveform``, ``delay_time``) are stored as
	given; unknown values are replaced with safe defaults when the style is
	applied, not rejected here.

	Raises:
		ValueError: If the progression does not have exactly four chords or the
			kick/hi-hat character is unknown.
	"""

	id: str
	name: str
	key: str
	mode: str
	scale: typing.Tuple[str, ...]
	chord_progression: typing.Tuple[tapgroove.chords.Chord, ...]

	lead_waveform: str
	lead_spread: float
	filter_cutoff: float
	filter_resonance: float
	lead_envelope: LeadEnvelope

	patterns: Patterns
	kick_style: str
	bass_octave: int
	hihat_style: str
	swing_amount: float

	reverb_decay: float
	reverb_wet: float
	delay_time: str
	delay_feedback: float

	hue_shift: float
	bass_note_value: str = "8n"

	def __post_init__ (self) -> None:

		if len(self.chord_progression) != PROGRESSION_LENGTH:
			raise ValueError(f"Style {self.id!r} needs {PROGRESSION_LENGTH} chords, got {len(self.chord_progression)}")

		if not self.scale:
			raise ValueError(f"Style {self.id!r} has an empty scale")

		for note in self.scale:
			tapgroove.chords.key_name_to_pc(note)

		if self.kick_style not in KICK_STYLES:
			raise ValueError(f"Style {self.id!r} has unknown kick style {self.kick_style!r}")

		if self.hihat_style not in HIHAT_STYLES:
			raise ValueError(f"Style {self.id!r} has unknown hi-hat style {self.hihat_style!r}")


def chord_at (style: Style, bar: int) -> tapgroove.chords.Chord:

	"""Return the chord sounding at *bar*.  Each chord holds for four bars, cycling."""

	progression = style.chord_progression

	return progression[(bar // BARS_PER_CHORD) % len(progression)]


def scale_with_octaves (style: Style, min_octave: int, max_octave: int) -> typing.List[str]:

	"""
	Expand the style's scale across an inclusive octave range.

	Notes are ordered octave-major, then in scale order, with the octave number
	appended to each name: for A minor over octaves 1-2 the result starts
	``["A1", "B1", "C1", ...]`` and has fourteen entries.
	"""

	return [f"{note}{octave}" for octave in range(min_octave, max_octave + 1) for note in style.scale]


def scale_for_stage (style: Style, stage: tapgroove.energy.Stage) -> typing.List[str]:

	"""The melody scale for a stage: wider octave ranges as energy climbs."""

	low, high = STAGE_OCTAVES[stage]

	return scale_with_octaves(style, low, high)


class StyleCatalog:

	"""An ordered, read-only collection of styles."""

	def __init__ (self, styles: typing.Iterable[Style]) -> None:

		self._styles: typing.Tuple[Style, ...] = tuple(styles)

		if not self._styles:
			raise ValueError("A style catalog needs at least one style")

		self._by_id: typing.Dict[str, Style] = {}

		for style in self._styles:

			if style.id in self._by_id:
				raise ValueError(f"Duplicate style id {style.id!r}")

			self._by_id[style.id] = style

	def __iter__ (self) -> typing.Iterator[Style]:
		return iter(self._styles)

	def __len__ (self) -> int:
		return len(self._styles)

	def __contains__ (self, style_id: object) -> bool:
		return style_id in self._by_id

	@property
	def first (self) -> Style:

		"""The default style."""

		return self._styles[0]

	def ids (self) -> typing.List[str]:

		"""Style ids in catalog order."""

		return [style.id for style in self._styles]

	def get (self, style_id: str) -> typing.Optional[Style]:

		"""Return the style with this id, or None."""

		return self._by_id.get(style_id)

	def by_id (self, style_id: str) -> Style:

		"""Return the style with this id, falling back to the first style."""

		style = self._by_id.get(style_id)

		if style is None:
			logger.warning(f"Unknown style {style_id!r}, falling back to {self.first.id!r}")
			return self.first

		return style

	def random_other_than (self, style_id: str, rng: random.Random) -> Style:

		"""Choose uniformly among every style except *style_id*."""

		candidates = [style for style in self._styles if style.id != style_id]

		if not candidates:
			return self.by_id(style_id)

		return rng.choice(candidates)


# ─── Built-in styles ──────────────────────────────────────────────────────────


Chord = tapgroove.chords.Chord


DISCO = Style(
	id = "disco",
	name = "Disco House",
	key = "A",
	mode = "minor",
	scale = ("A", "B", "C", "D", "E", "F", "G"),
	chord_progression = (
		Chord("Am", "A1", ("A", "C", "E")),
		Chord("F", "F1", ("F", "A", "C")),
		Chord("C", "C2", ("C", "E", "G")),
		Chord("G", "G1", ("G", "B", "D")),
	),
	lead_waveform = "fatsquare",
	lead_spread = 25,
	filter_cutoff = 2000,
	filter_resonance = 2,
	lead_envelope = LeadEnvelope(attack=0.01, decay=0.15, sustain=0.2, release=0.25),
	patterns = Patterns(
		kick = steps("1000100010001000"),
		bass = steps("0010001000100010"),
		hihat = steps("0101010101010101"),
		snare = steps("0000100000001000"),
	),
	kick_style = "punchy",
	bass_octave = 1,
	hihat_style = "closed",
	swing_amount = 0.02,
	reverb_decay = 2.5,
	reverb_wet = 0.25,
	delay_time = "8n",
	delay_feedback = 0.2,
	hue_shift = 0,
)

TRANCE = Style(
	id = "trance",
	name = "Uplifting Trance",
	key = "E",
	mode = "minor",
	scale = ("E", "F#", "G", "A", "B", "C", "D"),
	chord_progression = (
		Chord("Em", "E1", ("E", "G", "B")),
		Chord("C", "C2", ("C", "E", "G")),
		Chord("G", "G1", ("G", "B", "D")),
		Chord("D", "D2", ("D", "F#", "A")),
	),
	lead_waveform = "fatsawtooth",
	lead_spread = 35,
	filter_cutoff = 3500,
	filter_resonance = 4,
	lead_envelope = LeadEnvelope(attack=0.001, decay=0.08, sustain=0.0, release=0.15),
	patterns = Patterns(
		kick = steps("1000100110001001"),
		bass = steps("1111111111111111"),
		hihat = steps("1010101010101010"),
		snare = steps("0000100000001000"),
	),
	kick_style = "hard",
	bass_octave = 1,
	hihat_style = "open",
	swing_amount = 0,
	reverb_decay = 3.5,
	reverb_wet = 0.35,
	delay_time = "4n",
	delay_feedback = 0.35,
	hue_shift = -40,
	bass_note_value = "16n",
)

DEEP = Style(
	id = "deep",
	name = "Deep House",
	key = "D",
	mode = "minor",
	scale = ("D", "E", "F", "G", "A", "Bb", "C"),
	chord_progression = (
		Chord("Dm", "D1", ("D", "F", "A")),
		Chord("Bb", "Bb1", ("Bb", "D", "F")),
		Chord("F", "F1", ("F", "A", "C")),
		Chord("C", "C2", ("C", "E", "G")),
	),
	lead_waveform = "triangle",
	lead_spread = 15,
	filter_cutoff = 1200,
	filter_resonance = 6,
	lead_envelope = LeadEnvelope(attack=0.08, decay=0.3, sustain=0.4, release=0.5),
	patterns = Patterns(
		kick = steps("1000001000001000"),
		bass = steps("1001000000100001"),
		hihat = steps("1111111111111111"),
		snare = steps("0000100100001000"),
	),
	kick_style = "soft",
	bass_octave = 1,
	hihat_style = "closed",
	swing_amount = 0.05,
	reverb_decay = 4,
	reverb_wet = 0.4,
	delay_time = "8n.",
	delay_feedback = 0.45,
	hue_shift = 30,
)

NU_DISCO = Style(
	id = "nudisco",
	name = "Nu Disco",
	key = "C",
	mode = "major",
	scale = ("C", "D", "E", "F", "G", "A", "B"),
	chord_progression = (
		Chord("C", "C2", ("C", "E", "G")),
		Chord("Am", "A1", ("A", "C", "E")),
		Chord("F", "F1", ("F", "A", "C")),
		Chord("G", "G1", ("G", "B", "D")),
	),
	lead_waveform = "fatsawtooth",
	lead_spread = 30,
	filter_cutoff = 4000,
	filter_resonance = 3,
	lead_envelope = LeadEnvelope(attack=0.005, decay=0.1, sustain=0.1, release=0.2),
	patterns = Patterns(
		kick = steps("1000100010001000"),
		bass = steps("1010001001001000"),
		hihat = steps("1011101110111011"),
		snare = steps("0000100000001000"),
	),
	kick_style = "punchy",
	bass_octave = 2,
	hihat_style = "open",
	swing_amount = 0.03,
	reverb_decay = 2,
	reverb_wet = 0.2,
	delay_time = "8n",
	delay_feedback = 0.25,
	hue_shift = -60,
)

TECH = Style(
	id = "tech",
	name = "Tech House",
	key = "G",
	mode = "minor",
	scale = ("G", "A", "Bb", "C", "D", "Eb", "F"),
	chord_progression = (
		Chord("Gm", "G1", ("G", "Bb", "D")),
		Chord("Eb", "Eb1", ("Eb", "G", "Bb")),
		Chord("Bb", "Bb1", ("Bb", "D", "F")),
		Chord("F", "F1", ("F", "A", "C")),
	),
	lead_waveform = "fatsquare",
	lead_spread = 10,
	filter_cutoff = 800,
	filter_resonance = 8,
	lead_envelope = LeadEnvelope(attack=0.001, decay=0.05, sustain=0.0, release=0.1),
	patterns = Patterns(
		kick = steps("1000100010001000"),
		bass = steps("1000000100100000"),
		hihat = steps("0010001000100010"),
		snare = steps("0000100000011000"),
	),
	kick_style = "hard",
	bass_octave = 1,
	hihat_style = "closed",
	swing_amount = 0,
	reverb_decay = 1.5,
	reverb_wet = 0.15,
	delay_time = "16n",
	delay_feedback = 0.3,
	hue_shift = 50,
)

DEFAULT_CATALOG = StyleCatalog([DISCO, TRANCE, DEEP, NU_DISCO, TECH])
