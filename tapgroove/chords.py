"""Pitch names, pitch classes and chord records.

Pitches travel through the engine as scientific note names (``"A1"``,
``"F#3"``, ``"Bb1"``) because that is how the style tables are written and how
trigger commands describe them.  The helpers here convert between names and
MIDI note numbers (C4 = 60, so A1 = 33).

Module-level constants:
- `NOTE_NAME_TO_PC`: Maps note names (e.g. `"C"`, `"F#"`, `"Bb"`) to pitch classes (0-11)
- `PC_TO_NOTE_NAME`: Maps pitch classes to sharp note names
"""

import dataclasses
import re
import typing


NOTE_NAME_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
}

PC_TO_NOTE_NAME: typing.List[str] = [
	"C",
	"C#",
	"D",
	"D#",
	"E",
	"F",
	"F#",
	"G",
	"G#",
	"A",
	"A#",
	"B",
]

_NOTE_PATTERN = re.compile(r"^([A-Ga-g][#b]?)(-?\d+)$")


def key_name_to_pc (key_name: str) -> int:

	"""Validate a note name without octave and return its pitch class (0-11).

	Raises:
		ValueError: If the name is not recognised.
	"""

	if key_name not in NOTE_NAME_TO_PC:
		raise ValueError(f"Unknown note name: {key_name!r}")

	return NOTE_NAME_TO_PC[key_name]


def split_note (note: str) -> typing.Tuple[str, int]:

	"""Split ``"Bb1"`` into ``("Bb", 1)``.

	Raises:
		ValueError: If the string is not a note name followed by an octave.
	"""

	match = _NOTE_PATTERN.match(note)

	if match is None:
		raise ValueError(f"Not a note with octave: {note!r}")

	name = match.group(1)
	name = name[0].upper() + name[1:]

	key_name_to_pc(name)

	return name, int(match.group(2))


def pitch_class_name (note: str) -> str:

	"""Strip the octave from a note name: ``"F#3"`` becomes ``"F#"``."""

	return split_note(note)[0]


def note_to_midi (note: str) -> int:

	"""Convert a note name with octave to a MIDI note number (C4 = 60)."""

	name, octave = split_note(note)

	return (octave + 1) * 12 + NOTE_NAME_TO_PC[name]


def midi_to_note (midi_note: int) -> str:

	"""Convert a MIDI note number to a sharp note name with octave."""

	return f"{PC_TO_NOTE_NAME[midi_note % 12]}{midi_note // 12 - 1}"


def transpose (note: str, semitones: int) -> str:

	"""Shift a note name by a number of semitones."""

	return midi_to_note(note_to_midi(note) + semitones)


def same_pitch_class (a: str, b: str) -> bool:

	"""Compare two note names (with or without octave) by pitch class."""

	a_name = a if a in NOTE_NAME_TO_PC else pitch_class_name(a)
	b_name = b if b in NOTE_NAME_TO_PC else pitch_class_name(b)

	return NOTE_NAME_TO_PC[a_name] == NOTE_NAME_TO_PC[b_name]


@dataclasses.dataclass(frozen=True)
class Chord:

	"""
	One step of a style's chord progression.

	Attributes:
		name: Display name such as ``"Am"``.
		root: Bass root with octave, voiced by the bass line (``"A1"``).
		tones: Chord tones as pitch-class names (``("A", "C", "E")``).
	"""

	name: str
	root: str
	tones: typing.Tuple[str, ...]

	def __post_init__ (self) -> None:

		split_note(self.root)

		for tone in self.tones:
			key_name_to_pc(tone)

	def contains (self, note: str) -> bool:

		"""Return True when the note's pitch class is one of the chord tones."""

		return any(same_pitch_class(note, tone) for tone in self.tones)
