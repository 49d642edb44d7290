"""Beat-based duration constants and note-value symbols.

All values are in **beats**, where 1.0 = one quarter note.  Styles and trigger
decisions describe lengths with the short symbols used by most web audio
toolkits (``"8n"`` = eighth note, ``"8n."`` = dotted eighth).  ``NOTE_VALUES``
maps each symbol to its length in beats::

    import tapgroove.constants.durations as dur

    dur.NOTE_VALUES["16n"]     # 0.25 beats
    dur.to_seconds("8n", 128)  # 0.234375
"""

import typing


THIRTYSECOND = 0.125
SIXTEENTH = 0.25
DOTTED_SIXTEENTH = 0.375
EIGHTH = 0.5
DOTTED_EIGHTH = 0.75
QUARTER = 1.0
DOTTED_QUARTER = 1.5
HALF = 2.0
WHOLE = 4.0

NOTE_VALUES: typing.Dict[str, float] = {
	"32n": THIRTYSECOND,
	"16n": SIXTEENTH,
	"16n.": DOTTED_SIXTEENTH,
	"8n": EIGHTH,
	"8n.": DOTTED_EIGHTH,
	"4n": QUARTER,
	"4n.": DOTTED_QUARTER,
	"2n": HALF,
	"1n": WHOLE,
}


def to_seconds (beats: float, bpm: float) -> float:

	"""Convert a length in beats to seconds at the given tempo."""

	return beats * 60.0 / bpm
