import pytest

import tapgroove.chords


def test_note_to_midi_uses_c4_as_60 () -> None:

	"""Scientific pitch names map onto MIDI numbers with C4 = 60."""

	assert tapgroove.chords.note_to_midi("C4") == 60
	assert tapgroove.chords.note_to_midi("A1") == 33
	assert tapgroove.chords.note_to_midi("Bb1") == 34
	assert tapgroove.chords.note_to_midi("F#3") == 54


def test_midi_to_note_uses_sharps () -> None:

	"""MIDI numbers convert back to sharp note names."""

	assert tapgroove.chords.midi_to_note(61) == "C#4"
	assert tapgroove.chords.midi_to_note(33) == "A1"


def test_transpose_by_a_fifth () -> None:

	"""Transposing E2 up seven semitones gives B2."""

	assert tapgroove.chords.transpose("E2", 7) == "B2"
	assert tapgroove.chords.transpose("A3", 7) == "E4"


def test_split_note () -> None:

	"""A note name splits into its pitch name and octave."""

	assert tapgroove.chords.split_note("Bb1") == ("Bb", 1)
	assert tapgroove.chords.split_note("g4") == ("G", 4)


@pytest.mark.parametrize("note", ["H2", "A", "C#", "Bbb2", ""])
def test_split_note_rejects_malformed_names (note: str) -> None:

	"""Anything that is not a note name followed by an octave raises ValueError."""

	with pytest.raises(ValueError):
		tapgroove.chords.split_note(note)


def test_same_pitch_class_ignores_octave_and_spelling () -> None:

	"""Enharmonic spellings in different octaves share a pitch class."""

	assert tapgroove.chords.same_pitch_class("Bb1", "A#")
	assert tapgroove.chords.same_pitch_class("C2", "C5")
	assert not tapgroove.chords.same_pitch_class("C2", "D2")


def test_chord_contains_checks_pitch_class () -> None:

	"""A chord contains any octave of its tones."""

	chord = tapgroove.chords.Chord("Am", "A1", ("A", "C", "E"))

	assert chord.contains("E4")
	assert chord.contains("C1")
	assert not chord.contains("G3")


def test_chord_validates_its_notes () -> None:

	"""A chord with an unknown root or tone fails at construction."""

	with pytest.raises(ValueError):
		tapgroove.chords.Chord("X", "H1", ("A",))

	with pytest.raises(ValueError):
		tapgroove.chords.Chord("X", "A1", ("A", "Q"))
