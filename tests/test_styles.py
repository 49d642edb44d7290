import dataclasses
import logging
import random

import pytest

import tapgroove.energy
import tapgroove.styles


def test_default_catalog_order () -> None:

	"""The built-in catalog holds five styles with Disco House first."""

	catalog = tapgroove.styles.DEFAULT_CATALOG

	assert len(catalog) == 5
	assert catalog.ids() == ["disco", "trance", "deep", "nudisco", "tech"]
	assert catalog.first.name == "Disco House"
	assert "deep" in catalog
	assert "polka" not in catalog


def test_by_id_falls_back_to_first_style (caplog: pytest.LogCaptureFixture) -> None:

	"""An unknown id returns the first style and logs a warning."""

	with caplog.at_level(logging.WARNING):
		style = tapgroove.styles.DEFAULT_CATALOG.by_id("polka")

	assert style is tapgroove.styles.DISCO
	assert "polka" in caplog.text
	assert tapgroove.styles.DEFAULT_CATALOG.get("polka") is None


def test_random_other_than_never_repeats () -> None:

	"""The transition destination is always a different style."""

	rng = random.Random(3)
	chosen = {tapgroove.styles.DEFAULT_CATALOG.random_other_than("disco", rng).id for _ in range(100)}

	assert "disco" not in chosen
	assert chosen == {"trance", "deep", "nudisco", "tech"}


def test_scale_with_octaves_is_octave_major () -> None:

	"""A seven-note scale over two octaves gives fourteen notes, octave by octave."""

	notes = tapgroove.styles.scale_with_octaves(tapgroove.styles.DISCO, 1, 2)

	assert len(notes) == 14
	assert notes[:7] == ["A1", "B1", "C1", "D1", "E1", "F1", "G1"]
	assert notes[7:] == ["A2", "B2", "C2", "D2", "E2", "F2", "G2"]


def test_scale_widens_with_stage () -> None:

	"""Higher stages spread the melody across more octaves."""

	idle = tapgroove.styles.scale_for_stage(tapgroove.styles.DISCO, tapgroove.energy.Stage.IDLE)
	euphoria = tapgroove.styles.scale_for_stage(tapgroove.styles.DISCO, tapgroove.energy.Stage.EUPHORIA)

	assert len(idle) == 14
	assert len(euphoria) == 35


def test_chords_hold_for_four_bars_and_cycle () -> None:

	"""Each chord lasts four bars and the progression repeats every sixteen."""

	names = [tapgroove.styles.chord_at(tapgroove.styles.DISCO, bar).name for bar in (0, 3, 4, 8, 12, 16)]

	assert names == ["Am", "Am", "F", "C", "G", "Am"]


def test_style_needs_four_chords () -> None:

	"""A progression of any other length fails at construction."""

	with pytest.raises(ValueError, match="4 chords"):
		dataclasses.replace(tapgroove.styles.DISCO, chord_progression=tapgroove.styles.DISCO.chord_progression[:3])


def test_style_rejects_unknown_characters () -> None:

	"""Kick and hi-hat characters must be known."""

	with pytest.raises(ValueError):
		dataclasses.replace(tapgroove.styles.DISCO, kick_style="wet")

	with pytest.raises(ValueError):
		dataclasses.replace(tapgroove.styles.DISCO, hihat_style="sizzle")


def test_patterns_need_sixteen_steps_in_range () -> None:

	"""Patterns must have sixteen steps with values in [0, 1]."""

	full = tapgroove.styles.steps("1" * 16)

	with pytest.raises(ValueError, match="16 steps"):
		tapgroove.styles.Patterns(kick=full[:15], bass=full, hihat=full, snare=full)

	with pytest.raises(ValueError, match="within"):
		tapgroove.styles.Patterns(kick=(1.5,) + full[1:], bass=full, hihat=full, snare=full)


def test_every_builtin_style_is_well_formed () -> None:

	"""Each built-in style's patterns and chords are playable."""

	for style in tapgroove.styles.DEFAULT_CATALOG:
		assert len(style.chord_progression) == 4
		assert all(len(style.patterns.for_voice(voice)) == 16 for voice in ("kick", "bass", "hihat", "snare"))
		assert style.bass_note_value in ("8n", "16n")
