import pytest

import tapgroove.beat_clock
import tapgroove.constants.durations
import tapgroove.energy
import tapgroove.styles
import tapgroove.triggers


Stage = tapgroove.energy.Stage


def make_context (style: tapgroove.styles.Style, step: int, stage: Stage, energy: float = 0.0) -> tapgroove.triggers.TriggerContext:

	"""A trigger context for one step of bar 0."""

	position = tapgroove.beat_clock.BeatPosition(
		tick = step,
		bar = 0,
		beat_in_bar = step // 4,
		sixteenth_in_beat = step % 4,
		step_index = step,
	)

	return tapgroove.triggers.TriggerContext(
		time = 0.0,
		position = position,
		energy = energy,
		stage = stage,
		style = style,
		chord_root = "A1",
	)


# ─── Kick ─────────────────────────────────────────────────────────────────────


def test_kick_idle_plays_only_steps_0_and_8 () -> None:

	"""At idle the kick keeps two anchor hits per bar."""

	fired = [
		step for step in range(16)
		if tapgroove.triggers.decide("kick", make_context(tapgroove.styles.DISCO, step, Stage.IDLE)).trigger
	]

	assert fired == [0, 8]


def test_kick_awakening_plays_quarters () -> None:

	"""At awakening the kick plays on every beat at 0.6."""

	result = tapgroove.triggers.decide("kick", make_context(tapgroove.styles.DISCO, 4, Stage.AWAKENING))

	assert result.trigger
	assert result.velocity == pytest.approx(0.6)
	assert result.duration == tapgroove.constants.durations.EIGHTH


def test_kick_velocity_scales_with_energy_and_character () -> None:

	"""Kick velocity grows with energy, is shaped by the kick style and never exceeds 1."""

	punchy = tapgroove.triggers.decide("kick", make_context(tapgroove.styles.DISCO, 0, Stage.GROOVE, 0.5))
	soft = tapgroove.triggers.decide("kick", make_context(tapgroove.styles.DEEP, 0, Stage.GROOVE, 0.5))
	hard = tapgroove.triggers.decide("kick", make_context(tapgroove.styles.TECH, 0, Stage.EUPHORIA, 1.0))

	assert punchy.velocity == pytest.approx(0.85)
	assert soft.velocity == pytest.approx(0.85 * 0.8)
	assert hard.velocity == 1.0


def test_kick_silent_where_pattern_is_empty () -> None:

	"""No stage can fire the kick on an empty step."""

	for stage in Stage:
		assert not tapgroove.triggers.decide("kick", make_context(tapgroove.styles.DISCO, 1, stage, 1.0)).trigger


# ─── Bass ─────────────────────────────────────────────────────────────────────


def test_bass_idle_is_one_whole_note () -> None:

	"""At idle the bass plays the chord root once per bar as a whole note."""

	fired = [
		tapgroove.triggers.decide("bass", make_context(tapgroove.styles.TRANCE, step, Stage.IDLE))
		for step in range(16)
	]

	assert [i for i, result in enumerate(fired) if result.trigger] == [0]
	assert fired[0].duration == tapgroove.constants.durations.WHOLE
	assert fired[0].note == "A1"


def test_bass_note_length_follows_style () -> None:

	"""The trance bass rolls in sixteenths; other styles play eighths."""

	trance = tapgroove.triggers.decide("bass", make_context(tapgroove.styles.TRANCE, 3, Stage.GROOVE, 0.5))
	nudisco = tapgroove.triggers.decide("bass", make_context(tapgroove.styles.NU_DISCO, 0, Stage.GROOVE, 0.5))

	assert trance.duration == tapgroove.constants.durations.SIXTEENTH
	assert nudisco.duration == tapgroove.constants.durations.EIGHTH
	assert nudisco.velocity == pytest.approx(0.75)


# ─── Hi-hat ───────────────────────────────────────────────────────────────────


def test_hihat_thins_out_at_low_stages () -> None:

	"""Idle keeps quarters and awakening keeps eighths of an all-steps pattern."""

	def fired (stage: Stage) -> list:
		return [
			step for step in range(16)
			if tapgroove.triggers.decide("hihat", make_context(tapgroove.styles.DEEP, step, stage)).trigger
		]

	assert fired(Stage.IDLE) == [0, 4, 8, 12]
	assert fired(Stage.AWAKENING) == [0, 2, 4, 6, 8, 10, 12, 14]
	assert fired(Stage.GROOVE) == list(range(16))


def test_hihat_accent_and_character () -> None:

	"""Beat steps get an accent, open hats are louder and ring on the off-beat eighths."""

	on_beat = tapgroove.triggers.decide("hihat", make_context(tapgroove.styles.TRANCE, 0, Stage.IDLE))
	off_beat = tapgroove.triggers.decide("hihat", make_context(tapgroove.styles.TRANCE, 2, Stage.GROOVE, 0.5))
	closed = tapgroove.triggers.decide("hihat", make_context(tapgroove.styles.DEEP, 2, Stage.GROOVE, 0.5))

	assert on_beat.velocity == pytest.approx(1.2 * 1.1 * 0.4)
	assert off_beat.velocity == pytest.approx(1.1 * 0.7)
	assert off_beat.duration == tapgroove.constants.durations.EIGHTH
	assert closed.velocity == pytest.approx(0.7)
	assert closed.duration == tapgroove.constants.durations.THIRTYSECOND


# ─── Snare ────────────────────────────────────────────────────────────────────


def test_snare_silent_below_groove () -> None:

	"""The snare only joins from groove upward."""

	for stage in (Stage.IDLE, Stage.AWAKENING):
		assert not tapgroove.triggers.decide("snare", make_context(tapgroove.styles.DISCO, 4, stage, 0.39)).trigger

	result = tapgroove.triggers.decide("snare", make_context(tapgroove.styles.DISCO, 4, Stage.GROOVE, 0.5))

	assert result.trigger
	assert result.velocity == pytest.approx(0.7)


# ─── Contracts ────────────────────────────────────────────────────────────────


def test_pattern_value_rejects_steps_outside_the_bar () -> None:

	"""Indexing past the sixteenth step is a contract violation."""

	with pytest.raises(AssertionError):
		tapgroove.triggers.pattern_value(tapgroove.styles.DISCO.patterns.kick, 16)


def test_velocities_stay_in_range () -> None:

	"""Every decision for every style, voice, stage and step keeps velocity within [0, 1]."""

	for style in tapgroove.styles.DEFAULT_CATALOG:
		for stage in Stage:
			for step in range(16):
				for voice in tapgroove.triggers.VOICE_TRIGGERS:
					result = tapgroove.triggers.decide(voice, make_context(style, step, stage, 1.0))
					assert 0.0 <= result.velocity <= 1.0


def test_sidechain_depth_by_stage () -> None:

	"""No ducking at idle, deepening up to -30 dB in euphoria."""

	assert tapgroove.triggers.sidechain_depth(Stage.IDLE) is None
	assert tapgroove.triggers.sidechain_depth(Stage.GROOVE) == -12.0
	assert tapgroove.triggers.sidechain_depth(Stage.EUPHORIA) == -30.0
