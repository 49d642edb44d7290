import random

import pytest

import conftest
import tapgroove.beat_clock
import tapgroove.constants.durations
import tapgroove.embellishments
import tapgroove.energy


Stage = tapgroove.energy.Stage


def bar_start (bar: int) -> tapgroove.beat_clock.BeatPosition:

	return tapgroove.beat_clock.BeatPosition(tick=bar * 16, bar=bar, beat_in_bar=0, sixteenth_in_beat=0, step_index=0)


def test_db_to_velocity () -> None:

	"""-30 dB is silence and 0 dB is full velocity."""

	assert tapgroove.embellishments.db_to_velocity(-30) == 0.0
	assert tapgroove.embellishments.db_to_velocity(-15) == pytest.approx(0.5)
	assert tapgroove.embellishments.db_to_velocity(0) == 1.0
	assert tapgroove.embellishments.db_to_velocity(6) == 1.0


# ─── Sparkle ──────────────────────────────────────────────────────────────────


def test_sparkle_chances_grow_with_stage () -> None:

	"""Per-press sparkle chance runs from 5 % at idle to 30 % in euphoria."""

	sparkle = tapgroove.embellishments.SparkleScheduler()

	assert [sparkle.chance_for_stage(stage) for stage in Stage] == [0.05, 0.10, 0.15, 0.20, 0.30]


@pytest.mark.parametrize("energy, intensity", [
	(0.1, "low"),
	(0.3, "low"),
	(0.31, "medium"),
	(0.6, "medium"),
	(0.61, "high"),
])
def test_sparkle_intensity_for_energy (energy: float, intensity: str) -> None:

	"""Intensity steps up above 0.3 and above 0.6."""

	assert tapgroove.embellishments.SparkleScheduler.intensity_for_energy(energy) == intensity


def test_low_sparkle_is_one_quiet_note () -> None:

	"""A low sparkle is one eighth note at 0.4, just after the press."""

	sparkle = tapgroove.embellishments.SparkleScheduler(bpm=128, rng=random.Random(1))
	figure = sparkle.fire("low", 2.0)

	assert len(figure) == 1
	assert figure[0].voice == "sparkle"
	assert figure[0].pitch in tapgroove.embellishments.SPARKLE_NOTES
	assert figure[0].velocity == 0.4
	assert figure[0].scheduled_time == pytest.approx(2.01)
	assert figure[0].duration == pytest.approx(tapgroove.constants.durations.to_seconds(0.5, 128))


def test_high_sparkle_ascends () -> None:

	"""A high sparkle plays three ascending notes 60 ms apart."""

	sparkle = tapgroove.embellishments.SparkleScheduler(rng=random.Random(2))
	figure = sparkle.fire("high", 0.0)
	notes = tapgroove.embellishments.SPARKLE_NOTES

	assert len(figure) == 3
	assert [round(note.scheduled_time - figure[0].scheduled_time, 3) for note in figure] == [0.0, 0.06, 0.12]

	first = notes.index(figure[0].pitch)
	assert [note.pitch for note in figure] == [notes[(first + i) % len(notes)] for i in range(3)]


def test_medium_sparkle_is_two_notes () -> None:

	"""A medium sparkle plays two notes 80 ms apart."""

	figure = tapgroove.embellishments.SparkleScheduler(rng=random.Random(3)).fire("medium", 0.0)

	assert len(figure) == 2
	assert figure[1].scheduled_time - figure[0].scheduled_time == pytest.approx(0.08)


def test_sparkle_throttle_and_pulse_count () -> None:

	"""Sparkles closer than 200 ms are dropped and do not count as pulses."""

	sparkle = tapgroove.embellishments.SparkleScheduler(rng=random.Random(4))

	assert sparkle.fire("low", 0.0)
	assert sparkle.fire("low", 0.1) == []
	assert sparkle.fire("low", 0.25)
	assert sparkle.pulses == 2


def test_unknown_sparkle_intensity_raises () -> None:

	"""Intensity must be low, medium or high."""

	with pytest.raises(ValueError):
		tapgroove.embellishments.SparkleScheduler().fire("deafening", 0.0)


def test_background_sparkle_every_twelfth_bar () -> None:

	"""Background sparkles are only considered on every twelfth bar, at 5 %."""

	sparkle = tapgroove.embellishments.SparkleScheduler(rng=conftest.ScriptedRandom([0.01, 0.5]))

	assert sparkle.check_background(5, 0.0) == []
	assert len(sparkle.check_background(12, 10.0)) == 1
	assert sparkle.check_background(24, 20.0) == []


def test_roll_uses_stage_chance () -> None:

	"""A roll succeeds only under the stage's chance."""

	sparkle = tapgroove.embellishments.SparkleScheduler(rng=conftest.ScriptedRandom([0.2, 0.2]))

	assert not sparkle.roll(Stage.GROOVE)
	assert sparkle.roll(Stage.EUPHORIA)


# ─── Riser and impact ─────────────────────────────────────────────────────────


def test_riser_sweeps_filter_once () -> None:

	"""A riser emits a noise trigger and an exponential filter sweep, and is guarded."""

	riser = tapgroove.embellishments.RiserScheduler()
	triggers, ramps = riser.riser(3.75, 10.0)

	assert [command.voice for command in triggers] == ["riser"]
	assert triggers[0].duration == 3.75
	assert triggers[0].velocity == pytest.approx(tapgroove.embellishments.db_to_velocity(-18))

	sweep = ramps[0]
	assert (sweep.parameter, sweep.start, sweep.target, sweep.shape) == ("fx_filter", 200.0, 5000.0, "exponential")
	assert sweep.ramp_time == 3.75

	assert riser.riser(3.75, 11.0) == ([], [])


def test_riser_guard_releases_after_tail () -> None:

	"""Polling after the riser's tail returns the filter reset and allows a new riser."""

	riser = tapgroove.embellishments.RiserScheduler()
	riser.riser(2.0, 0.0)

	assert riser.poll(2.4) is None

	reset = riser.poll(2.5)

	assert reset is not None
	assert reset.target == tapgroove.embellishments.FILTER_REST
	assert not riser.playing
	assert riser.riser(2.0, 3.0)[0]


def test_cancel_drops_pending_reset () -> None:

	"""Cancelling leaves nothing to reset later."""

	riser = tapgroove.embellishments.RiserScheduler("epic")
	riser.riser(2.0, 0.0)
	riser.cancel()

	assert riser.poll(10.0) is None
	assert riser.riser(2.0, 10.0)[1][0].target == 8000.0


def test_impact () -> None:

	"""An impact is a 150 ms hit with a falling filter."""

	triggers, ramps = tapgroove.embellishments.RiserScheduler().impact(5.0)

	assert triggers[0].voice == "impact"
	assert triggers[0].duration == 0.15
	assert (ramps[0].start, ramps[0].target) == (2000.0, 100.0)


def test_unknown_riser_intensity_raises () -> None:

	"""Riser intensity must be normal or epic."""

	with pytest.raises(ValueError):
		tapgroove.embellishments.RiserScheduler("apocalyptic")


# ─── Drop ─────────────────────────────────────────────────────────────────────


def test_drop_fires_delayed_accent_kick () -> None:

	"""In euphoria on a fourth bar, a successful roll delays the downbeat kick."""

	drops = tapgroove.embellishments.DropScheduler(rng=conftest.ScriptedRandom([0.1]))
	kick = drops.check(Stage.EUPHORIA, bar_start(8), 20.0)

	assert kick is not None
	assert kick.voice == "kick"
	assert kick.velocity == 1.0
	assert kick.scheduled_time == pytest.approx(20.1)


def test_drop_conditions () -> None:

	"""Drops need euphoria, a bar start on a multiple of four and a roll under 25 %."""

	drops = tapgroove.embellishments.DropScheduler(rng=conftest.ScriptedRandom([0.1, 0.1, 0.3], default=0.0))
	off_step = tapgroove.beat_clock.BeatPosition(tick=65, bar=4, beat_in_bar=0, sixteenth_in_beat=1, step_index=1)

	assert drops.check(Stage.FLOW, bar_start(4), 0.0) is None
	assert drops.check(Stage.EUPHORIA, bar_start(5), 0.0) is None
	assert drops.check(Stage.EUPHORIA, off_step, 0.0) is None
	assert drops.check(Stage.EUPHORIA, bar_start(4), 0.0) is not None
	assert drops.check(Stage.EUPHORIA, bar_start(4), 0.0) is not None
	assert drops.check(Stage.EUPHORIA, bar_start(4), 0.0) is None
