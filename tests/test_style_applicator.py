import dataclasses
import logging

import pytest

import tapgroove.commands
import tapgroove.style_applicator
import tapgroove.style_director
import tapgroove.styles


def by_parameter (ramps: list) -> dict:

	return {ramp.parameter: ramp for ramp in ramps}


def test_effect_ramps_glide_and_set () -> None:

	"""Reverb send and feedback glide over 2 s, the filter over 1 s, reverb size and delay time jump."""

	ramps = by_parameter(tapgroove.style_applicator.effect_ramps(tapgroove.style_director.StyleValues.of(tapgroove.styles.DISCO), 4.0))

	assert (ramps["reverb_wet"].target, ramps["reverb_wet"].ramp_time) == (0.25, 2.0)
	assert (ramps["delay_feedback"].target, ramps["delay_feedback"].ramp_time) == (0.2, 2.0)
	assert (ramps["filter_cutoff"].target, ramps["filter_cutoff"].ramp_time) == (2000.0, 1.0)
	assert (ramps["reverb_decay"].target, ramps["reverb_decay"].ramp_time) == (2.5, 0.0)
	assert ramps["delay_time"].target == 0.5
	assert all(ramp.scheduled_time == 4.0 for ramp in ramps.values())


def test_dotted_delay_time_in_beats () -> None:

	"""A dotted eighth delay is three quarters of a beat."""

	ramps = by_parameter(tapgroove.style_applicator.effect_ramps(tapgroove.style_director.StyleValues.of(tapgroove.styles.DEEP), 0.0))

	assert ramps["delay_time"].target == 0.75


def test_instrument_ramps_cover_lead_and_sub () -> None:

	"""The waveform travels as an index and the sub envelope is a scaled copy of the lead's."""

	ramps = by_parameter(tapgroove.style_applicator.instrument_ramps(tapgroove.style_director.StyleValues.of(tapgroove.styles.TRANCE), 0.0))

	assert ramps["lead_waveform"].target == 1.0
	assert ramps["lead_spread"].target == 35.0
	assert ramps["lead_decay"].target == pytest.approx(0.08)
	assert ramps["sub_decay"].target == pytest.approx(0.08 * 1.5)
	assert ramps["sub_release"].target == pytest.approx(0.15 * 1.2)


def test_invalid_waveform_falls_back (caplog: pytest.LogCaptureFixture) -> None:

	"""An unknown waveform is replaced by fatsquare with a warning."""

	style = dataclasses.replace(tapgroove.styles.DISCO, lead_waveform="wobble")

	with caplog.at_level(logging.WARNING):
		ramps = by_parameter(tapgroove.style_applicator.instrument_ramps(tapgroove.style_director.StyleValues.of(style), 0.0))

	assert ramps["lead_waveform"].target == 0.0
	assert "wobble" in caplog.text


def test_invalid_delay_time_falls_back (caplog: pytest.LogCaptureFixture) -> None:

	"""An unknown delay symbol is replaced by an eighth note with a warning."""

	with caplog.at_level(logging.WARNING):
		assert tapgroove.style_applicator.validate_delay_time("3n") == "8n"

	assert "3n" in caplog.text
	assert tapgroove.style_applicator.validate_delay_time("4n.") == "4n."


def test_rejected_ramps_are_counted_not_raised () -> None:

	"""Ramps refused by the backend are absorbed and counted."""

	backend = tapgroove.commands.RecordingBackend(min_ramp_spacing=0.05)
	applicator = tapgroove.style_applicator.StyleApplicator(backend)
	values = tapgroove.style_director.StyleValues.of(tapgroove.styles.DISCO)

	first = applicator.apply_effects(values, 1.0)
	second = applicator.apply_effects(values, 1.01)

	assert all(status.applied for status in first)
	assert not any(status.applied for status in second)
	assert applicator.rejections == len(second) == 6
	assert len(backend.rejected) == 6


def test_backend_errors_are_contained (caplog: pytest.LogCaptureFixture) -> None:

	"""A backend that raises costs the ramp, not the caller."""

	class Exploding:

		def trigger (self, command: tapgroove.commands.TriggerCommand) -> None:
			raise RuntimeError("boom")

		def ramp (self, command: tapgroove.commands.ParameterRamp) -> tapgroove.commands.RampStatus:
			raise RuntimeError("boom")

	applicator = tapgroove.style_applicator.StyleApplicator(Exploding())

	with caplog.at_level(logging.ERROR):
		status = applicator.send(tapgroove.commands.ParameterRamp("reverb_wet", 0.5, 1.0, 0.0))

	assert not status.applied
	assert applicator.rejections == 1
	assert "reverb_wet" in caplog.text


def test_apply_style_sends_everything () -> None:

	"""Applying a whole style sends both instrument and effect settings."""

	backend = tapgroove.commands.RecordingBackend()
	tapgroove.style_applicator.StyleApplicator(backend).apply_style(tapgroove.styles.TECH, 0.0)

	parameters = {ramp.parameter for ramp in backend.ramps}

	assert {"lead_waveform", "sub_attack", "reverb_wet", "delay_time", "filter_cutoff"} <= parameters
