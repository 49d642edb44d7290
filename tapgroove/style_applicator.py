"""Turn style values into parameter ramps for the audio backend.

Effects glide: reverb send and delay feedback over two seconds, the filter
over one.  Reverb size and delay time cannot glide and are set directly.
Instrument timbre (waveform, detune spread, envelope) is set directly too,
for the lead and for the sub layer, whose envelope is a slower, softer copy
of the lead's.

Categorical values are checked here.  An unknown waveform or delay symbol is
replaced with a safe default and logged; the performance carries on.
"""

import logging
import typing

import tapgroove.commands
import tapgroove.constants.durations
import tapgroove.style_director
import tapgroove.styles


logger = logging.getLogger(__name__)

VALID_WAVEFORMS = ("fatsquare", "fatsawtooth", "triangle", "sine")
DEFAULT_WAVEFORM = "fatsquare"
DEFAULT_DELAY_TIME = "8n"

EFFECT_RAMP_SECONDS: typing.Dict[str, float] = {
	"reverb_wet": 2.0,
	"delay_feedback": 2.0,
	"filter_cutoff": 1.0,
	"filter_resonance": 1.0,
}

# Sub layer envelope relative to the lead.
SUB_ENVELOPE_SCALE: typing.Dict[str, float] = {
	"attack": 1.2,
	"decay": 1.5,
	"sustain": 0.8,
	"release": 1.2,
}


def validate_waveform (waveform: str) -> str:

	"""Return *waveform* if it is known, else the default with a warning."""

	if waveform in VALID_WAVEFORMS:
		return waveform

	logger.warning(f"Invalid waveform {waveform!r}, using {DEFAULT_WAVEFORM!r}")

	return DEFAULT_WAVEFORM


def validate_delay_time (symbol: str) -> str:

	"""Return *symbol* if it is a known note value, else the default with a warning."""

	if symbol in tapgroove.constants.durations.NOTE_VALUES:
		return symbol

	logger.warning(f"Invalid delay time {symbol!r}, using {DEFAULT_DELAY_TIME!r}")

	return DEFAULT_DELAY_TIME


def effect_ramps (values: tapgroove.style_director.StyleValues, now: float) -> typing.List[tapgroove.commands.ParameterRamp]:

	"""Ramps that move the effect chain to *values*.  Delay time is in beats."""

	ramps = [
		tapgroove.commands.ParameterRamp(parameter, float(getattr(values, parameter)), seconds, now)
		for parameter, seconds in EFFECT_RAMP_SECONDS.items()
	]

	delay_symbol = validate_delay_time(values.delay_time)

	ramps.append(tapgroove.commands.ParameterRamp("reverb_decay", float(values.reverb_decay), 0.0, now))
	ramps.append(tapgroove.commands.ParameterRamp("delay_time", tapgroove.constants.durations.NOTE_VALUES[delay_symbol], 0.0, now))

	return ramps


def instrument_ramps (values: tapgroove.style_director.StyleValues, now: float) -> typing.List[tapgroove.commands.ParameterRamp]:

	"""
	Immediate settings for the lead and sub layer timbre.

	The waveform travels as its index in :data:`VALID_WAVEFORMS`.
	"""

	waveform = validate_waveform(values.lead_waveform)
	envelope = values.lead_envelope

	ramps = [
		tapgroove.commands.ParameterRamp("lead_waveform", float(VALID_WAVEFORMS.index(waveform)), 0.0, now),
		tapgroove.commands.ParameterRamp("lead_spread", float(values.lead_spread), 0.0, now),
	]

	for stage_name, scale in SUB_ENVELOPE_SCALE.items():

		lead_value = float(getattr(envelope, stage_name))

		ramps.append(tapgroove.commands.ParameterRamp(f"lead_{stage_name}", lead_value, 0.0, now))
		ramps.append(tapgroove.commands.ParameterRamp(f"sub_{stage_name}", lead_value * scale, 0.0, now))

	return ramps


class StyleApplicator:

	"""
	Sends style values to an audio backend and absorbs its rejections.

	A rejected ramp is a dropped cosmetic update, so it is logged at debug
	level and otherwise ignored.
	"""

	def __init__ (self, backend: tapgroove.commands.AudioBackend) -> None:

		self.backend = backend
		self.rejections = 0

	def _send (self, ramps: typing.Iterable[tapgroove.commands.ParameterRamp]) -> typing.List[tapgroove.commands.RampStatus]:

		statuses = []

		for ramp in ramps:

			try:
				status = self.backend.ramp(ramp)
			except Exception:
				logger.exception(f"Audio backend failed to ramp {ramp.parameter}")
				status = tapgroove.commands.RampStatus.rejected("backend error")

			if not status.applied:
				self.rejections += 1
				logger.debug(f"Ramp for {ramp.parameter} rejected: {status.reason}")

			statuses.append(status)

		return statuses

	def apply_effects (self, values: tapgroove.style_director.StyleValues, now: float) -> typing.List[tapgroove.commands.RampStatus]:

		"""Glide the effect chain toward *values*."""

		return self._send(effect_ramps(values, now))

	def apply_instruments (self, values: tapgroove.style_director.StyleValues, now: float) -> typing.List[tapgroove.commands.RampStatus]:

		"""Set the lead and sub timbre to *values*."""

		return self._send(instrument_ramps(values, now))

	def apply_style (self, style: tapgroove.styles.Style, now: float) -> None:

		"""Apply a whole style at once, e.g. at startup."""

		values = tapgroove.style_director.StyleValues.of(style)

		self.apply_instruments(values, now)
		self.apply_effects(values, now)

	def send (self, ramp: tapgroove.commands.ParameterRamp) -> tapgroove.commands.RampStatus:

		"""Send a single ramp with the same rejection handling."""

		return self._send([ramp])[0]
