"""Energy-driven effect shaping.

As energy climbs, the lead filter opens along an exponential curve and gains
resonance, and the room tightens from a deep idle wash to a short euphoric
one.  Extra colour arrives stage by stage: chorus from groove, phaser from
flow, lead drive above 0.75 and the bit crusher above the ultra threshold.
The bass picks up drive from flow, and the hi-hat and snare buses grow louder
with energy (the snare bus is muted below groove).

These parameters sit beside the style's own filter and reverb settings: the
style sets the character of a track, energy pushes it.  The display loop
feeds :class:`EnergyEffects` every frame; it only emits ramps at a limited
rate and only for values that actually moved.
"""

import logging
import math
import typing

import tapgroove.commands
import tapgroove.config
import tapgroove.easing
import tapgroove.energy


logger = logging.getLogger(__name__)

Stage = tapgroove.energy.Stage

CUTOFF_LOW = 200.0
CUTOFF_HIGH = 12000.0
CUTOFF_CURVE = 2.5
MAX_RESONANCE = 3.0

REVERB_BY_STAGE: typing.Dict[Stage, float] = {
	Stage.IDLE: 0.45,
	Stage.AWAKENING: 0.40,
	Stage.GROOVE: 0.35,
	Stage.FLOW: 0.32,
	Stage.EUPHORIA: 0.28,
}

CHORUS_RANGE = (0.15, 0.45)
PHASER_RANGE = (0.1, 0.35)
PHASER_RATE_IDLE = 0.5
PHASER_RATE_SCALE = 5.0

LEAD_DRIVE_THRESHOLD = 0.75
LEAD_DRIVE_MAX = 0.2
CRUSHER_SCALE = 4.0
CRUSHER_MAX = 0.4
BASS_DRIVE_MAX = 0.35

# Bus levels in dB.
HIHAT_FLOOR = -30.0
HIHAT_RANGE = (-18.0, -6.0)
SNARE_MUTED = -80.0
SNARE_RANGE = (-12.0, -4.0)

# Glide per parameter, capped by the update interval so streams never overlap.
GLIDE_SECONDS: typing.Dict[str, float] = {
	"energy_cutoff": 0.1,
	"energy_resonance": 0.1,
	"energy_reverb": 0.3,
	"chorus_wet": 0.25,
	"phaser_wet": 0.2,
	"phaser_rate": 0.5,
	"lead_drive": 0.0,
	"crusher_wet": 0.1,
	"bass_drive": 0.0,
	"hihat_level": 0.15,
	"snare_level": 0.15,
}

# Changes smaller than this (relative, or absolute near zero) are not resent.
CHANGE_TOLERANCE = 0.005


def _progress_above (energy: float, threshold: float) -> float:

	"""How far *energy* has travelled from *threshold* toward 1."""

	if threshold >= 1.0:
		return 1.0

	return tapgroove.easing.clamp((energy - threshold) / (1.0 - threshold))


def energy_effect_values (energy: float, config: typing.Optional[tapgroove.config.EnergyConfig] = None) -> typing.Dict[str, float]:

	"""
	Target value of every energy-driven parameter at *energy*.

	Filter cutoff is in Hz, bus levels in dB and everything else in 0-1
	(phaser rate in Hz).  Stage boundaries come from *config*.

	Example:
		```python
		values = energy_effect_values(0.7)
		values["chorus_wet"]   # 0.3, halfway from groove to full energy
		```
	"""

	config = config or tapgroove.config.EnergyConfig()
	energy = tapgroove.easing.clamp(energy)
	stage = tapgroove.energy.classify_energy(energy, config.thresholds())

	values = {
		"energy_cutoff": tapgroove.easing.lerp(CUTOFF_LOW, CUTOFF_HIGH, energy ** CUTOFF_CURVE),
		"energy_resonance": min(MAX_RESONANCE, energy * 4),
		"energy_reverb": REVERB_BY_STAGE[stage],
		"chorus_wet": 0.0,
		"phaser_wet": 0.0,
		"phaser_rate": PHASER_RATE_IDLE,
		"lead_drive": 0.0,
		"crusher_wet": 0.0,
		"bass_drive": 0.0,
		"hihat_level": HIHAT_FLOOR,
		"snare_level": SNARE_MUTED,
	}

	if energy >= config.threshold_awakening:
		values["hihat_level"] = tapgroove.easing.lerp(*HIHAT_RANGE, _progress_above(energy, config.threshold_awakening))

	if energy >= config.threshold_groove:
		groove = _progress_above(energy, config.threshold_groove)
		values["chorus_wet"] = tapgroove.easing.lerp(*CHORUS_RANGE, groove)
		values["snare_level"] = tapgroove.easing.lerp(*SNARE_RANGE, groove)

	if energy >= config.threshold_flow:
		flow = _progress_above(energy, config.threshold_flow)
		values["phaser_wet"] = tapgroove.easing.lerp(*PHASER_RANGE, flow)
		values["phaser_rate"] = PHASER_RATE_IDLE + energy * PHASER_RATE_SCALE
		values["bass_drive"] = tapgroove.easing.lerp(0.0, BASS_DRIVE_MAX, flow)

	if energy >= LEAD_DRIVE_THRESHOLD:
		values["lead_drive"] = min(LEAD_DRIVE_MAX, energy - LEAD_DRIVE_THRESHOLD)

	if energy > config.threshold_ultra:
		values["crusher_wet"] = min(CRUSHER_MAX, (energy - config.threshold_ultra) * CRUSHER_SCALE)

	return values


class EnergyEffects:

	"""
	Rate-limited ramps that keep the energy-driven parameters in step with energy.

	Parameters:
		config: Stage thresholds.
		min_interval: Seconds between updates; frames inside the interval are skipped.
	"""

	def __init__ (self, config: typing.Optional[tapgroove.config.EnergyConfig] = None, min_interval: float = 0.25) -> None:

		self.config = config or tapgroove.config.EnergyConfig()
		self.min_interval = min_interval
		self.last_time: typing.Optional[float] = None
		self.last_sent: typing.Dict[str, float] = {}

	def reset (self) -> None:

		"""Forget what was sent, so the next update sends every parameter."""

		self.last_time = None
		self.last_sent.clear()

	def update (self, energy: float, now: float) -> typing.List[tapgroove.commands.ParameterRamp]:

		"""Ramps for the parameters that moved since the last update, or nothing inside the interval."""

		if self.last_time is not None and now - self.last_time < self.min_interval:
			return []

		self.last_time = now
		ramps = []

		for parameter, value in energy_effect_values(energy, self.config).items():

			last = self.last_sent.get(parameter)

			if last is not None and math.isclose(value, last, rel_tol=CHANGE_TOLERANCE, abs_tol=CHANGE_TOLERANCE):
				continue

			self.last_sent[parameter] = value
			glide = min(GLIDE_SECONDS[parameter], self.min_interval)
			ramps.append(tapgroove.commands.ParameterRamp(parameter, value, glide, now))

		if ramps:
			logger.debug(f"Energy {energy:.3f} moves {len(ramps)} effect parameters")

		return ramps
