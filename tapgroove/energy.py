"""Energy: the single continuous control signal behind the whole performance.

:class:`EnergyController` owns a scalar in [0, 1].  Key presses boost it,
every display frame decays it, and :meth:`EnergyController.classify` turns it
into one of five :class:`Stage` values that every other component reads.

Decay is asymmetric: a peak fades slowly while an idle blip vanishes fast.
Boosts are attenuated inside *resistance zones* just below each stage
boundary, so moving up a stage takes sustained effort rather than a few taps.

The controller also runs the transition *energy drop*: a short eased ramp
down to a target level, used to open contrast before a new style arrives.
"""

import dataclasses
import enum
import logging
import typing

import tapgroove.config
import tapgroove.easing


logger = logging.getLogger(__name__)


class Stage (enum.IntEnum):

	"""Discrete energy classification, ordered from calmest to most intense."""

	IDLE = 0
	AWAKENING = 1
	GROOVE = 2
	FLOW = 3
	EUPHORIA = 4

	@property
	def label (self) -> str:

		"""Lowercase name used by visual backends and logs."""

		return self.name.lower()


def classify_energy (energy: float, thresholds: typing.Sequence[float]) -> Stage:

	"""
	Classify *energy* against ascending lower bounds for awakening, groove,
	flow and euphoria.  A value exactly on a threshold belongs to the higher stage.
	"""

	stage = Stage.IDLE

	for index, threshold in enumerate(thresholds):
		if energy >= threshold:
			stage = Stage(index + 1)

	return stage


@dataclasses.dataclass
class EnergyDrop:

	"""An in-flight eased ramp from ``start`` down to ``target``."""

	start: float
	target: float
	duration: float
	elapsed: float = 0.0

	def value (self) -> float:

		"""Energy at the current point of the ramp (quadratic ease-out)."""

		progress = 1.0 if self.duration <= 0 else min(1.0, self.elapsed / self.duration)

		return self.start - (self.start - self.target) * tapgroove.easing.ease_out(progress)

	@property
	def finished (self) -> bool:
		return self.elapsed >= self.duration


class EnergyController:

	"""
	Single writer of the energy value.

	Parameters:
		config: Thresholds, decay rates and the boost curve.
		initial: Starting energy, clamped to [0, 1].

	Example:
		```python
		energy = EnergyController()
		energy.boost()          # +0.035 outside resistance zones
		energy.decay_step()     # one frame of decay
		energy.classify()       # Stage.IDLE
		```
	"""

	def __init__ (self, config: typing.Optional[tapgroove.config.EnergyConfig] = None, initial: float = 0.0) -> None:

		self.config = config or tapgroove.config.EnergyConfig()
		self._energy = tapgroove.easing.clamp(initial)
		self._drop: typing.Optional[EnergyDrop] = None

	def current (self) -> float:

		"""The energy value in [0, 1]."""

		return self._energy

	def set (self, value: float) -> None:

		"""Overwrite the energy value, clamping silently."""

		self._energy = tapgroove.easing.clamp(value)

	def classify (self) -> Stage:

		"""The stage of the current energy value."""

		return classify_energy(self._energy, self.config.thresholds())

	def decay_rate (self, energy: typing.Optional[float] = None) -> float:

		"""Per-frame decay for the stage of *energy* (defaults to the current value)."""

		value = self._energy if energy is None else energy
		stage = classify_energy(value, self.config.thresholds())

		return self.config.decay_rates()[stage]

	def resistance_multiplier (self, energy: typing.Optional[float] = None) -> float:

		"""Boost multiplier at *energy*: the first matching zone's, else 1."""

		value = self._energy if energy is None else energy

		for zone in self.config.resistance_zones:
			if zone.contains(value):
				return zone.multiplier

		return 1.0

	def boost (self, amount: typing.Optional[float] = None, bonus: float = 0.0) -> float:

		"""
		Add one input's worth of energy and return the new value.

		The base amount (``input_base`` unless *amount* is given) is scaled by the
		resistance multiplier at the current energy; *bonus* is added afterwards,
		unattenuated.  Out-of-range amounts are clamped, never rejected.
		"""

		base = self.config.input_base if amount is None else tapgroove.easing.clamp(amount)
		delta = base * self.resistance_multiplier() + tapgroove.easing.clamp(bonus)

		self._energy = tapgroove.easing.clamp(self._energy + delta)

		return self._energy

	def decay_step (self) -> float:

		"""Apply one frame of decay at the rate of the current stage."""

		if self._energy > 0.0:
			self._energy = max(0.0, self._energy - self.decay_rate())

		return self._energy

	# ─── Energy drop ──────────────────────────────────────────────────────────

	@property
	def dropping (self) -> bool:

		"""True while an energy drop ramp is in flight."""

		return self._drop is not None

	def begin_drop (self, target: float, duration: float) -> bool:

		"""
		Start easing energy down to *target* over *duration* seconds.

		Returns False (and starts nothing) when energy is already at or below
		the target: the drop only ever lowers energy.
		"""

		target = tapgroove.easing.clamp(target)

		if self._energy <= target:
			logger.debug(f"Energy drop skipped: {self._energy:.3f} is already at or below {target:.3f}")
			return False

		self._drop = EnergyDrop(start=self._energy, target=target, duration=max(0.0, duration))

		return True

	def cancel_drop (self) -> None:

		"""Discard any in-flight drop, leaving energy where it is."""

		self._drop = None

	def frame (self, dt: float) -> float:

		"""
		Advance one display frame of *dt* seconds.

		An in-flight drop replaces decay for the frame; otherwise one decay step
		is applied.
		"""

		if self._drop is None:
			return self.decay_step()

		self._drop.elapsed += max(0.0, dt)
		self._energy = tapgroove.easing.clamp(self._drop.value())

		if self._drop.finished:
			self._energy = self._drop.target
			self._drop = None

		return self._energy
