"""Style transitions: when to leave a style, where to go, and how to morph.

The :class:`StyleDirector` is a two-state machine.  While **stable** it
evaluates, once per bar, whether to start a transition: only at high energy,
only after ``min_bars`` in the current style, with a chance that ramps up
toward ``max_bars``, at which point the move is forced.  While
**transitioning** it advances a progress fraction once per bar and completes
when progress reaches 1.

During a transition every timbre and effect value is interpolated between the
two styles by :func:`interpolate_value`: numbers move linearly, anything
categorical (a waveform, a delay symbol) switches at the halfway point.

Observers subscribe through :meth:`StyleDirector.on`:

- ``transition_start(from_style, to_style)``
- ``energy_drop()``, fired right after ``transition_start``
- ``style_change(new_style, old_style)``
- ``transition_complete(new_style)``, fired right after ``style_change``
"""

import dataclasses
import logging
import numbers
import random
import typing

import tapgroove.chords
import tapgroove.config
import tapgroove.easing
import tapgroove.energy
import tapgroove.event_emitter
import tapgroove.styles


logger = logging.getLogger(__name__)

EVENTS = ("transition_start", "transition_complete", "style_change", "energy_drop")


@dataclasses.dataclass(frozen=True)
class StyleValues:

	"""The timbre, effect and visual values that morph during a transition."""

	lead_waveform: str
	lead_spread: float
	lead_envelope: tapgroove.styles.LeadEnvelope
	filter_cutoff: float
	filter_resonance: float
	reverb_wet: float
	reverb_decay: float
	delay_feedback: float
	delay_time: str
	hue_shift: float

	@classmethod
	def of (cls, style: tapgroove.styles.Style) -> "StyleValues":

		"""Collect the morphable values of a style."""

		return cls(**{field.name: getattr(style, field.name) for field in dataclasses.fields(cls)})


@dataclasses.dataclass
class TransitionState:

	"""An in-flight transition.  Progress only moves forward, once per bar."""

	from_style: tapgroove.styles.Style
	to_style: tapgroove.styles.Style
	start_bar: int
	progress: float = 0.0


def _is_number (value: typing.Any) -> bool:
	return isinstance(value, numbers.Real) and not isinstance(value, bool)


def interpolate_value (start: typing.Any, end: typing.Any, progress: float) -> typing.Any:

	"""
	Blend two values of the same parameter.

	Numbers are interpolated linearly (exactly *start* at 0, exactly *end* at 1).
	Dataclass records of the same type, such as an envelope, are blended field
	by field.  Everything else switches from *start* to *end* at progress 0.5.
	Progress outside [0, 1] is clamped.
	"""

	progress = tapgroove.easing.clamp(progress)

	if _is_number(start) and _is_number(end):
		return tapgroove.easing.lerp(start, end, progress)

	if dataclasses.is_dataclass(start) and type(start) is type(end):
		return type(start)(**{
			field.name: interpolate_value(getattr(start, field.name), getattr(end, field.name), progress)
			for field in dataclasses.fields(start)
		})

	return start if progress < 0.5 else end


def interpolate_style (from_style: tapgroove.styles.Style, to_style: tapgroove.styles.Style, progress: float) -> StyleValues:

	"""Every morphable value of a transition at *progress*."""

	return typing.cast(StyleValues, interpolate_value(StyleValues.of(from_style), StyleValues.of(to_style), progress))


class StyleDirector:

	"""
	Owns the current style and the transition state machine.

	Parameters:
		catalog: The styles to move between.
		config: Transition timing and probabilities.
		rng: Random source for the trigger roll and destination choice.
		initial_style_id: Starting style; unknown ids fall back to the first.

	Example:
		```python
		director = StyleDirector(rng=random.Random(7))
		director.on("style_change", lambda new, old: print(old.name, "->", new.name))

		for bar in range(1, 65):
			director.on_bar(bar, energy=0.85)
		```
	"""

	def __init__ (
		self,
		catalog: typing.Optional[tapgroove.styles.StyleCatalog] = None,
		config: typing.Optional[tapgroove.config.TransitionConfig] = None,
		rng: typing.Optional[random.Random] = None,
		initial_style_id: typing.Optional[str] = None
	) -> None:

		self.catalog = catalog or tapgroove.styles.DEFAULT_CATALOG
		self.config = config or tapgroove.config.TransitionConfig()
		self._rng = rng or random.Random()
		self._initial_style_id = initial_style_id
		self.events = tapgroove.event_emitter.EventEmitter(EVENTS)

		self.current_style: tapgroove.styles.Style = self.catalog.first
		self.bars_in_style = 0
		self.total_bars = 0
		self.transition: typing.Optional[TransitionState] = None

		self.reset(initial_style_id)

	def reset (self, initial_style_id: typing.Optional[str] = None) -> None:

		"""Return to a fresh, stable state.  Subscribers are kept."""

		style_id = initial_style_id if initial_style_id is not None else self._initial_style_id

		self.current_style = self.catalog.by_id(style_id) if style_id is not None else self.catalog.first
		self.bars_in_style = 0
		self.total_bars = 0
		self.transition = None

	def on (self, event_name: str, callback: tapgroove.event_emitter.CallbackType) -> None:

		"""Subscribe to one of the director's events."""

		self.events.on(event_name, callback)

	# ─── State queries ────────────────────────────────────────────────────────

	@property
	def in_transition (self) -> bool:
		return self.transition is not None

	@property
	def transition_progress (self) -> float:
		return self.transition.progress if self.transition is not None else 0.0

	def active_style (self) -> tapgroove.styles.Style:

		"""
		The style whose categorical data (patterns, chords, characters) is in
		force: the origin for the first half of a transition, then the destination.
		"""

		if self.transition is None:
			return self.current_style

		return self.transition.from_style if self.transition.progress < 0.5 else self.transition.to_style

	def values (self) -> StyleValues:

		"""Current morphable values, interpolated while transitioning."""

		if self.transition is None:
			return StyleValues.of(self.current_style)

		return interpolate_style(self.transition.from_style, self.transition.to_style, self.transition.progress)

	def interpolated (self, name: str) -> typing.Any:

		"""A single morphable value by field name, e.g. ``"hue_shift"``."""

		return getattr(self.values(), name)

	def current_chord (self) -> tapgroove.chords.Chord:

		"""The chord of the active style at the last notified bar."""

		return tapgroove.styles.chord_at(self.active_style(), self.total_bars)

	def scale_for_stage (self, stage: tapgroove.energy.Stage) -> typing.List[str]:

		"""Melody scale of the active style for a stage."""

		return tapgroove.styles.scale_for_stage(self.active_style(), stage)

	# ─── Transition logic ─────────────────────────────────────────────────────

	def transition_chance (self) -> float:

		"""
		Per-bar chance of starting a transition at high energy.

		Zero before ``min_bars``; ``base_chance`` at ``min_bars``, rising linearly
		to ``peak_chance`` at ``max_bars``.
		"""

		cfg = self.config

		if self.bars_in_style < cfg.min_bars:
			return 0.0

		time_ratio = min(1.0, (self.bars_in_style - cfg.min_bars) / (cfg.max_bars - cfg.min_bars))

		return cfg.base_chance + time_ratio * (cfg.peak_chance - cfg.base_chance)

	def should_transition (self, energy: float) -> bool:

		"""Roll for a transition at this bar.  Always True once ``max_bars`` is reached."""

		if self.bars_in_style >= self.config.max_bars:
			return True

		if energy < self.config.high_energy_threshold or self.bars_in_style < self.config.min_bars:
			return False

		return self._rng.random() < self.transition_chance()

	def on_bar (self, bar: int, energy: float) -> None:

		"""
		Notify the director that *bar* has begun.

		Called on bar lines only: the starting style's first bar is not a
		notification, so after bar N has been reported ``bars_in_style`` is N.

		Advances an in-flight transition, or evaluates whether to start one.
		"""

		self.total_bars = bar
		self.bars_in_style += 1

		if self.transition is not None:

			progress = min(1.0, (bar - self.transition.start_bar) / self.config.duration_bars)
			self.transition.progress = max(self.transition.progress, progress)

			if self.transition.progress >= 1.0:
				self._complete_transition()

			return

		if self.should_transition(energy):
			self.start_transition()

	def start_transition (self, target_id: typing.Optional[str] = None) -> bool:

		"""
		Begin a transition to *target_id*, or to a random other style.

		Returns False when a transition is already in flight.
		"""

		if self.transition is not None:
			logger.debug(f"Transition to {target_id!r} ignored: already moving to {self.transition.to_style.id!r}")
			return False

		target = self.catalog.get(target_id) if target_id is not None else None

		if target is None or target.id == self.current_style.id:

			if target_id is not None and target is None:
				logger.warning(f"Unknown transition target {target_id!r}, choosing at random")

			target = self.catalog.random_other_than(self.current_style.id, self._rng)

		self.transition = TransitionState(from_style=self.current_style, to_style=target, start_bar=self.total_bars)

		logger.info(f"Transition starting: {self.current_style.name} -> {target.name}")

		self.events.emit("transition_start", self.current_style, target)
		self.events.emit("energy_drop")

		return True

	def _complete_transition (self) -> None:

		assert self.transition is not None

		old_style = self.current_style
		new_style = self.transition.to_style

		self.current_style = new_style
		self.bars_in_style = 0
		self.transition = None

		logger.info(f"Now playing: {new_style.name}")

		self.events.emit("style_change", new_style, old_style)
		self.events.emit("transition_complete", new_style)

	def force_style (self, style_id: str) -> bool:

		"""
		Switch immediately, discarding any in-flight transition.

		Fires ``style_change`` only.  Unknown ids are logged and ignored.
		"""

		style = self.catalog.get(style_id)

		if style is None:
			logger.warning(f"Cannot force unknown style {style_id!r}")
			return False

		old_style = self.current_style

		self.current_style = style
		self.bars_in_style = 0
		self.transition = None

		logger.info(f"Style forced: {old_style.name} -> {style.name}")

		self.events.emit("style_change", style, old_style)

		return True
