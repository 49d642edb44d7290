"""The performance engine: one object that owns every component.

The runtime drives it through three entry points:

- :meth:`PerformanceEngine.tick` once per sixteenth note;
- :meth:`PerformanceEngine.frame` once per display frame;
- :meth:`PerformanceEngine.key_pressed` for every input event.

All three take the current performance time in seconds, so the engine never
reads a clock of its own and can be driven faster than real time in tests.

Mutable scheduling bookkeeping (throttle timestamps, the last bar handed to the
director, queued melody notes) lives in one :class:`SchedulerState` rather than
scattered across components.  Failures inside a tick are logged and contained:
a broken backend or subscriber costs one event, never the groove.
"""

import dataclasses
import logging
import random
import typing

import tapgroove.beat_clock
import tapgroove.chords
import tapgroove.commands
import tapgroove.config
import tapgroove.constants.durations
import tapgroove.embellishments
import tapgroove.energy
import tapgroove.energy_effects
import tapgroove.melody
import tapgroove.style_applicator
import tapgroove.style_director
import tapgroove.styles
import tapgroove.triggers


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class SchedulerState:

	"""Bookkeeping threaded through every tick."""

	last_trigger: typing.Dict[str, float] = dataclasses.field(default_factory=dict)
	last_bar_notified: typing.Optional[int] = None
	pending_melody: typing.List[tapgroove.melody.MelodyNote] = dataclasses.field(default_factory=list)
	last_frame_time: typing.Optional[float] = None
	melody_pulses: int = 0


def bass_root (chord: tapgroove.chords.Chord, style: tapgroove.styles.Style) -> str:

	"""The chord's bass root, raised to the style's bass octave when it sits below it."""

	name, octave = tapgroove.chords.split_note(chord.root)

	return f"{name}{max(octave, style.bass_octave)}"


class PerformanceEngine:

	"""
	Energy, clock, director, mappers and schedulers wired to one audio backend
	and any number of visual backends.

	Parameters:
		config: Engine configuration; defaults reproduce the canonical performance.
		catalog: Styles to perform; defaults to the built-in catalog.
		audio: Receiver of trigger and ramp commands.
		visuals: Receivers of per-frame visual state.
		rng: Shared random source; seeded from ``config.seed`` when omitted.

	Example:
		```python
		backend = tapgroove.commands.RecordingBackend()
		engine = PerformanceEngine(audio=backend, rng=random.Random(1))
		engine.start(0.0)

		step = tapgroove.beat_clock.seconds_per_step(engine.bpm)
		for i in range(64):
			engine.tick(i * step)
		```
	"""

	def __init__ (
		self,
		config: typing.Optional[tapgroove.config.EngineConfig] = None,
		catalog: typing.Optional[tapgroove.styles.StyleCatalog] = None,
		audio: typing.Optional[tapgroove.commands.AudioBackend] = None,
		visuals: typing.Optional[typing.Iterable[tapgroove.commands.VisualBackend]] = None,
		rng: typing.Optional[random.Random] = None
	) -> None:

		self.config = config or tapgroove.config.EngineConfig()
		self.rng = rng or random.Random(self.config.seed)
		self.bpm = self.config.bpm

		self.energy = tapgroove.energy.EnergyController(self.config.energy)
		self.clock = tapgroove.beat_clock.BeatClock()
		self.director = tapgroove.style_director.StyleDirector(
			catalog = catalog,
			config = self.config.transition,
			rng = self.rng,
			initial_style_id = self.config.initial_style,
		)
		self.melody = tapgroove.melody.MelodyMapper(
			min_interval = self.config.throttle.melody,
			ultra_threshold = self.config.energy.threshold_ultra,
			rng = self.rng,
		)
		self.sparkle = tapgroove.embellishments.SparkleScheduler(
			config = self.config.sparkle,
			bpm = self.bpm,
			min_interval = self.config.throttle.sparkle,
			rng = self.rng,
		)
		self.riser = tapgroove.embellishments.RiserScheduler(self.config.transition.riser_intensity)
		self.drops = tapgroove.embellishments.DropScheduler(self.config.drop, self.bpm, self.rng)
		self.effects = tapgroove.energy_effects.EnergyEffects(self.config.energy, self.config.throttle.effects)

		self.audio: tapgroove.commands.AudioBackend = audio if audio is not None else tapgroove.commands.RecordingBackend()
		self.visuals: typing.List[tapgroove.commands.VisualBackend] = list(visuals or [])
		self.applicator = tapgroove.style_applicator.StyleApplicator(self.audio)

		self.state = SchedulerState()
		self._now = 0.0

		self.director.on("transition_start", self._on_transition_start)
		self.director.on("energy_drop", self._on_energy_drop)
		self.director.on("style_change", self._on_style_change)
		self.director.on("transition_complete", self._on_transition_complete)

	# ─── Lifecycle ────────────────────────────────────────────────────────────

	def start (self, now: float = 0.0) -> None:

		"""Push the starting style's timbre and effects to the backend."""

		self._now = now
		self.applicator.apply_style(self.director.current_style, now)

		logger.info(f"Performance starting in {self.director.current_style.name} at {self.bpm} BPM")

	def stop (self) -> None:

		"""
		Cancel everything that would otherwise fire later: the energy drop, the
		riser reset, the sparkle and melody cooldowns and any queued melody notes.
		"""

		self.energy.cancel_drop()
		self.riser.cancel()
		self.sparkle.reset()
		self.melody.reset()
		self.state.pending_melody.clear()

		logger.info("Performance stopped")

	def reset (self) -> None:

		"""Return to a fresh performance with the same configuration and backends."""

		self.stop()
		self.energy.set(0.0)
		self.clock.reset()
		self.director.reset()
		self.effects.reset()
		self.state = SchedulerState()

	def add_visual (self, visual: tapgroove.commands.VisualBackend) -> None:

		self.visuals.append(visual)

	# ─── Entry points ─────────────────────────────────────────────────────────

	def tick (self, now: float) -> None:

		"""
		Play the current sixteenth and advance the clock.

		On a bar start the director hears about the new bar first, so a
		transition that completes on this bar already shapes this bar's hits.
		"""

		self._now = now
		position = self.clock.position

		try:

			if position.is_bar_start and self.state.last_bar_notified != position.bar:
				self.state.last_bar_notified = position.bar
				self._on_bar(position.bar, now)

			stage = self.energy.classify()
			drop_kick = self.drops.check(stage, position, now)

			if drop_kick is not None:
				self._send_trigger(drop_kick)
				self.state.last_trigger["kick"] = drop_kick.scheduled_time
			else:
				self._play_rhythm(position, stage, now)

			self._flush_melody(now)

		finally:
			self.clock.tick()

	def frame (self, now: float) -> tapgroove.commands.VisualState:

		"""
		Decay energy (or advance the drop), shape the effects to the new energy,
		release the riser guard and publish visuals.
		"""

		self._now = now

		last = self.state.last_frame_time
		dt = now - last if last is not None else 1.0 / self.config.frame_rate
		self.state.last_frame_time = now

		self.energy.frame(dt)

		for ramp in self.effects.update(self.energy.current(), now):
			self.applicator.send(ramp)

		reset = self.riser.poll(now)

		if reset is not None:
			self.applicator.send(reset)

		state = self.visual_state()

		for visual in self.visuals:
			try:
				visual.publish(state)
			except Exception:
				logger.exception("Visual backend failed to publish")

		return state

	def key_pressed (self, symbol: typing.Optional[str], now: float) -> typing.List[tapgroove.melody.MelodyNote]:

		"""
		Handle one input event: maybe sparkle, boost energy, queue melody notes.

		Every press counts as a melody pulse for the visuals, even when the melody
		throttle drops its notes.  Returns the queued notes.
		"""

		self._now = now
		self.state.melody_pulses += 1
		bonus = 0.0

		if self.sparkle.roll(self.energy.classify()):

			figure = self.sparkle.fire(self.sparkle.intensity_for_energy(self.energy.current()), now)

			if figure:
				bonus = self.config.sparkle.energy_bonus

				for command in figure:
					self._send_trigger(command)

		self.energy.boost(bonus=bonus)

		notes = self.melody.play(
			symbol,
			now,
			style = self.director.active_style(),
			chord = self.director.current_chord(),
			stage = self.energy.classify(),
			energy = self.energy.current(),
		)

		self.state.pending_melody.extend(notes)

		return notes

	def force_style (self, style_id: str) -> bool:

		"""Switch style immediately (see :meth:`StyleDirector.force_style`)."""

		if not self.director.force_style(style_id):
			return False

		self.riser.cancel()
		self.applicator.apply_effects(self.director.values(), self._now)

		return True

	def request_transition (self, style_id: typing.Optional[str] = None) -> bool:

		"""Start a regular transition now, to *style_id* or a random style."""

		return self.director.start_transition(style_id)

	def visual_state (self) -> tapgroove.commands.VisualState:

		"""Snapshot of everything a renderer shows."""

		return tapgroove.commands.VisualState(
			energy = self.energy.current(),
			melody_pulses = self.state.melody_pulses,
			sparkle_pulses = self.sparkle.pulses,
			stage = self.energy.classify().label,
			hue_shift = float(self.director.interpolated("hue_shift")),
			style_name = self.director.current_style.name,
			transition_progress = self.director.transition_progress,
			in_transition = self.director.in_transition,
		)

	# ─── Tick internals ───────────────────────────────────────────────────────

	def _on_bar (self, bar: int, now: float) -> None:

		# The first bar opens the starting style; the director counts bar lines.
		if bar > 0:
			try:
				self.director.on_bar(bar, self.energy.current())
			except Exception:
				logger.exception(f"Style director failed on bar {bar}")

		if self.director.in_transition:
			self.applicator.apply_effects(self.director.values(), now)

		for command in self.sparkle.check_background(bar, now):
			self._send_trigger(command)

	def _play_rhythm (self, position: tapgroove.beat_clock.BeatPosition, stage: tapgroove.energy.Stage, now: float) -> None:

		style = self.director.active_style()
		chord = tapgroove.styles.chord_at(style, position.bar)

		ctx = tapgroove.triggers.TriggerContext(
			time = now,
			position = position,
			energy = self.energy.current(),
			stage = stage,
			style = style,
			chord_root = bass_root(chord, style),
		)

		at = now + self._swing_offset(style, position)

		for voice in tapgroove.triggers.VOICE_TRIGGERS:

			result = tapgroove.triggers.decide(voice, ctx)

			if not result.trigger or self._throttled(voice, at):
				continue

			self.state.last_trigger[voice] = at

			self._send_trigger(tapgroove.commands.TriggerCommand(
				voice = voice,
				pitch = result.note,
				velocity = result.velocity,
				duration = tapgroove.constants.durations.to_seconds(result.duration, self.bpm),
				scheduled_time = at,
			))

			if voice == "kick":
				self._duck(stage, at)

	def _swing_offset (self, style: tapgroove.styles.Style, position: tapgroove.beat_clock.BeatPosition) -> float:

		"""Delay for off-beat sixteenths, proportional to the style's swing amount."""

		if position.sixteenth_in_beat % 2 == 0:
			return 0.0

		return style.swing_amount * tapgroove.beat_clock.seconds_per_step(self.bpm)

	def _duck (self, stage: tapgroove.energy.Stage, at: float) -> None:

		depth = tapgroove.triggers.sidechain_depth(stage)

		if depth is None:
			return

		self.applicator.send(tapgroove.commands.ParameterRamp(
			"sidechain",
			0.0,
			tapgroove.triggers.SIDECHAIN_RECOVERY_SECONDS * 5,
			at,
			shape = "ease_out",
			start = depth,
		))

	def _throttled (self, source: str, at: float) -> bool:

		last = self.state.last_trigger.get(source)

		return last is not None and at - last < self.config.throttle.for_voice(source)

	def _flush_melody (self, now: float) -> None:

		pending = self.state.pending_melody
		self.state.pending_melody = []

		for note in pending:
			self._send_trigger(tapgroove.commands.TriggerCommand(
				voice = note.voice,
				pitch = note.pitch,
				velocity = note.velocity,
				duration = tapgroove.constants.durations.to_seconds(note.duration, self.bpm),
				scheduled_time = now,
			))

	def _send_trigger (self, command: tapgroove.commands.TriggerCommand) -> None:

		try:
			self.audio.trigger(command)
		except Exception:
			logger.exception(f"Audio backend failed to play {command.voice}")

	# ─── Director hooks ───────────────────────────────────────────────────────

	def _on_transition_start (self, from_style: tapgroove.styles.Style, to_style: tapgroove.styles.Style) -> None:

		duration = self.config.transition.duration_bars * tapgroove.beat_clock.seconds_per_bar(self.bpm)
		triggers, ramps = self.riser.riser(duration, self._now)

		for command in triggers:
			self._send_trigger(command)

		for ramp in ramps:
			self.applicator.send(ramp)

	def _on_energy_drop (self) -> None:

		self.energy.begin_drop(self.config.transition.energy_drop_target, self.config.transition.energy_drop_seconds)

	def _on_style_change (self, new_style: tapgroove.styles.Style, old_style: tapgroove.styles.Style) -> None:

		self.applicator.apply_instruments(tapgroove.style_director.StyleValues.of(new_style), self._now)

	def _on_transition_complete (self, new_style: tapgroove.styles.Style) -> None:

		self.applicator.apply_effects(tapgroove.style_director.StyleValues.of(new_style), self._now)

		triggers, ramps = self.riser.impact(self._now)

		for command in triggers:
			self._send_trigger(command)

		for ramp in ramps:
			self.applicator.send(ramp)
