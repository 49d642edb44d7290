"""Ornaments layered over the groove: sparkles, risers, impacts and drops.

- **Sparkle**: a short bell figure.  Key presses roll for one with a chance
  that grows with the stage, and every twelfth bar rolls for a quiet one on
  its own, so an idle room still hears something now and then.
- **Riser / impact**: a filtered noise sweep over the length of a style
  transition, then a short falling hit once the new style lands.
- **Drop**: in euphoria, now and then the downbeat is held back for a moment
  and comes in as an accented kick.

Each scheduler returns commands instead of sending them; the engine decides
when they reach the backend.
"""

import logging
import random
import typing

import tapgroove.beat_clock
import tapgroove.commands
import tapgroove.config
import tapgroove.constants.durations
import tapgroove.energy


logger = logging.getLogger(__name__)

Stage = tapgroove.energy.Stage


def db_to_velocity (db: float) -> float:

	"""Map a level in dB (-30 to 0) onto a 0-1 velocity."""

	return max(0.0, min(1.0, 1.0 + db / 30.0))


# ─── Sparkle ──────────────────────────────────────────────────────────────────


SPARKLE_NOTES = ("C5", "E5", "G5", "C6", "E6", "G6")
SPARKLE_OFFSET = 0.01


class SparkleScheduler:

	"""
	Throttled bell ornaments in three intensities.

	Parameters:
		config: Chances, energy reward and background schedule.
		bpm: Tempo, for converting note values to seconds.
		min_interval: Seconds between sparkles; extra requests are dropped.
		rng: Random source for the rolls and the note choice.
	"""

	def __init__ (
		self,
		config: typing.Optional[tapgroove.config.SparkleConfig] = None,
		bpm: float = 128,
		min_interval: float = 0.2,
		rng: typing.Optional[random.Random] = None
	) -> None:

		self.config = config or tapgroove.config.SparkleConfig()
		self.bpm = bpm
		self.min_interval = min_interval
		self._rng = rng or random.Random()
		self.last_time: typing.Optional[float] = None
		self.pulses = 0

	def reset (self) -> None:

		"""Clear the cooldown."""

		self.last_time = None

	def chance_for_stage (self, stage: Stage) -> float:
		return self.config.chances()[stage]

	@staticmethod
	def intensity_for_energy (energy: float) -> str:

		"""``"high"`` above 0.6, ``"medium"`` above 0.3, otherwise ``"low"``."""

		if energy > 0.6:
			return "high"

		if energy > 0.3:
			return "medium"

		return "low"

	def roll (self, stage: Stage) -> bool:

		"""Roll the per-press sparkle chance for *stage*."""

		return self._rng.random() < self.chance_for_stage(stage)

	def _note (self, pitch: str, note_value: str, at: float, velocity: float) -> tapgroove.commands.TriggerCommand:

		seconds = tapgroove.constants.durations.to_seconds(tapgroove.constants.durations.NOTE_VALUES[note_value], self.bpm)

		return tapgroove.commands.TriggerCommand("sparkle", pitch, velocity, seconds, at)

	def fire (self, intensity: str, now: float) -> typing.List[tapgroove.commands.TriggerCommand]:

		"""
		Build a sparkle figure, or nothing if still cooling down.

		Raises:
			ValueError: If *intensity* is not low, medium or high.
		"""

		if intensity not in ("low", "medium", "high"):
			raise ValueError(f"Unknown sparkle intensity {intensity!r}")

		if self.last_time is not None and now - self.last_time < self.min_interval:
			return []

		self.last_time = now
		self.pulses += 1

		start = now + SPARKLE_OFFSET
		note = self._rng.choice(SPARKLE_NOTES)

		if intensity == "low":
			return [self._note(note, "8n", start, 0.4)]

		if intensity == "medium":
			return [
				self._note(note, "8n", start, 0.6),
				self._note(self._rng.choice(SPARKLE_NOTES), "16n", start + 0.08, 0.5),
			]

		index = SPARKLE_NOTES.index(note)

		return [
			self._note(note, "8n", start, 0.7),
			self._note(SPARKLE_NOTES[(index + 1) % len(SPARKLE_NOTES)], "16n", start + 0.06, 0.6),
			self._note(SPARKLE_NOTES[(index + 2) % len(SPARKLE_NOTES)], "16n", start + 0.12, 0.5),
		]

	def check_background (self, bar: int, now: float) -> typing.List[tapgroove.commands.TriggerCommand]:

		"""On every ``background_interval_bars``-th bar, maybe fire a quiet sparkle."""

		if bar % self.config.background_interval_bars != 0:
			return []

		if self._rng.random() > self.config.background_chance:
			return []

		logger.debug(f"Background sparkle at bar {bar}")

		return self.fire("low", now)


# ─── Riser and impact ─────────────────────────────────────────────────────────


RISER_SETTINGS: typing.Dict[str, typing.Dict[str, typing.Any]] = {
	"normal": {"filter_start": 200.0, "filter_end": 5000.0, "level_db": -18.0, "pitch": "E2"},
	"epic": {"filter_start": 100.0, "filter_end": 8000.0, "level_db": -12.0, "pitch": "C2"},
}

RISER_TAIL_SECONDS = 0.5
FILTER_REST = 200.0

IMPACT_FILTER_START = 2000.0
IMPACT_FILTER_END = 100.0
IMPACT_FILTER_SECONDS = 0.3
IMPACT_LEVEL_DB = -8.0
IMPACT_SECONDS = 0.15


class RiserScheduler:

	"""
	Build-up sweep before a transition and a hit after it.

	Only one riser plays at a time: a second request while one is sounding is
	ignored until the riser's tail has passed.
	"""

	def __init__ (self, intensity: str = "normal") -> None:

		if intensity not in RISER_SETTINGS:
			raise ValueError(f"Unknown riser intensity {intensity!r}")

		self.intensity = intensity
		self.playing = False
		self.reset_at: typing.Optional[float] = None

	def riser (self, duration: float, now: float) -> typing.Tuple[typing.List[tapgroove.commands.TriggerCommand], typing.List[tapgroove.commands.ParameterRamp]]:

		"""Start a riser of *duration* seconds.  Returns nothing while one is playing."""

		if self.playing:
			return [], []

		settings = RISER_SETTINGS[self.intensity]

		self.playing = True
		self.reset_at = now + duration + RISER_TAIL_SECONDS

		trigger = tapgroove.commands.TriggerCommand("riser", settings["pitch"], db_to_velocity(settings["level_db"]), duration, now)
		sweep = tapgroove.commands.ParameterRamp(
			"fx_filter",
			settings["filter_end"],
			duration,
			now,
			shape = "exponential",
			start = settings["filter_start"],
		)

		return [trigger], [sweep]

	def poll (self, now: float) -> typing.Optional[tapgroove.commands.ParameterRamp]:

		"""Release the guard once the tail has passed; returns the filter reset if so."""

		if not self.playing or self.reset_at is None or now < self.reset_at:
			return None

		self.playing = False
		self.reset_at = None

		return tapgroove.commands.ParameterRamp("fx_filter", FILTER_REST, 0.0, now)

	def impact (self, now: float) -> typing.Tuple[typing.List[tapgroove.commands.TriggerCommand], typing.List[tapgroove.commands.ParameterRamp]]:

		"""A short falling noise hit."""

		trigger = tapgroove.commands.TriggerCommand("impact", None, db_to_velocity(IMPACT_LEVEL_DB), IMPACT_SECONDS, now)
		fall = tapgroove.commands.ParameterRamp(
			"fx_filter",
			IMPACT_FILTER_END,
			IMPACT_FILTER_SECONDS,
			now,
			shape = "exponential",
			start = IMPACT_FILTER_START,
		)

		return [trigger], [fall]

	def cancel (self) -> None:

		"""Stop tracking the current riser and drop its pending reset."""

		self.playing = False
		self.reset_at = None


# ─── Drop ─────────────────────────────────────────────────────────────────────


DROP_KICK_VELOCITY = 1.0
DROP_KICK_NOTE = "C1"


class DropScheduler:

	"""Occasional held-back downbeat in euphoria."""

	def __init__ (
		self,
		config: typing.Optional[tapgroove.config.DropConfig] = None,
		bpm: float = 128,
		rng: typing.Optional[random.Random] = None
	) -> None:

		self.config = config or tapgroove.config.DropConfig()
		self.bpm = bpm
		self._rng = rng or random.Random()

	def check (self, stage: Stage, position: tapgroove.beat_clock.BeatPosition, now: float) -> typing.Optional[tapgroove.commands.TriggerCommand]:

		"""
		Decide whether this step is a drop.

		Returns the delayed accent kick when it is; the caller must then skip
		every other voice on this step.
		"""

		if stage != Stage.EUPHORIA or not position.is_bar_start:
			return None

		if position.bar % self.config.interval_bars != 0:
			return None

		if self._rng.random() >= self.config.chance:
			return None

		logger.debug(f"Drop at bar {position.bar}")

		return tapgroove.commands.TriggerCommand(
			"kick",
			DROP_KICK_NOTE,
			DROP_KICK_VELOCITY,
			tapgroove.constants.durations.to_seconds(tapgroove.constants.durations.EIGHTH, self.bpm),
			now + self.config.silence_seconds,
		)
