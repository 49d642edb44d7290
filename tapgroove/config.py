"""Static configuration records and YAML loading.

Every tunable constant of the engine lives in one of the frozen records
below.  Defaults reproduce the canonical performance; a YAML file can
override any field, section by section::

    bpm: 124
    transition:
      min_bars: 8
      max_bars: 16
    energy:
      resistance_zones:
        - [0.18, 0.25, 0.5]

Configuration is read once at startup and is not reloadable at runtime.
"""

import dataclasses
import logging
import os
import typing

import yaml

import tapgroove.constants
import tapgroove.constants.energy


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ResistanceZone:

	"""An energy band (bounds inclusive) in which boosts are scaled by ``multiplier``."""

	lower: float
	upper: float
	multiplier: float

	def __post_init__ (self) -> None:

		if self.lower > self.upper:
			raise ValueError(f"Resistance zone lower bound {self.lower} is above upper bound {self.upper}")

		if not 0.0 < self.multiplier <= 1.0:
			raise ValueError(f"Resistance multiplier must be in (0, 1], got {self.multiplier}")

	def contains (self, energy: float) -> bool:

		"""Return True when *energy* lies within the zone."""

		return self.lower <= energy <= self.upper


def _default_zones () -> typing.Tuple[ResistanceZone, ...]:

	return tuple(ResistanceZone(*zone) for zone in tapgroove.constants.energy.RESISTANCE_ZONES)


@dataclasses.dataclass(frozen=True)
class EnergyConfig:

	"""Stage thresholds, per-stage decay rates and the boost curve."""

	threshold_awakening: float = tapgroove.constants.energy.THRESHOLD_AWAKENING
	threshold_groove: float = tapgroove.constants.energy.THRESHOLD_GROOVE
	threshold_flow: float = tapgroove.constants.energy.THRESHOLD_FLOW
	threshold_euphoria: float = tapgroove.constants.energy.THRESHOLD_EUPHORIA
	threshold_ultra: float = tapgroove.constants.energy.THRESHOLD_ULTRA

	decay_idle: float = tapgroove.constants.energy.DECAY_IDLE
	decay_awakening: float = tapgroove.constants.energy.DECAY_AWAKENING
	decay_groove: float = tapgroove.constants.energy.DECAY_GROOVE
	decay_flow: float = tapgroove.constants.energy.DECAY_FLOW
	decay_euphoria: float = tapgroove.constants.energy.DECAY_EUPHORIA

	input_base: float = tapgroove.constants.energy.INPUT_BASE
	resistance_zones: typing.Tuple[ResistanceZone, ...] = dataclasses.field(default_factory=_default_zones)

	def __post_init__ (self) -> None:

		thresholds = self.thresholds()

		if list(thresholds) != sorted(thresholds):
			raise ValueError(f"Stage thresholds must ascend, got {thresholds}")

	def thresholds (self) -> typing.Tuple[float, float, float, float]:

		"""Lower bounds of awakening, groove, flow and euphoria."""

		return (self.threshold_awakening, self.threshold_groove, self.threshold_flow, self.threshold_euphoria)

	def decay_rates (self) -> typing.Tuple[float, float, float, float, float]:

		"""Per-frame decay from idle up to euphoria."""

		return (self.decay_idle, self.decay_awakening, self.decay_groove, self.decay_flow, self.decay_euphoria)


@dataclasses.dataclass(frozen=True)
class TransitionConfig:

	"""When and how the style director moves between styles."""

	min_bars: int = 16
	max_bars: int = 32
	duration_bars: int = 2
	high_energy_threshold: float = tapgroove.constants.energy.THRESHOLD_HIGH_ENERGY
	base_chance: float = 0.05
	peak_chance: float = 0.20
	energy_drop_target: float = 0.55
	energy_drop_seconds: float = 1.5
	riser_intensity: str = "normal"

	def __post_init__ (self) -> None:

		if self.min_bars < 0 or self.max_bars <= self.min_bars:
			raise ValueError(f"Transition bars need 0 <= min_bars < max_bars, got {self.min_bars} and {self.max_bars}")

		if self.duration_bars < 1:
			raise ValueError(f"Transition duration must be at least one bar, got {self.duration_bars}")

		if self.riser_intensity not in ("normal", "epic"):
			raise ValueError(f"Riser intensity must be 'normal' or 'epic', got {self.riser_intensity!r}")


@dataclasses.dataclass(frozen=True)
class SparkleConfig:

	"""Sparkle ornament chances, reward and background schedule."""

	chance_idle: float = tapgroove.constants.energy.SPARKLE_CHANCE_IDLE
	chance_awakening: float = tapgroove.constants.energy.SPARKLE_CHANCE_AWAKENING
	chance_groove: float = tapgroove.constants.energy.SPARKLE_CHANCE_GROOVE
	chance_flow: float = tapgroove.constants.energy.SPARKLE_CHANCE_FLOW
	chance_euphoria: float = tapgroove.constants.energy.SPARKLE_CHANCE_EUPHORIA
	energy_bonus: float = tapgroove.constants.energy.SPARKLE_ENERGY_BONUS
	background_interval_bars: int = tapgroove.constants.energy.SPARKLE_BACKGROUND_INTERVAL_BARS
	background_chance: float = tapgroove.constants.energy.SPARKLE_BACKGROUND_CHANCE

	def __post_init__ (self) -> None:

		if self.background_interval_bars < 1:
			raise ValueError(f"Background sparkle interval must be at least one bar, got {self.background_interval_bars}")

	def chances (self) -> typing.Tuple[float, float, float, float, float]:

		"""Chance per key press from idle up to euphoria."""

		return (self.chance_idle, self.chance_awakening, self.chance_groove, self.chance_flow, self.chance_euphoria)


@dataclasses.dataclass(frozen=True)
class DropConfig:

	"""The euphoria downbeat drop: a silenced step followed by an accented kick."""

	interval_bars: int = tapgroove.constants.energy.DROP_INTERVAL_BARS
	chance: float = tapgroove.constants.energy.DROP_CHANCE
	silence_seconds: float = tapgroove.constants.energy.DROP_SILENCE_SECONDS

	def __post_init__ (self) -> None:

		if self.interval_bars < 1:
			raise ValueError(f"Drop interval must be at least one bar, got {self.interval_bars}")


@dataclasses.dataclass(frozen=True)
class ThrottleConfig:

	"""Minimum seconds between events from each source.  Faster events are dropped."""

	kick: float = 0.1
	snare: float = 0.15
	hihat: float = 0.08
	bass: float = 0.1
	melody: float = 0.06
	sparkle: float = 0.2

	# Energy-driven effect updates.
	effects: float = 0.25

	def for_voice (self, voice: str) -> float:

		"""Return the throttle interval for a voice, 0 for unthrottled voices."""

		return typing.cast(float, getattr(self, voice, 0.0))


@dataclasses.dataclass(frozen=True)
class EngineConfig:

	"""Top-level configuration for a performance."""

	bpm: float = tapgroove.constants.DEFAULT_BPM
	frame_rate: float = 60.0
	initial_style: typing.Optional[str] = None
	seed: typing.Optional[int] = None

	midi_output: typing.Optional[str] = None
	osc_receive_port: int = 9000
	osc_send_port: int = 9001
	osc_send_host: str = "127.0.0.1"
	web_ui: bool = False
	web_ui_port: int = 8765

	energy: EnergyConfig = dataclasses.field(default_factory=EnergyConfig)
	transition: TransitionConfig = dataclasses.field(default_factory=TransitionConfig)
	sparkle: SparkleConfig = dataclasses.field(default_factory=SparkleConfig)
	drop: DropConfig = dataclasses.field(default_factory=DropConfig)
	throttle: ThrottleConfig = dataclasses.field(default_factory=ThrottleConfig)

	def __post_init__ (self) -> None:

		if self.bpm <= 0:
			raise ValueError(f"BPM must be positive, got {self.bpm}")

		if self.frame_rate <= 0:
			raise ValueError(f"Frame rate must be positive, got {self.frame_rate}")


_SECTIONS: typing.Dict[str, typing.Type[typing.Any]] = {
	"energy": EnergyConfig,
	"transition": TransitionConfig,
	"sparkle": SparkleConfig,
	"drop": DropConfig,
	"throttle": ThrottleConfig,
}


def _known_fields (data: typing.Dict[str, typing.Any], record: typing.Type[typing.Any], where: str) -> typing.Dict[str, typing.Any]:

	"""Keep the keys *record* defines and warn about the rest."""

	names = {field.name for field in dataclasses.fields(record)}
	kept: typing.Dict[str, typing.Any] = {}

	for key, value in data.items():

		if key in names:
			kept[key] = value
		else:
			logger.warning(f"Ignoring unknown config key {where}{key!r}")

	return kept


def config_from_dict (data: typing.Optional[typing.Dict[str, typing.Any]]) -> EngineConfig:

	"""
	Build an ``EngineConfig`` from a parsed mapping (e.g. loaded YAML).

	Missing keys keep their defaults.  Invalid values raise ``ValueError`` from
	the record's own validation.
	"""

	if not data:
		return EngineConfig()

	if not isinstance(data, dict):
		raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")

	top = _known_fields(data, EngineConfig, "")

	for section, record in _SECTIONS.items():

		if section not in top:
			continue

		values = _known_fields(top[section] or {}, record, f"{section}.")

		if "resistance_zones" in values:
			values["resistance_zones"] = tuple(ResistanceZone(*zone) for zone in values["resistance_zones"])

		top[section] = record(**values)

	return EngineConfig(**top)


def load_config (config_path: str = "tapgroove.yaml") -> EngineConfig:

	"""
	Load configuration from a YAML file.

	A missing file is not an error: the defaults are used and a warning logged.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return EngineConfig()

	with open(config_path, "r") as f:
		return config_from_dict(yaml.safe_load(f))
