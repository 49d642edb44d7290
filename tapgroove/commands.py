"""Commands the engine emits and the backend interfaces that consume them.

The engine never produces sound or pixels itself.  It hands
:class:`TriggerCommand` and :class:`ParameterRamp` objects to an
:class:`AudioBackend` and :class:`VisualState` snapshots to a
:class:`VisualBackend`.  :class:`RecordingBackend` keeps everything in memory,
which is what the tests and the offline render use.
"""

import dataclasses
import typing


@dataclasses.dataclass(frozen=True)
class TriggerCommand:

	"""
	Play one note on one voice.

	Attributes:
		voice: Voice id (``"kick"``, ``"bass"``, ``"lead"``, ``"sparkle"``...).
		pitch: Note name with octave, or None for unpitched voices.
		velocity: Strength in [0, 1].
		duration: Length in seconds.
		scheduled_time: When to sound, on the performance clock, in seconds.
	"""

	voice: str
	pitch: typing.Optional[str]
	velocity: float
	duration: float
	scheduled_time: float


@dataclasses.dataclass(frozen=True)
class ParameterRamp:

	"""Move a continuous parameter to ``target`` over ``ramp_time`` seconds."""

	parameter: str
	target: float
	ramp_time: float
	scheduled_time: float
	shape: str = "linear"
	start: typing.Optional[float] = None


@dataclasses.dataclass(frozen=True)
class RampStatus:

	"""Outcome of a ramp request.  Rejections are reported, never raised."""

	applied: bool
	reason: str = ""

	@classmethod
	def ok (cls) -> "RampStatus":
		return cls(applied=True)

	@classmethod
	def rejected (cls, reason: str) -> "RampStatus":
		return cls(applied=False, reason=reason)


@dataclasses.dataclass(frozen=True)
class VisualState:

	"""What a renderer needs for one frame."""

	energy: float
	melody_pulses: int
	sparkle_pulses: int
	stage: str
	hue_shift: float
	style_name: str
	transition_progress: float
	in_transition: bool

	def as_dict (self) -> typing.Dict[str, typing.Any]:
		return dataclasses.asdict(self)


@typing.runtime_checkable
class AudioBackend (typing.Protocol):

	"""Consumer of trigger and ramp commands."""

	def trigger (self, command: TriggerCommand) -> None:
		...

	def ramp (self, command: ParameterRamp) -> RampStatus:
		...


@typing.runtime_checkable
class VisualBackend (typing.Protocol):

	"""Consumer of per-frame visual state."""

	def publish (self, state: VisualState) -> None:
		...


class RecordingBackend:

	"""
	In-memory audio and visual backend.

	Optionally rejects ramps for the same parameter scheduled closer together
	than ``min_ramp_spacing`` seconds, the way real synth parameters refuse
	overlapping automation.
	"""

	def __init__ (self, min_ramp_spacing: float = 0.0) -> None:

		self.triggers: typing.List[TriggerCommand] = []
		self.ramps: typing.List[ParameterRamp] = []
		self.rejected: typing.List[ParameterRamp] = []
		self.frames: typing.List[VisualState] = []
		self.min_ramp_spacing = min_ramp_spacing
		self._last_ramp_time: typing.Dict[str, float] = {}

	def trigger (self, command: TriggerCommand) -> None:
		self.triggers.append(command)

	def ramp (self, command: ParameterRamp) -> RampStatus:

		last = self._last_ramp_time.get(command.parameter)

		if last is not None and abs(command.scheduled_time - last) < self.min_ramp_spacing:
			self.rejected.append(command)
			return RampStatus.rejected(f"{command.parameter} ramped {command.scheduled_time - last:.3f}s after the previous ramp")

		self._last_ramp_time[command.parameter] = command.scheduled_time
		self.ramps.append(command)

		return RampStatus.ok()

	def publish (self, state: VisualState) -> None:
		self.frames.append(state)

	def voices (self, voice: str) -> typing.List[TriggerCommand]:

		"""Recorded triggers for one voice."""

		return [command for command in self.triggers if command.voice == voice]

	def clear (self) -> None:

		self.triggers.clear()
		self.ramps.clear()
		self.rejected.clear()
		self.frames.clear()
		self._last_ramp_time.clear()
