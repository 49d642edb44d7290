"""Per-voice rhythm decisions.

Each voice has one pure function ``(context, pattern_value) -> TriggerResult``.
The style's 16-step pattern says where a voice *may* fire; the stage decides
how much of the pattern is honoured:

- idle and awakening mask most hits, keeping only sparse anchor steps;
- groove and above play the full pattern;
- the snare stays silent until groove.

Velocity grows with energy and with the style's kick or hi-hat character, then
is clipped to 1.0.  Durations are in beats.
"""

import dataclasses
import typing

import tapgroove.beat_clock
import tapgroove.constants
import tapgroove.constants.durations
import tapgroove.energy
import tapgroove.styles


Stage = tapgroove.energy.Stage

MAX_VELOCITY = 1.0

KICK_NOTE = "C1"

KICK_CHARACTER: typing.Dict[str, float] = {
	"soft": 0.8,
	"punchy": 1.0,
	"hard": 1.15,
}

HIHAT_CHARACTER: typing.Dict[str, float] = {
	"closed": 1.0,
	"mixed": 1.05,
	"open": 1.1,
}

# Steps on which open and mixed hats ring for an eighth instead of a short tick.
OPEN_HAT_STEPS = (2, 10)

# Sidechain duck applied after each kick, in dB.
SIDECHAIN_DEPTH: typing.Dict[Stage, typing.Optional[float]] = {
	Stage.IDLE: None,
	Stage.AWAKENING: -6.0,
	Stage.GROOVE: -12.0,
	Stage.FLOW: -20.0,
	Stage.EUPHORIA: -30.0,
}

SIDECHAIN_RECOVERY_SECONDS = 0.06


@dataclasses.dataclass(frozen=True)
class TriggerContext:

	"""Everything a voice needs to decide one step.  Built per tick, then discarded."""

	time: float
	position: tapgroove.beat_clock.BeatPosition
	energy: float
	stage: Stage
	style: tapgroove.styles.Style
	chord_root: str


@dataclasses.dataclass(frozen=True)
class TriggerResult:

	"""A voice's decision for one step."""

	trigger: bool
	velocity: float = 0.0
	duration: float = 0.0
	note: typing.Optional[str] = None


NO_TRIGGER = TriggerResult(trigger=False)


def pattern_value (pattern: typing.Sequence[float], step: int) -> float:

	"""Read one step of a 16-step pattern.  Out-of-range steps are a programming error."""

	assert len(pattern) == tapgroove.constants.STEPS_PER_BAR, f"pattern has {len(pattern)} steps"
	assert 0 <= step < tapgroove.constants.STEPS_PER_BAR, f"step {step} outside the bar"

	return pattern[step]


def _clip (velocity: float) -> float:
	return max(0.0, min(MAX_VELOCITY, velocity))


def _note_value (symbol: str) -> float:
	return tapgroove.constants.durations.NOTE_VALUES[symbol]


def kick_trigger (ctx: TriggerContext, value: float) -> TriggerResult:

	"""Kick: two hits per bar at idle, quarters at awakening, the full pattern above."""

	if value <= 0:
		return NO_TRIGGER

	step = ctx.position.step_index

	if ctx.stage == Stage.IDLE:
		if step not in (0, 8):
			return NO_TRIGGER
		velocity = 0.5

	elif ctx.stage == Stage.AWAKENING:
		if step % 4 != 0:
			return NO_TRIGGER
		velocity = 0.6

	else:
		velocity = 0.7 + ctx.energy * 0.3

	velocity *= KICK_CHARACTER.get(ctx.style.kick_style, 1.0)

	return TriggerResult(
		trigger = True,
		velocity = _clip(velocity),
		duration = tapgroove.constants.durations.EIGHTH,
		note = KICK_NOTE,
	)


def bass_trigger (ctx: TriggerContext, value: float) -> TriggerResult:

	"""Bass: the chord root, from one whole note per bar at idle up to the full line."""

	if value <= 0:
		return NO_TRIGGER

	step = ctx.position.step_index

	if ctx.stage == Stage.IDLE:
		if step != 0:
			return NO_TRIGGER
		velocity = 0.5
		duration = tapgroove.constants.durations.WHOLE

	elif ctx.stage == Stage.AWAKENING:
		if step % 4 != 0:
			return NO_TRIGGER
		velocity = 0.6
		duration = tapgroove.constants.durations.QUARTER

	else:
		velocity = 0.6 + ctx.energy * 0.3
		duration = _note_value(ctx.style.bass_note_value)

	return TriggerResult(trigger=True, velocity=_clip(velocity), duration=duration, note=ctx.chord_root)


def hihat_trigger (ctx: TriggerContext, value: float) -> TriggerResult:

	"""Hi-hat: quarters at idle, eighths at awakening, the full pattern above, accented on the beat."""

	if value <= 0:
		return NO_TRIGGER

	step = ctx.position.step_index

	if ctx.stage == Stage.IDLE and step % 4 != 0:
		return NO_TRIGGER

	if ctx.stage == Stage.AWAKENING and step % 2 != 0:
		return NO_TRIGGER

	velocity = value

	if step % 4 == 0:
		velocity += 0.2

	velocity *= HIHAT_CHARACTER.get(ctx.style.hihat_style, 1.0)
	velocity *= 0.4 + ctx.energy * 0.6

	if ctx.style.hihat_style != "closed" and step in OPEN_HAT_STEPS:
		duration = tapgroove.constants.durations.EIGHTH
	else:
		duration = tapgroove.constants.durations.THIRTYSECOND

	return TriggerResult(trigger=True, velocity=_clip(velocity), duration=duration)


def snare_trigger (ctx: TriggerContext, value: float) -> TriggerResult:

	"""Snare: silent below groove, otherwise the full pattern."""

	if value <= 0 or ctx.stage < Stage.GROOVE:
		return NO_TRIGGER

	return TriggerResult(
		trigger = True,
		velocity = _clip(0.5 + ctx.energy * 0.4),
		duration = tapgroove.constants.durations.SIXTEENTH,
	)


VoiceTrigger = typing.Callable[[TriggerContext, float], TriggerResult]

VOICE_TRIGGERS: typing.Dict[str, VoiceTrigger] = {
	"kick": kick_trigger,
	"bass": bass_trigger,
	"hihat": hihat_trigger,
	"snare": snare_trigger,
}


def decide (voice: str, ctx: TriggerContext) -> TriggerResult:

	"""Look up the voice's pattern at the context's step and run its decision function."""

	value = pattern_value(ctx.style.patterns.for_voice(voice), ctx.position.step_index)

	return VOICE_TRIGGERS[voice](ctx, value)


def sidechain_depth (stage: Stage) -> typing.Optional[float]:

	"""Duck depth in dB after a kick at this stage, or None for no ducking."""

	return SIDECHAIN_DEPTH[stage]
