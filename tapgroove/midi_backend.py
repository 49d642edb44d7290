"""MIDI audio backend.

Trigger commands become note on/off pairs and parameter ramps become streams
of control changes, all queued on a time-ordered heap and sent by
:meth:`MidiBackend.process` as their time comes.  The runtime calls
``process`` on every clock pulse.

Routing lives in :mod:`tapgroove.constants.midi`: each voice has a channel,
drum and noise voices have fixed notes, and each ramped parameter has a
controller number and a value range that is scaled onto CC 0-127.
"""

import dataclasses
import datetime
import heapq
import itertools
import logging
import typing

import mido

import tapgroove.chords
import tapgroove.commands
import tapgroove.constants.midi
import tapgroove.easing


logger = logging.getLogger(__name__)

# Seconds between CC messages inside a ramp.
RAMP_RESOLUTION = 0.02

# Ramps for one parameter closer together than this are refused.
MIN_RAMP_SPACING = 0.05


@dataclasses.dataclass(order=True)
class MidiEvent:

	"""
	A MIDI message due at a performance time in seconds.
	"""

	time: float
	sequence: int
	message_type: str = dataclasses.field(compare=False)
	channel: int = dataclasses.field(compare=False)
	note: int = dataclasses.field(compare=False, default=0)
	velocity: int = dataclasses.field(compare=False, default=0)
	control: int = dataclasses.field(compare=False, default=0)
	value: int = dataclasses.field(compare=False, default=0)


def velocity_to_midi (velocity: float) -> int:

	"""Scale a 0-1 velocity to 1-127 (a note on with velocity 0 is a note off)."""

	return max(1, min(tapgroove.constants.midi.MAX_VELOCITY, int(round(velocity * tapgroove.constants.midi.MAX_VELOCITY))))


def parameter_to_cc (parameter: str, value: float) -> int:

	"""Scale a parameter value onto CC 0-127 using its configured range."""

	low, high = tapgroove.constants.midi.PARAMETER_RANGES.get(parameter, (0.0, 1.0))
	t = tapgroove.easing.clamp((value - low) / (high - low))

	return int(round(t * tapgroove.constants.midi.MAX_CC))


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Open a MIDI output.

	With *device_name*, opens that device.  Without it, opens the first available
	output.  Returns ``(None, None)`` when nothing can be opened; the performance
	then runs silently.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None, None

		if device_name is not None and device_name not in outputs:
			logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
			return None, None

		selected = device_name if device_name is not None else outputs[0]
		midi_out = mido.open_output(selected)
		logger.info(f"Opened MIDI output: {selected}")

		return selected, midi_out

	except Exception as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None, None


class MidiBackend:

	"""
	An :class:`~tapgroove.commands.AudioBackend` that plays through a mido port.

	Parameters:
		midi_out: An open mido output port, or None to run silently.
		record: Keep every sent message for :meth:`save_recording`.
		record_filename: Target file for the recording (defaults to a timestamp).
		bpm: Tempo written to the recording.
	"""

	def __init__ (
		self,
		midi_out: typing.Optional[typing.Any] = None,
		record: bool = False,
		record_filename: typing.Optional[str] = None,
		bpm: float = 120.0
	) -> None:

		self.midi_out = midi_out
		self.bpm = bpm
		self.recording = record
		self.record_filename = record_filename
		self.recorded_events: typing.List[typing.Tuple[float, mido.Message]] = []

		self.event_queue: typing.List[MidiEvent] = []
		self.active_notes: typing.Set[typing.Tuple[int, int]] = set()
		self._counter = itertools.count()
		self._last_ramp: typing.Dict[str, float] = {}
		self._cc_values: typing.Dict[str, int] = {}

	# ─── AudioBackend ─────────────────────────────────────────────────────────

	def trigger (self, command: tapgroove.commands.TriggerCommand) -> None:

		"""Queue a note on and its note off."""

		channel = tapgroove.constants.midi.VOICE_CHANNELS.get(command.voice)

		if channel is None:
			logger.warning(f"No MIDI channel for voice {command.voice!r}")
			return

		note = self._note_for(command)

		if note is None:
			return

		self._push(command.scheduled_time, "note_on", channel, note=note, velocity=velocity_to_midi(command.velocity))
		self._push(command.scheduled_time + max(0.0, command.duration), "note_off", channel, note=note)

	def ramp (self, command: tapgroove.commands.ParameterRamp) -> tapgroove.commands.RampStatus:

		"""
		Queue a control-change stream (or a program change for categorical values).

		Refuses a ramp that starts within ``MIN_RAMP_SPACING`` of the previous
		ramp for the same parameter.
		"""

		last = self._last_ramp.get(command.parameter)

		if last is not None and abs(command.scheduled_time - last) < MIN_RAMP_SPACING:
			return tapgroove.commands.RampStatus.rejected(
				f"{command.parameter} ramp {command.scheduled_time - last:.3f}s after the previous one"
			)

		if command.parameter in tapgroove.constants.midi.PROGRAM_PARAMETERS:
			self._last_ramp[command.parameter] = command.scheduled_time
			channel = tapgroove.constants.midi.PROGRAM_PARAMETERS[command.parameter]
			self._push(command.scheduled_time, "program_change", channel, value=int(command.target))
			return tapgroove.commands.RampStatus.ok()

		control = tapgroove.constants.midi.PARAMETER_CC.get(command.parameter)

		if control is None:
			return tapgroove.commands.RampStatus.rejected(f"no controller for {command.parameter}")

		self._last_ramp[command.parameter] = command.scheduled_time
		channel = tapgroove.constants.midi.PARAMETER_CHANNELS.get(command.parameter, tapgroove.constants.midi.CHANNEL_LEAD)

		for at, value in self._ramp_values(command):
			self._push(at, "control_change", channel, control=control, value=value)

		return tapgroove.commands.RampStatus.ok()

	# ─── Scheduling ───────────────────────────────────────────────────────────

	def _note_for (self, command: tapgroove.commands.TriggerCommand) -> typing.Optional[int]:

		fixed = tapgroove.constants.midi.DRUM_NOTES.get(command.voice)

		if fixed is None:
			fixed = tapgroove.constants.midi.FX_NOTES.get(command.voice)

		if fixed is not None:
			return fixed

		if command.pitch is None:
			logger.warning(f"Voice {command.voice!r} needs a pitch")
			return None

		try:
			return max(0, min(127, tapgroove.chords.note_to_midi(command.pitch)))
		except ValueError:
			logger.warning(f"Cannot play pitch {command.pitch!r} on {command.voice!r}")
			return None

	def _ramp_values (self, command: tapgroove.commands.ParameterRamp) -> typing.List[typing.Tuple[float, int]]:

		"""Interpolated (time, CC value) pairs for a ramp."""

		end = parameter_to_cc(command.parameter, command.target)

		# Without an explicit start the ramp leaves from the last value sent.
		if command.start is not None:
			start = parameter_to_cc(command.parameter, command.start)
		else:
			start = self._cc_values.get(command.parameter, end)

		self._cc_values[command.parameter] = end

		if command.ramp_time <= 0 or start == end:
			return [(command.scheduled_time, end)]

		easing_fn = tapgroove.easing.get_easing(command.shape)
		steps = max(1, int(command.ramp_time / RAMP_RESOLUTION))

		values = []

		for i in range(steps + 1):
			t = i / steps
			value = int(round(start + (end - start) * easing_fn(t)))
			values.append((command.scheduled_time + t * command.ramp_time, max(0, min(127, value))))

		return values

	def _push (self, at: float, message_type: str, channel: int, **fields: int) -> None:

		heapq.heappush(self.event_queue, MidiEvent(at, next(self._counter), message_type, channel, **fields))

	def process (self, now: float) -> int:

		"""Send every queued message due at or before *now*.  Returns how many were sent."""

		sent = 0

		while self.event_queue and self.event_queue[0].time <= now:
			event = heapq.heappop(self.event_queue)
			self._send_midi(event)
			sent += 1

		return sent

	def _send_midi (self, event: MidiEvent) -> None:

		"""
		Build and send one MIDI message.
		"""

		if event.message_type == "note_on":
			self.active_notes.add((event.channel, event.note))
			msg = mido.Message("note_on", channel=event.channel, note=event.note, velocity=event.velocity)

		elif event.message_type == "note_off":
			self.active_notes.discard((event.channel, event.note))
			msg = mido.Message("note_off", channel=event.channel, note=event.note, velocity=0)

		elif event.message_type == "control_change":
			msg = mido.Message("control_change", channel=event.channel, control=event.control, value=event.value)

		elif event.message_type == "program_change":
			msg = mido.Message("program_change", channel=event.channel, program=event.value)

		else:
			return

		if self.recording:
			self.recorded_events.append((event.time, msg))

		if self.midi_out:

			try:
				self.midi_out.send(msg)
			except Exception:
				logger.exception("MIDI send failed (device may be disconnected)")

	# ─── Shutdown ─────────────────────────────────────────────────────────────

	def panic (self) -> None:

		"""
		Drop everything queued, release sounding notes and send All Notes Off.
		"""

		logger.info("Panic: sending all notes off.")

		self.event_queue.clear()
		self._last_ramp.clear()

		if self.midi_out:

			try:
				for channel, note in list(self.active_notes):
					self.midi_out.send(mido.Message("note_off", channel=channel, note=note, velocity=0))

				for channel in range(16):
					self.midi_out.send(mido.Message("control_change", channel=channel, control=123, value=0))

			except Exception:
				logger.exception("MIDI panic failed (device may be disconnected)")

		self.active_notes.clear()

	def close (self) -> None:

		self.panic()

		if self.midi_out:
			self.midi_out.close()
			self.midi_out = None

		self.save_recording()

	def save_recording (self) -> typing.Optional[str]:

		"""Write recorded messages to a type-0 MIDI file.  Returns the filename, if any."""

		if not self.recording or not self.recorded_events:
			return None

		filename = self.record_filename or datetime.datetime.now().strftime("session_%Y%m%d_%H%M%S.mid")

		logger.info(f"Saving MIDI recording ({len(self.recorded_events)} events) to {filename}...")

		mid = mido.MidiFile(type=0)
		mid.ticks_per_beat = 480
		track = mido.MidiTrack()
		mid.tracks.append(track)

		tempo = mido.bpm2tempo(self.bpm)
		track.append(mido.MetaMessage("set_tempo", tempo=tempo))

		last_time = 0.0

		for at, message in sorted(self.recorded_events, key=lambda item: item[0]):
			delta = max(0.0, at - last_time)
			track.append(message.copy(time=int(round(mido.second2tick(delta, mid.ticks_per_beat, tempo)))))
			last_time = at

		try:
			mid.save(filename)
			logger.info(f"Saved {filename}")
		except Exception as e:
			logger.error(f"Failed to save MIDI recording: {e}")
			return None

		return filename
