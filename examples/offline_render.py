"""
tapgroove: Offline Render

Plays a scripted performance faster than real time and writes it to a MIDI
file, without any MIDI hardware.

How it works
────────────
A "player" presses keys at a steadily rising rate, so energy climbs from
idle through every stage.  The sequencer's render mode interleaves clock
pulses, display frames and key presses in time order on a simulated clock,
and the MIDI backend records every message it would have sent.

How to run
──────────
    python examples/offline_render.py

Then open ``offline_render.mid`` in any DAW or MIDI player.
"""

import logging
import random

import tapgroove.commands
import tapgroove.config
import tapgroove.engine
import tapgroove.midi_backend
import tapgroove.sequencer


logging.basicConfig(level=logging.INFO)

BARS = 48
BPM = 124
ROWS = "qwertyuiopasdfghjklzxcvbnm"


def scripted_keys (bars: int, bpm: float, rng: random.Random) -> dict:

	"""Key presses that speed up from one per beat to four per beat."""

	beat = 60.0 / bpm
	total = bars * 4 * beat
	keys = {}
	t = 0.0

	while t < total:
		keys[t] = rng.choice(ROWS)
		presses_per_beat = 1 + 3 * (t / total)
		t += beat / presses_per_beat

	return keys


def main () -> None:

	config = tapgroove.config.EngineConfig(bpm=BPM, seed=7)
	rng = random.Random(config.seed)

	midi = tapgroove.midi_backend.MidiBackend(None, record=True, record_filename="offline_render.mid", bpm=BPM)
	visuals = tapgroove.commands.RecordingBackend()
	engine = tapgroove.engine.PerformanceEngine(config, audio=midi, visuals=[visuals], rng=rng)
	sequencer = tapgroove.sequencer.Sequencer(engine, midi=midi)

	sequencer.render(BARS, keys=scripted_keys(BARS, BPM, random.Random(1)))
	midi.close()

	last = visuals.frames[-1]
	print(f"Finished in {last.style_name} at {last.stage} (energy {last.energy:.2f}), {last.melody_pulses} melody pulses")


if __name__ == "__main__":
	main()
