"""Pulse-based timing constants.

The runtime clock uses **24 pulses per quarter note** (PPQN = 24).  The engine
ticks once per sixteenth, every ``PULSES_PER_SIXTEENTH`` pulses; the pulses in
between flush note-offs and controller ramps with finer timing.
"""

PULSES_PER_QUARTER = 24
PULSES_PER_SIXTEENTH = 6
