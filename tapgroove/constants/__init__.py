"""Constants for tapgroove.

This package contains named constants grouped by concern:

- ``tapgroove.constants.durations`` - Note-value durations in beats and the ``"8n"`` style symbols
- ``tapgroove.constants.energy`` - Stage thresholds, decay rates, boost and resistance values
- ``tapgroove.constants.midi`` - Voice channels, drum notes and controller numbers for MIDI output

The rhythmic grid is re-exported here because nearly every module needs it.
"""

STEPS_PER_BEAT = 4
BEATS_PER_BAR = 4
STEPS_PER_BAR = STEPS_PER_BEAT * BEATS_PER_BAR

DEFAULT_BPM = 128
