"""MIDI routing for the performance voices.

Each voice plays on its own channel (0-indexed, as mido expects).  Drum voices
ignore the pitch carried by a trigger command and always play their fixed
note from ``DRUM_NOTES`` (General MIDI drum map numbers on channel 10).

Parameter ramps are sent as control changes.  ``PARAMETER_CC`` maps each
ramped parameter to a controller number and ``PARAMETER_RANGES`` to the span
of values that covers CC 0-127.
"""

import typing


CHANNEL_DRUMS = 9
CHANNEL_BASS = 1
CHANNEL_LEAD = 2
CHANNEL_SUB = 3
CHANNEL_METAL = 4
CHANNEL_SPARKLE = 5
CHANNEL_FX = 6

VOICE_CHANNELS: typing.Dict[str, int] = {
	"kick": CHANNEL_DRUMS,
	"snare": CHANNEL_DRUMS,
	"hihat": CHANNEL_DRUMS,
	"bass": CHANNEL_BASS,
	"lead": CHANNEL_LEAD,
	"sub": CHANNEL_SUB,
	"metal": CHANNEL_METAL,
	"sparkle": CHANNEL_SPARKLE,
	"riser": CHANNEL_FX,
	"impact": CHANNEL_FX,
}

DRUM_NOTES: typing.Dict[str, int] = {
	"kick": 36,
	"snare": 38,
	"hihat": 42,
}

# Noise voices on the FX channel play a fixed note.
FX_NOTES: typing.Dict[str, int] = {
	"riser": 48,
	"impact": 49,
}

CC_SIDECHAIN = 11
CC_RESONANCE = 71
CC_RELEASE = 72
CC_ATTACK = 73
CC_CUTOFF = 74
CC_DECAY = 75
CC_SPREAD = 76
CC_SUSTAIN = 79
CC_REVERB_DECAY = 90
CC_REVERB_WET = 91
CC_DELAY_FEEDBACK = 92
CC_DELAY_TIME = 93
CC_FX_FILTER = 94
CC_SUB_ATTACK = 102
CC_SUB_DECAY = 103
CC_SUB_SUSTAIN = 104
CC_SUB_RELEASE = 105

# Energy-driven effects.
CC_ENERGY_CUTOFF = 16
CC_ENERGY_RESONANCE = 17
CC_ENERGY_REVERB = 18
CC_CHORUS_WET = 19
CC_PHASER_WET = 20
CC_PHASER_RATE = 21
CC_LEAD_DRIVE = 22
CC_CRUSHER_WET = 23
CC_BASS_DRIVE = 24
CC_HIHAT_LEVEL = 25
CC_SNARE_LEVEL = 26

PARAMETER_CC: typing.Dict[str, int] = {
	"sidechain": CC_SIDECHAIN,
	"filter_resonance": CC_RESONANCE,
	"filter_cutoff": CC_CUTOFF,
	"lead_spread": CC_SPREAD,
	"lead_attack": CC_ATTACK,
	"lead_decay": CC_DECAY,
	"lead_sustain": CC_SUSTAIN,
	"lead_release": CC_RELEASE,
	"reverb_decay": CC_REVERB_DECAY,
	"reverb_wet": CC_REVERB_WET,
	"delay_feedback": CC_DELAY_FEEDBACK,
	"delay_time": CC_DELAY_TIME,
	"fx_filter": CC_FX_FILTER,
	"sub_attack": CC_SUB_ATTACK,
	"sub_decay": CC_SUB_DECAY,
	"sub_sustain": CC_SUB_SUSTAIN,
	"sub_release": CC_SUB_RELEASE,
	"energy_cutoff": CC_ENERGY_CUTOFF,
	"energy_resonance": CC_ENERGY_RESONANCE,
	"energy_reverb": CC_ENERGY_REVERB,
	"chorus_wet": CC_CHORUS_WET,
	"phaser_wet": CC_PHASER_WET,
	"phaser_rate": CC_PHASER_RATE,
	"lead_drive": CC_LEAD_DRIVE,
	"crusher_wet": CC_CRUSHER_WET,
	"bass_drive": CC_BASS_DRIVE,
	"hihat_level": CC_HIHAT_LEVEL,
	"snare_level": CC_SNARE_LEVEL,
}

# Parameters sent to a channel other than the lead's.
PARAMETER_CHANNELS: typing.Dict[str, int] = {
	"sidechain": CHANNEL_BASS,
	"sub_attack": CHANNEL_SUB,
	"sub_decay": CHANNEL_SUB,
	"sub_sustain": CHANNEL_SUB,
	"sub_release": CHANNEL_SUB,
	"fx_filter": CHANNEL_FX,
	"bass_drive": CHANNEL_BASS,
	"hihat_level": CHANNEL_DRUMS,
	"snare_level": CHANNEL_DRUMS,
}

# Categorical parameters sent as program changes on this channel; the ramp target is the program number.
PROGRAM_PARAMETERS: typing.Dict[str, int] = {
	"lead_waveform": CHANNEL_LEAD,
}

PARAMETER_RANGES: typing.Dict[str, typing.Tuple[float, float]] = {
	"sidechain": (-30.0, 0.0),
	"filter_resonance": (0.0, 10.0),
	"filter_cutoff": (100.0, 8000.0),
	"lead_spread": (0.0, 50.0),
	"lead_attack": (0.0, 0.5),
	"lead_decay": (0.0, 1.0),
	"lead_sustain": (0.0, 1.0),
	"lead_release": (0.0, 1.0),
	"reverb_decay": (0.0, 6.0),
	"reverb_wet": (0.0, 1.0),
	"delay_feedback": (0.0, 1.0),
	"delay_time": (0.0, 1.0),
	"fx_filter": (100.0, 8000.0),
	"sub_attack": (0.0, 0.5),
	"sub_decay": (0.0, 1.5),
	"sub_sustain": (0.0, 1.0),
	"sub_release": (0.0, 1.0),
	"energy_cutoff": (100.0, 12000.0),
	"energy_resonance": (0.0, 3.0),
	"energy_reverb": (0.0, 1.0),
	"chorus_wet": (0.0, 1.0),
	"phaser_wet": (0.0, 1.0),
	"phaser_rate": (0.0, 6.0),
	"lead_drive": (0.0, 1.0),
	"crusher_wet": (0.0, 1.0),
	"bass_drive": (0.0, 1.0),
	"hihat_level": (-80.0, 0.0),
	"snare_level": (-80.0, 0.0),
}

MIN_VELOCITY = 0
MAX_VELOCITY = 127
MIN_CC = 0
MAX_CC = 127
