"""Energy stage, decay, boost and ornament constants.

Thresholds are ascending lower bounds: an energy value belongs to the highest
stage whose threshold it reaches.  Decay rates are subtracted once per display
frame, so a peak is held far longer than an idle blip.
"""

THRESHOLD_AWAKENING = 0.20
THRESHOLD_GROOVE = 0.40
THRESHOLD_FLOW = 0.60
THRESHOLD_EUPHORIA = 0.80

# Very high energy adds the metallic melody layer.
THRESHOLD_ULTRA = 0.90

# Style transitions only start on their own above this level.
THRESHOLD_HIGH_ENERGY = 0.80

DECAY_IDLE = 0.0060
DECAY_AWAKENING = 0.0035
DECAY_GROOVE = 0.0020
DECAY_FLOW = 0.0012
DECAY_EUPHORIA = 0.0006

INPUT_BASE = 0.035

# (lower bound, upper bound, multiplier), bounds inclusive.
RESISTANCE_ZONES = (
	(0.18, 0.25, 0.5),
	(0.38, 0.45, 0.4),
	(0.58, 0.65, 0.35),
	(0.78, 0.85, 0.3),
)

SPARKLE_CHANCE_IDLE = 0.05
SPARKLE_CHANCE_AWAKENING = 0.10
SPARKLE_CHANCE_GROOVE = 0.15
SPARKLE_CHANCE_FLOW = 0.20
SPARKLE_CHANCE_EUPHORIA = 0.30

SPARKLE_ENERGY_BONUS = 0.04
SPARKLE_BACKGROUND_INTERVAL_BARS = 12
SPARKLE_BACKGROUND_CHANCE = 0.05

DROP_INTERVAL_BARS = 4
DROP_CHANCE = 0.25
DROP_SILENCE_SECONDS = 0.1
