"""
tapgroove - an energy-driven procedural dance music engine.

Every key press feeds a single *energy* value.  Energy climbs through five
stages (idle, awakening, groove, flow, euphoria) and decays back when the
player rests; the rhythm section thins out or fills in with it, key presses
turn into melody locked to the chord and the sixteenth grid, and after a
while at high energy the engine glides into another style, morphing its
timbre and effects across a two-bar transition.

The engine emits abstract commands; adapters turn them into MIDI (mido),
OSC messages (python-osc) and a WebSocket feed for browser visuals.

Quick start:

    import random
    import tapgroove

    engine = tapgroove.PerformanceEngine(rng=random.Random(1))
    engine.start(0.0)
    engine.key_pressed("a", 0.0)
    engine.tick(0.0)

Or from the command line, with MIDI out and OSC in::

    python -m tapgroove --config tapgroove.yaml
"""

from tapgroove.commands import ParameterRamp, RecordingBackend, TriggerCommand, VisualState
from tapgroove.config import EngineConfig, load_config
from tapgroove.energy import EnergyController, Stage
from tapgroove.engine import PerformanceEngine
from tapgroove.style_director import StyleDirector
from tapgroove.styles import DEFAULT_CATALOG, Style, StyleCatalog


__all__ = [
	"DEFAULT_CATALOG",
	"EnergyController",
	"EngineConfig",
	"ParameterRamp",
	"PerformanceEngine",
	"RecordingBackend",
	"Stage",
	"Style",
	"StyleCatalog",
	"StyleDirector",
	"TriggerCommand",
	"VisualState",
	"load_config",
]
