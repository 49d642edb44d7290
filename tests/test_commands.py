import tapgroove.commands


def test_recording_backend_satisfies_both_protocols () -> None:

	"""The in-memory backend is both an audio and a visual backend."""

	backend = tapgroove.commands.RecordingBackend()

	assert isinstance(backend, tapgroove.commands.AudioBackend)
	assert isinstance(backend, tapgroove.commands.VisualBackend)


def test_recording_backend_filters_by_voice () -> None:

	"""Recorded triggers can be read back per voice."""

	backend = tapgroove.commands.RecordingBackend()
	backend.trigger(tapgroove.commands.TriggerCommand("kick", "C1", 0.8, 0.2, 0.0))
	backend.trigger(tapgroove.commands.TriggerCommand("lead", "A3", 0.5, 0.1, 0.0))

	assert [command.pitch for command in backend.voices("lead")] == ["A3"]

	backend.clear()

	assert backend.triggers == []


def test_ramp_spacing_is_per_parameter () -> None:

	"""Only ramps for the same parameter are refused when too close together."""

	backend = tapgroove.commands.RecordingBackend(min_ramp_spacing=0.05)

	assert backend.ramp(tapgroove.commands.ParameterRamp("reverb_wet", 0.3, 1.0, 0.0)).applied
	assert backend.ramp(tapgroove.commands.ParameterRamp("filter_cutoff", 900, 1.0, 0.0)).applied

	status = backend.ramp(tapgroove.commands.ParameterRamp("reverb_wet", 0.4, 1.0, 0.02))

	assert not status.applied
	assert "reverb_wet" in status.reason
	assert backend.ramp(tapgroove.commands.ParameterRamp("reverb_wet", 0.4, 1.0, 0.06)).applied


def test_visual_state_as_dict () -> None:

	"""Visual state serialises to a flat mapping."""

	state = tapgroove.commands.VisualState(0.5, 3, 1, "groove", -20.0, "Disco House", 0.5, True)

	assert state.as_dict() == {
		"energy": 0.5,
		"melody_pulses": 3,
		"sparkle_pulses": 1,
		"stage": "groove",
		"hue_shift": -20.0,
		"style_name": "Disco House",
		"transition_progress": 0.5,
		"in_transition": True,
	}
