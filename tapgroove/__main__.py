import argparse
import asyncio
import logging
import random
import typing

import tapgroove.config
import tapgroove.engine
import tapgroove.midi_backend
import tapgroove.osc
import tapgroove.sequencer
import tapgroove.web_ui


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_args (argv: typing.Optional[typing.List[str]] = None) -> argparse.Namespace:

	"""
	Parse command-line options.
	"""

	parser = argparse.ArgumentParser(prog="tapgroove", description="Energy-driven procedural dance music engine")
	parser.add_argument("--config", default="tapgroove.yaml", help="YAML configuration file")
	parser.add_argument("--device", default=None, help="MIDI output device name (overrides the config)")
	parser.add_argument("--record", default=None, metavar="FILE", help="Record the session to a MIDI file")

	return parser.parse_args(argv)


async def run (config: tapgroove.config.EngineConfig, device: typing.Optional[str], record: typing.Optional[str]) -> None:

	"""
	Build the engine and its adapters, then play until cancelled.
	"""

	_, midi_out = tapgroove.midi_backend.select_output_device(device or config.midi_output)

	if midi_out is None:
		logger.warning("No MIDI output: the performance will run silently")

	midi = tapgroove.midi_backend.MidiBackend(midi_out, record=record is not None, record_filename=record, bpm=config.bpm)
	engine = tapgroove.engine.PerformanceEngine(config, audio=midi, rng=random.Random(config.seed))
	sequencer = tapgroove.sequencer.Sequencer(engine, midi=midi)

	osc_server = tapgroove.osc.OscServer(
		sequencer,
		receive_port = config.osc_receive_port,
		send_port = config.osc_send_port,
		send_host = config.osc_send_host,
	)
	await osc_server.start()
	engine.add_visual(osc_server)

	web_ui: typing.Optional[tapgroove.web_ui.WebUI] = None

	if config.web_ui:
		web_ui = tapgroove.web_ui.WebUI(sequencer, ws_port=config.web_ui_port)
		await web_ui.start()

	try:
		await sequencer.play()
	finally:
		if web_ui is not None:
			await web_ui.stop()
		await osc_server.stop()
		midi.close()


def main () -> None:

	"""
	Main entry point for the tapgroove application.
	"""

	args = parse_args()

	logger.info("tapgroove starting...")

	config = tapgroove.config.load_config(args.config)

	try:
		asyncio.run(run(config, args.device, args.record))
	except KeyboardInterrupt:
		logger.info("Stopping...")


if __name__ == "__main__":
	main()
