import asyncio
import logging
import os
import signal
import sys
import typing

import yaml

import stepgrid.constants
import stepgrid.constants.gm_drums
import stepgrid.osc
import stepgrid.persistence
import stepgrid.playback
import stepgrid.sequencer


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


DEFAULT_STORAGE_DIRECTORY = "~/.stepgrid"


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		return yaml.safe_load(f) or {}


def build_sequencer (config: typing.Dict[str, typing.Any]) -> stepgrid.sequencer.Sequencer:

	"""
	Create the MIDI playback collaborator and the sequencer from a config dict.
	"""

	midi_config = config.get('midi') or {}
	sequencer_config = config.get('sequencer') or {}

	playback = stepgrid.playback.MidiPlayback(
		output_device_name = midi_config.get('device_name'),
		channel = midi_config.get('channel', stepgrid.constants.gm_drums.GM_DRUM_CHANNEL),
		note_length = midi_config.get('note_length', 0.05)
	)

	return stepgrid.sequencer.Sequencer(
		playback = playback,
		track_count = sequencer_config.get('tracks', stepgrid.constants.DEFAULT_TRACK_COUNT),
		step_count = sequencer_config.get('steps', stepgrid.constants.DEFAULT_STEP_COUNT),
		pattern_count = sequencer_config.get('patterns', stepgrid.constants.DEFAULT_PATTERN_COUNT),
		initial_bpm = sequencer_config.get('bpm', stepgrid.constants.DEFAULT_BPM),
		lookahead = sequencer_config.get('lookahead', stepgrid.constants.LOOKAHEAD_SECONDS),
		schedule_interval = sequencer_config.get('schedule_interval', stepgrid.constants.SCHEDULE_INTERVAL_SECONDS)
	)


async def run (config: typing.Dict[str, typing.Any]) -> None:

	"""
	Restore the last session (or the demo beat), play until interrupted, then autosave.
	"""

	storage_config = config.get('storage') or {}
	osc_config = config.get('osc') or {}

	sequencer = build_sequencer(config)
	documents = stepgrid.persistence.DocumentStore(storage_config.get('directory', DEFAULT_STORAGE_DIRECTORY))
	slot = storage_config.get('autosave', stepgrid.constants.AUTOSAVE_SLOT)

	if not documents.load(sequencer, slot):
		logger.info("Loading demo pattern")
		sequencer.store.load_demo_pattern()

	osc_server: typing.Optional[stepgrid.osc.OscServer] = None

	if osc_config.get('enabled', False):
		osc_server = stepgrid.osc.OscServer(
			sequencer,
			receive_port = osc_config.get('receive_port', 9000),
			send_port = osc_config.get('send_port', 9001),
			send_host = osc_config.get('send_host', "127.0.0.1")
		)
		await osc_server.start()

	stop_event = asyncio.Event()
	loop = asyncio.get_running_loop()

	def _request_stop () -> None:

		"""
		Signal handler to request a clean shutdown.
		"""

		stop_event.set()

	for sig in (signal.SIGINT, signal.SIGTERM):
		loop.add_signal_handler(sig, _request_stop)

	logger.info("Playing. Press Ctrl+C to stop.")

	sequencer.play()

	try:
		await stop_event.wait()
	finally:
		sequencer.stop()
		documents.save(sequencer, slot)

		if osc_server is not None:
			await osc_server.stop()

		if isinstance(sequencer.playback, stepgrid.playback.MidiPlayback):
			sequencer.playback.close()


def main () -> None:

	"""
	Main entry point for the stepgrid application.
	"""

	logger.info("stepgrid starting...")

	config_path = sys.argv[1] if len(sys.argv) > 1 else 'config.yaml'
	config = load_config(config_path)

	try:
		asyncio.run(run(config))
	except KeyboardInterrupt:
		pass


if __name__ == "__main__":
	main()
