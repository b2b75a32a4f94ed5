"""OSC bridge for remote control and presentation updates.

Call ``OscServer.start()`` from inside the running event loop. The server
listens on a UDP port (default 9000) for control messages and sends
notifications to a target host/port (default 127.0.0.1:9001).

Receive Handlers
────────────────
- ``/play``, ``/pause``, ``/stop``: Transport
- ``/bpm <int>``: Set tempo
- ``/pattern <int>``: Switch pattern bank
- ``/copy <from> <to>``: Copy a pattern bank
- ``/toggle <track> <step>``: Toggle a step in the current pattern
- ``/fill <track> <name>``: Fill a track with a named pattern
- ``/randomize <track>``: Randomize a track
- ``/clear [<track>]``: Clear the current pattern, or one track
- ``/mute/<track>``, ``/solo/<track>``: Toggle mute / solo
- ``/volume/<track> <float>``: Set track volume (0.0-1.0)

Send Events
───────────
- ``/step <int>``: When a step becomes audible (and 0 on stop)
- ``/pattern <int>``: On pattern switch
- ``/instrument <track> <id> [<name>]``: On instrument change
"""

import asyncio
import logging
import typing

import pythonosc.dispatcher
import pythonosc.osc_server
import pythonosc.udp_client

if typing.TYPE_CHECKING:
	from stepgrid.sequencer import Sequencer


logger = logging.getLogger(__name__)


class OscServer:

	"""Async OSC server/client that drives a sequencer and mirrors its notifications."""

	def __init__ (
		self,
		sequencer: "Sequencer",
		receive_port: int = 9000,
		send_port: int = 9001,
		send_host: str = "127.0.0.1"
	) -> None:

		self._sequencer = sequencer
		self._receive_port = receive_port
		self._send_port = send_port
		self._send_host = send_host

		self._server: typing.Optional[typing.Any] = None
		self._transport: typing.Optional[asyncio.BaseTransport] = None
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = None
		self._dispatcher = pythonosc.dispatcher.Dispatcher()

		self._dispatcher.map("/play", self._handle_play)
		self._dispatcher.map("/pause", self._handle_pause)
		self._dispatcher.map("/stop", self._handle_stop)
		self._dispatcher.map("/bpm", self._handle_bpm)
		self._dispatcher.map("/pattern", self._handle_pattern)
		self._dispatcher.map("/copy", self._handle_copy)
		self._dispatcher.map("/toggle", self._handle_toggle)
		self._dispatcher.map("/fill", self._handle_fill)
		self._dispatcher.map("/randomize", self._handle_randomize)
		self._dispatcher.map("/clear", self._handle_clear)
		self._dispatcher.map("/mute/*", self._handle_mute)
		self._dispatcher.map("/solo/*", self._handle_solo)
		self._dispatcher.map("/volume/*", self._handle_volume)


	async def start (self) -> None:

		"""Start the OSC server and client, and subscribe to the sequencer's notifications."""

		self._client = pythonosc.udp_client.SimpleUDPClient(self._send_host, self._send_port)

		self._server = pythonosc.osc_server.AsyncIOOSCUDPServer(
			("0.0.0.0", self._receive_port),
			self._dispatcher,
			asyncio.get_running_loop()  # type: ignore[arg-type]
		)

		transport, _ = await self._server.create_serve_endpoint()
		self._transport = transport

		self._sequencer.on_event("step_change", lambda step: self.send("/step", step))
		self._sequencer.on_event("pattern_change", lambda index: self.send("/pattern", index))
		self._sequencer.on_event("instrument_change", self._send_instrument)

		logger.info(f"OSC listening on :{self._receive_port}, sending to {self._send_host}:{self._send_port}")


	async def stop (self) -> None:

		"""Stop the OSC server."""

		if self._transport:
			self._transport.close()
			self._transport = None
			logger.info("OSC server stopped")


	def send (self, address: str, *args: typing.Any) -> None:

		"""Send an OSC message."""

		if self._client:
			try:
				self._client.send_message(address, list(args))
			except Exception as e:
				logger.warning(f"OSC send error: {e}")


	def _send_instrument (self, track: int, instrument_id: str, display_name: typing.Optional[str]) -> None:

		if display_name:
			self.send("/instrument", track, instrument_id, display_name)
		else:
			self.send("/instrument", track, instrument_id)


	# Handlers

	def _int_args (self, address: str, args: typing.Tuple[typing.Any, ...], count: int) -> typing.Optional[typing.List[int]]:

		"""Read the first ``count`` arguments as ints, or None (logged) if they are missing or malformed."""

		try:
			if len(args) < count:
				raise ValueError("missing arguments")
			return [int(value) for value in args[:count]]
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC arguments for {address}: {args}")
			return None

	def _track_from_address (self, address: str) -> typing.Optional[int]:

		# address is like /mute/3
		parts = address.split("/")

		try:
			return int(parts[2])
		except (IndexError, ValueError):
			logger.warning(f"Invalid OSC track address: {address}")
			return None

	def _handle_play (self, address: str, *args: typing.Any) -> None:
		self._sequencer.play()

	def _handle_pause (self, address: str, *args: typing.Any) -> None:
		self._sequencer.pause()

	def _handle_stop (self, address: str, *args: typing.Any) -> None:
		self._sequencer.stop()

	def _handle_bpm (self, address: str, *args: typing.Any) -> None:
		values = self._int_args(address, args, 1)
		if values is not None:
			self._sequencer.set_bpm(values[0])

	def _handle_pattern (self, address: str, *args: typing.Any) -> None:
		values = self._int_args(address, args, 1)
		if values is not None:
			self._sequencer.store.switch_pattern(values[0])

	def _handle_copy (self, address: str, *args: typing.Any) -> None:
		values = self._int_args(address, args, 2)
		if values is not None:
			self._sequencer.store.copy_pattern(values[0], values[1])

	def _handle_toggle (self, address: str, *args: typing.Any) -> None:
		values = self._int_args(address, args, 2)
		if values is not None:
			self._sequencer.store.toggle_step(values[0], values[1])

	def _handle_fill (self, address: str, *args: typing.Any) -> None:
		values = self._int_args(address, args, 1)
		if values is not None and len(args) >= 2:
			self._sequencer.store.fill_track(values[0], str(args[1]))

	def _handle_randomize (self, address: str, *args: typing.Any) -> None:
		values = self._int_args(address, args, 1)
		if values is not None:
			self._sequencer.store.randomize_track(values[0])

	def _handle_clear (self, address: str, *args: typing.Any) -> None:

		if not args:
			self._sequencer.store.clear_pattern()
			return

		values = self._int_args(address, args, 1)
		if values is not None:
			self._sequencer.store.clear_track(values[0])

	def _handle_mute (self, address: str, *args: typing.Any) -> None:
		track = self._track_from_address(address)
		if track is not None:
			self._sequencer.store.toggle_mute(track)

	def _handle_solo (self, address: str, *args: typing.Any) -> None:
		track = self._track_from_address(address)
		if track is not None:
			self._sequencer.store.toggle_solo(track)

	def _handle_volume (self, address: str, *args: typing.Any) -> None:

		track = self._track_from_address(address)

		if track is None or not args:
			return

		try:
			self._sequencer.store.set_track_volume(track, float(args[0]))
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC volume argument: {args[0]}")
