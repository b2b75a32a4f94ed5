import asyncio
import logging
import time
import typing

import mido

import stepgrid.constants.gm_drums


logger = logging.getLogger(__name__)


MAX_VELOCITY = 127


def open_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Open a MIDI output port.

	With a ``device_name`` that exact port is opened. Without one the first
	available port is used.

	Returns:
		A tuple of (device_name, midi_out_object) or (None, None) on failure.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None, None

		if device_name is None:
			device_name = outputs[0]
			logger.info(f"No MIDI output configured - using '{device_name}'")

		elif device_name not in outputs:
			logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
			return None, None

		midi_out = mido.open_output(device_name)
		logger.info(f"Opened MIDI output: {device_name}")

		return device_name, midi_out

	except Exception as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None, None


def volume_to_velocity (volume: float) -> int:

	"""Map a 0.0-1.0 track volume onto MIDI velocity 0-127."""

	return max(0, min(MAX_VELOCITY, int(round(volume * MAX_VELOCITY))))


class MidiPlayback:

	"""
	Playback collaborator that plays instrument triggers as General MIDI drum notes.

	Its clock starts at 0 when ``init()`` is first called. Triggers stamped in
	the future are held on the asyncio event loop and sent when they fall due,
	followed by a note-off after ``note_length`` seconds. When no port can be
	opened the clock still runs and triggers are dropped.
	"""

	def __init__ (
		self,
		output_device_name: typing.Optional[str] = None,
		channel: int = stepgrid.constants.gm_drums.GM_DRUM_CHANNEL,
		note_length: float = 0.05,
		note_map: typing.Optional[typing.Dict[str, int]] = None,
		loop: typing.Optional[asyncio.AbstractEventLoop] = None
	) -> None:

		if not 0 <= channel <= 15:
			raise ValueError("MIDI channel must be between 0 and 15")

		if note_length <= 0:
			raise ValueError("Note length must be positive")

		self.output_device_name = output_device_name
		self.channel = channel
		self.note_length = note_length
		self.note_map: typing.Dict[str, int] = dict(note_map or {})

		self.midi_out: typing.Optional[typing.Any] = None
		self._origin: typing.Optional[float] = None
		self._loop = loop
		self._pending: typing.Set[asyncio.TimerHandle] = set()


	def init (self) -> None:

		"""Start the clock and open the output port. Safe to call repeatedly."""

		if self._origin is not None:
			return

		self._origin = time.perf_counter()

		device_name, midi_out = open_output_device(self.output_device_name)

		if device_name:
			self.output_device_name = device_name
			self.midi_out = midi_out


	def resume (self) -> None:

		"""Nothing to warm up for MIDI beyond ``init()``; kept for the collaborator contract."""

		if self._origin is None:
			self.init()


	def get_current_time (self) -> float:

		"""Seconds since ``init()``; 0.0 before it."""

		if self._origin is None:
			return 0.0

		return time.perf_counter() - self._origin


	def note_for (self, instrument_id: str) -> int:

		"""Note for an instrument: the per-instance override, else the GM drum map."""

		if instrument_id in self.note_map:
			return self.note_map[instrument_id]

		return stepgrid.constants.gm_drums.note_for(instrument_id)


	def play_instrument_by_name (self, instrument_id: str, time: float, volume: float) -> None:

		"""
		Queue a note for ``instrument_id`` at ``time`` on this collaborator's clock.

		Late triggers are sent immediately. A zero volume sends nothing.
		"""

		velocity = volume_to_velocity(volume)

		if velocity == 0:
			return

		delay = max(0.0, time - self.get_current_time())

		self._call_later(delay, self._send_note, self.note_for(instrument_id), velocity)


	def _call_later (self, delay: float, callback: typing.Callable[..., None], *args: typing.Any) -> None:

		if self._loop is None:
			self._loop = asyncio.get_running_loop()

		handle: typing.Optional[asyncio.TimerHandle] = None

		def _run () -> None:

			if handle is not None:
				self._pending.discard(handle)

			callback(*args)

		handle = self._loop.call_later(delay, _run)
		self._pending.add(handle)


	def _send_note (self, note: int, velocity: int) -> None:

		self._send(mido.Message('note_on', channel=self.channel, note=note, velocity=velocity))
		self._call_later(self.note_length, self._send, mido.Message('note_off', channel=self.channel, note=note, velocity=0))


	def _send (self, message: mido.Message) -> None:

		if self.midi_out is None:
			return

		try:
			self.midi_out.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")


	def close (self) -> None:

		"""Drop queued notes, silence the channel and close the port."""

		for handle in self._pending:
			handle.cancel()

		self._pending.clear()

		if self.midi_out is None:
			return

		try:
			# All Notes Off on the drum channel
			self.midi_out.send(mido.Message('control_change', channel=self.channel, control=123, value=0))
			self.midi_out.close()
		except Exception:
			logger.exception("MIDI close failed (device may be disconnected)")

		self.midi_out = None
