import asyncio
import dataclasses
import logging
import typing

import stepgrid.constants
import stepgrid.event_emitter
import stepgrid.pattern
import stepgrid.transport


logger = logging.getLogger(__name__)


@typing.runtime_checkable
class PlaybackLike (typing.Protocol):

	"""
	Protocol for the sound-producing collaborator the sequencer drives.

	``get_current_time`` returns the collaborator's own clock in seconds, and
	``play_instrument_by_name`` must accept a ``time`` in the future on that
	same clock.
	"""

	def init (self) -> None:
		...

	def resume (self) -> None:
		...

	def get_current_time (self) -> float:
		...

	def play_instrument_by_name (self, instrument_id: str, time: float, volume: float) -> None:
		...


@dataclasses.dataclass
class TriggerEvent:

	"""
	One instrument trigger sent to the playback collaborator.
	"""

	track: int
	step: int
	instrument_id: str
	time: float
	volume: float


class Sequencer:

	"""
	The engine that turns the pattern grid into timed triggers.

	A scheduler pass reads the playback clock, dispatches every step that falls
	inside the lookahead window at that step's own timestamp, then re-arms
	itself on the asyncio event loop. The polling cadence only costs CPU; timing
	accuracy comes from dispatching at the precomputed step time.

	Notifications (single subscriber each, delivered synchronously):

	- ``step_change(step)`` - fired when a step becomes audible, and with 0 on stop
	- ``pattern_change(index)`` - fired by ``store.switch_pattern``
	- ``instrument_change(track, instrument_id, display_name)``
	"""

	def __init__ (
		self,
		playback: PlaybackLike,
		track_count: int = stepgrid.constants.DEFAULT_TRACK_COUNT,
		step_count: int = stepgrid.constants.DEFAULT_STEP_COUNT,
		pattern_count: int = stepgrid.constants.DEFAULT_PATTERN_COUNT,
		initial_bpm: float = stepgrid.constants.DEFAULT_BPM,
		lookahead: float = stepgrid.constants.LOOKAHEAD_SECONDS,
		schedule_interval: float = stepgrid.constants.SCHEDULE_INTERVAL_SECONDS,
		loop: typing.Optional[asyncio.AbstractEventLoop] = None
	) -> None:

		"""Initialize the sequencer around a playback collaborator.

		Parameters:
			playback: Collaborator that produces sound (see ``PlaybackLike``)
			track_count: Tracks per pattern
			step_count: Steps per pattern
			pattern_count: Number of pattern banks
			initial_bpm: Starting tempo, clamped to 60-200
			lookahead: Seconds ahead of the playback clock to dispatch steps
			schedule_interval: Seconds between scheduler passes
			loop: Event loop for the scheduler timers. Defaults to the running
				loop at the time ``play()`` is first called.
		"""

		if lookahead < 0:
			raise ValueError("Lookahead cannot be negative")

		if schedule_interval <= 0:
			raise ValueError("Schedule interval must be positive")

		self.playback = playback
		self.lookahead = lookahead
		self.schedule_interval = schedule_interval

		self.events = stepgrid.event_emitter.EventEmitter()
		self.store = stepgrid.pattern.PatternStore(
			track_count = track_count,
			step_count = step_count,
			pattern_count = pattern_count,
			events = self.events
		)
		self.transport = stepgrid.transport.Transport(initial_bpm)

		self._loop = loop
		self._timer: typing.Optional[asyncio.TimerHandle] = None
		self._step_timers: typing.Set[asyncio.TimerHandle] = set()


	@property
	def bpm (self) -> int:
		return self.transport.bpm

	@property
	def current_step (self) -> int:
		return self.transport.current_step

	@property
	def is_playing (self) -> bool:
		return self.transport.state.is_playing

	@property
	def is_paused (self) -> bool:
		return self.transport.state.is_paused


	def set_bpm (self, bpm: float) -> int:

		"""
		Change the tempo, clamped to 60-200 BPM.

		While playing, the new step duration applies from the next step onward.
		"""

		return self.transport.set_bpm(bpm)


	def step_duration (self) -> float:

		"""Seconds per step at the current tempo."""

		return self.transport.step_duration()


	def on_event (self, event_name: str, callback: typing.Callable[..., typing.Any]) -> None:

		"""
		Bind the callback for a named notification, replacing any earlier one.
		"""

		self.events.on(event_name, callback)


	def _get_loop (self) -> asyncio.AbstractEventLoop:

		if self._loop is None:
			self._loop = asyncio.get_running_loop()

		return self._loop


	def play (self) -> None:

		"""
		Start or resume playback.

		Warms up the playback collaborator, then runs the first scheduler pass
		immediately. Coming from Stopped the clock cursor is set to the playback
		clock's current time. Resuming keeps the current step, and only moves the
		cursor forward when the pause left it behind the clock.

		Must be called from inside a running event loop (unless one was passed
		to the constructor); otherwise ``RuntimeError`` is raised and the
		sequencer stays as it was.
		"""

		if self.transport.state.is_playing:
			return

		# Raises RuntimeError outside a running loop, before any state changes.
		self._get_loop()

		from_stopped = self.transport.mode == stepgrid.transport.STOPPED

		self.playback.init()
		self.playback.resume()

		self.transport.play()

		now = self.playback.get_current_time()

		if from_stopped or self.transport.next_event_time < now:
			self.transport.set_cursor(now)

		logger.info(f"Sequencer {'started' if from_stopped else 'resumed'} at step {self.transport.current_step}")

		self._schedule()


	def pause (self) -> None:

		"""
		Pause playback, keeping the current step. No-op unless playing.
		"""

		if not self.transport.pause():
			return

		self._cancel_timer()

		logger.info(f"Sequencer paused at step {self.transport.current_step}")


	def stop (self) -> None:

		"""
		Stop playback and rewind to step 0. No-op when already stopped.

		Emits ``step_change(0)`` so the presentation layer clears its playhead.
		"""

		if not self.transport.stop():
			return

		self._cancel_timer()
		self._cancel_step_notifications()

		logger.info("Sequencer stopped")

		self.events.emit("step_change", 0)


	def _cancel_timer (self) -> None:

		if self._timer is not None:
			self._timer.cancel()
			self._timer = None


	def _cancel_step_notifications (self) -> None:

		for handle in self._step_timers:
			handle.cancel()

		self._step_timers.clear()


	def _schedule (self) -> None:

		"""
		Run one scheduler pass and re-arm the next one.

		Every step whose time falls before ``now + lookahead`` is dispatched in
		order, so a late pass catches up by dispatching several steps at once.
		"""

		self._cancel_timer()

		if not self.transport.state.is_playing:
			return

		now = self.playback.get_current_time()
		horizon = now + self.lookahead

		while self.transport.next_event_time < horizon:
			self._dispatch_step(self.transport.current_step, self.transport.next_event_time, now)
			self.transport.advance(self.store.step_count)

		self._timer = self._get_loop().call_later(self.schedule_interval, self._schedule)


	def _dispatch_step (self, step: int, time: float, now: float) -> typing.List[TriggerEvent]:

		"""
		Trigger every audible active track of one step at ``time``.

		Returns the triggers sent, for logging and inspection. The scheduler
		pass itself does not use them.
		"""

		self._notify_step_at(step, time, now)

		grid = self.store.current
		any_solo = self.store.any_solo()
		triggered: typing.List[TriggerEvent] = []

		for track, control in enumerate(self.store.tracks):

			if not grid[track][step]:
				continue

			if not stepgrid.pattern.should_play(control.muted, control.solo, any_solo):
				continue

			self.playback.play_instrument_by_name(control.instrument_id, time, control.volume)

			triggered.append(TriggerEvent(
				track = track,
				step = step,
				instrument_id = control.instrument_id,
				time = time,
				volume = control.volume
			))

		if triggered:
			logger.debug(f"Step {step} at {time:.3f}: {[event.instrument_id for event in triggered]}")

		return triggered


	def _notify_step_at (self, step: int, time: float, now: float) -> None:

		"""
		Emit ``step_change`` when the step's audio time arrives rather than now.
		"""

		delay = max(0.0, time - now)
		handle: typing.Optional[asyncio.TimerHandle] = None

		def _fire () -> None:

			if handle is not None:
				self._step_timers.discard(handle)

			self.events.emit("step_change", step)

		handle = self._get_loop().call_later(delay, _fire)
		self._step_timers.add(handle)
