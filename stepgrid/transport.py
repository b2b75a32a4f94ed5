import dataclasses
import logging
import typing

import stepgrid.constants


logger = logging.getLogger(__name__)


STOPPED = "stopped"
PLAYING = "playing"
PAUSED = "paused"


def clamp_bpm (bpm: float) -> int:

	"""Round a tempo to a whole BPM inside the supported range."""

	return int(round(max(stepgrid.constants.MIN_BPM, min(stepgrid.constants.MAX_BPM, bpm))))


def step_duration (bpm: float) -> float:

	"""Seconds per step, where a step is a sixteenth note: ``(60 / bpm) / 4``."""

	return (60.0 / bpm) / stepgrid.constants.STEPS_PER_BEAT


@dataclasses.dataclass
class TransportState:

	"""
	Playback position and tempo.

	``next_event_time`` is expressed in the playback collaborator's clock.
	"""

	is_playing: bool = False
	is_paused: bool = False
	current_step: int = 0
	next_event_time: float = 0.0
	bpm: int = stepgrid.constants.DEFAULT_BPM


class Transport:

	"""
	The play / pause / stop state machine.

	Transitions return True when they changed state. Calls from a state where
	the transition is not allowed do nothing and return False.
	"""

	def __init__ (self, bpm: float = stepgrid.constants.DEFAULT_BPM) -> None:

		self.state = TransportState(bpm=clamp_bpm(bpm))


	@property
	def mode (self) -> str:

		"""One of ``"stopped"``, ``"playing"`` or ``"paused"``."""

		if self.state.is_playing:
			return PLAYING

		if self.state.is_paused:
			return PAUSED

		return STOPPED


	@property
	def bpm (self) -> int:
		return self.state.bpm

	@property
	def current_step (self) -> int:
		return self.state.current_step

	@property
	def next_event_time (self) -> float:
		return self.state.next_event_time


	def set_bpm (self, bpm: float) -> int:

		"""Change tempo, clamped to 60-200 BPM. Returns the tempo actually set."""

		self.state.bpm = clamp_bpm(bpm)

		logger.info(f"BPM set to {self.state.bpm}")

		return self.state.bpm


	def step_duration (self) -> float:

		"""Seconds per step at the current tempo."""

		return step_duration(self.state.bpm)


	def play (self) -> bool:

		"""Stopped or Paused -> Playing."""

		if self.state.is_playing:
			return False

		self.state.is_playing = True
		self.state.is_paused = False

		return True


	def pause (self) -> bool:

		"""Playing -> Paused. Keeps the current step and clock cursor."""

		if not self.state.is_playing:
			return False

		self.state.is_playing = False
		self.state.is_paused = True

		return True


	def stop (self) -> bool:

		"""Playing or Paused -> Stopped, rewinding to step 0."""

		if not (self.state.is_playing or self.state.is_paused):
			return False

		self.state.is_playing = False
		self.state.is_paused = False
		self.state.current_step = 0

		return True


	def set_cursor (self, time: float) -> None:

		"""Move the clock cursor so the current step falls due at ``time``."""

		self.state.next_event_time = time


	def advance (self, step_count: int) -> None:

		"""Move one step forward, wrapping at ``step_count``, and push the cursor by one step duration."""

		self.state.next_event_time += self.step_duration()
		self.state.current_step = (self.state.current_step + 1) % step_count
