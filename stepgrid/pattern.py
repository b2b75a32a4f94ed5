import copy
import dataclasses
import logging
import random
import typing

import stepgrid.constants
import stepgrid.event_emitter
import stepgrid.sequence_utils


logger = logging.getLogger(__name__)


Grid = typing.List[typing.List[bool]]


@dataclasses.dataclass
class TrackControl:

	"""
	Per-track settings shared by every pattern bank.
	"""

	instrument_id: str
	display_name: str
	volume: float = stepgrid.constants.DEFAULT_VOLUME
	muted: bool = False
	solo: bool = False


def default_instrument (track: int) -> str:

	"""Default instrument id for a track index, cycling the built-in kit."""

	return stepgrid.constants.DEFAULT_INSTRUMENTS[track % len(stepgrid.constants.DEFAULT_INSTRUMENTS)]


def default_track_name (track: int) -> str:

	"""Default display name for a track index, cycling the built-in kit."""

	return stepgrid.constants.DEFAULT_TRACK_NAMES[track % len(stepgrid.constants.DEFAULT_TRACK_NAMES)]


def default_track_control (track: int) -> TrackControl:

	"""Build the factory TrackControl for a track index."""

	return TrackControl(instrument_id=default_instrument(track), display_name=default_track_name(track))


def should_play (muted: bool, solo: bool, any_solo: bool) -> bool:

	"""
	Decide whether an active step on a track is audible.

	A muted track never sounds. While any track is soloed only soloed tracks sound.
	"""

	return not muted and (not any_solo or solo)


class PatternStore:

	"""
	A bank of fixed-size step grids plus the track controls they share.

	Every index-based method is bounds-checked and ignores invalid indices
	instead of raising, so a UI can forward raw input without validating it.
	"""

	def __init__ (
		self,
		track_count: int = stepgrid.constants.DEFAULT_TRACK_COUNT,
		step_count: int = stepgrid.constants.DEFAULT_STEP_COUNT,
		pattern_count: int = stepgrid.constants.DEFAULT_PATTERN_COUNT,
		events: typing.Optional[stepgrid.event_emitter.EventEmitter] = None
	) -> None:

		"""Create ``pattern_count`` empty grids of ``track_count`` x ``step_count``.

		Parameters:
			track_count: Number of tracks (rows) in every pattern
			step_count: Number of steps (columns) in every pattern
			pattern_count: Number of switchable pattern banks
			events: Emitter used for ``pattern_change`` and ``instrument_change``
				notifications. A private one is created when omitted.
		"""

		if track_count <= 0:
			raise ValueError("Track count must be positive")

		if step_count <= 0:
			raise ValueError("Step count must be positive")

		if pattern_count <= 0:
			raise ValueError("Pattern count must be positive")

		self.track_count = track_count
		self.step_count = step_count
		self.pattern_count = pattern_count
		self.events = events if events is not None else stepgrid.event_emitter.EventEmitter()

		self.patterns: typing.List[Grid] = [self.empty_grid() for _ in range(pattern_count)]
		self.current_pattern = 0
		self.tracks: typing.List[TrackControl] = [default_track_control(track) for track in range(track_count)]


	def empty_grid (self) -> Grid:

		"""Return a new all-false grid with this store's dimensions."""

		return [[False] * self.step_count for _ in range(self.track_count)]


	def _valid_track (self, track: int) -> bool:
		return 0 <= track < self.track_count

	def _valid_step (self, step: int) -> bool:
		return 0 <= step < self.step_count

	def _valid_pattern (self, index: int) -> bool:
		return 0 <= index < self.pattern_count


	@property
	def current (self) -> Grid:

		"""The grid of the current pattern bank (live, not a copy)."""

		return self.patterns[self.current_pattern]


	def get_pattern (self, index: typing.Optional[int] = None) -> Grid:

		"""Return a deep copy of one grid, the current one by default.

		Raises ``IndexError`` for an invalid index, since there is nothing sensible to return.
		"""

		if index is None:
			index = self.current_pattern

		if not self._valid_pattern(index):
			raise IndexError(f"Pattern index {index} out of range")

		return copy.deepcopy(self.patterns[index])


	# Step editing

	def toggle_step (self, track: int, step: int) -> None:

		"""Flip one step in the current pattern. Invalid indices are ignored."""

		if self._valid_track(track) and self._valid_step(step):
			grid = self.current
			grid[track][step] = not grid[track][step]


	def is_step_active (self, track: int, step: int, pattern_index: typing.Optional[int] = None) -> bool:

		"""Return whether a step is on; False for any invalid index."""

		if pattern_index is None:
			pattern_index = self.current_pattern

		if not (self._valid_pattern(pattern_index) and self._valid_track(track) and self._valid_step(step)):
			return False

		return self.patterns[pattern_index][track][step]


	def set_step (self, track: int, step: int, value: bool, pattern_index: typing.Optional[int] = None) -> None:

		"""Set one step directly, in the current pattern unless ``pattern_index`` is given."""

		if pattern_index is None:
			pattern_index = self.current_pattern

		if self._valid_pattern(pattern_index) and self._valid_track(track) and self._valid_step(step):
			self.patterns[pattern_index][track][step] = bool(value)


	def set_track_steps (self, track: int, values: typing.Sequence[bool]) -> None:

		"""Overwrite a whole track row of the current pattern; missing values become False."""

		if not self._valid_track(track):
			return

		row = [bool(values[step]) if step < len(values) else False for step in range(self.step_count)]
		self.current[track] = row


	# Pattern banks

	def switch_pattern (self, index: int) -> None:

		"""Make another bank current and emit ``pattern_change``. Invalid indices are ignored."""

		if not self._valid_pattern(index):
			return

		self.current_pattern = index

		logger.debug(f"Switched to pattern {index}")

		self.events.emit("pattern_change", index)


	def copy_pattern (self, from_index: int, to_index: int) -> None:

		"""Deep-copy one bank's grid into another. Track controls are shared and not copied."""

		if self._valid_pattern(from_index) and self._valid_pattern(to_index):
			self.patterns[to_index] = copy.deepcopy(self.patterns[from_index])


	def clear_pattern (self) -> None:

		"""Reset the current pattern to all-false."""

		self.patterns[self.current_pattern] = self.empty_grid()


	def clear_all_patterns (self) -> None:

		"""Reset every pattern bank to all-false."""

		self.patterns = [self.empty_grid() for _ in range(self.pattern_count)]


	def clear_track (self, track: int) -> None:

		"""Reset one track row of the current pattern to all-false."""

		if self._valid_track(track):
			self.current[track] = [False] * self.step_count


	# Generators

	def fill_track (self, track: int, pattern_type: str) -> None:

		"""
		Overwrite a track row of the current pattern with a named fill.

		See ``stepgrid.sequence_utils.resolve_fill`` for the catalog. Unknown names
		leave the row as it was.
		"""

		if not self._valid_track(track):
			return

		row = stepgrid.sequence_utils.resolve_fill(pattern_type, self.step_count)

		if row is None:
			return

		self.current[track] = row


	def randomize_track (self, track: int, rng: typing.Optional[random.Random] = None) -> None:

		"""
		Overwrite a track row with independent random draws.

		Hit probability depends on the instrument bound to the track (sparser kicks,
		denser hats and percussion).
		"""

		if not self._valid_track(track):
			return

		if rng is None:
			rng = random.Random()

		density = stepgrid.sequence_utils.density_for_instrument(self.tracks[track].instrument_id)

		self.current[track] = stepgrid.sequence_utils.generate_random_sequence(self.step_count, density, rng)


	def load_demo_pattern (self) -> None:

		"""Replace bank 0 with a basic house beat for the default kit."""

		self.patterns[0] = self.empty_grid()

		demo = {
			0: [0, 4, 8, 12],					# kick, four on the floor
			1: [4, 12],							# snare backbeat
			2: list(range(0, 16, 2)),			# closed hats on eighths
			3: [4, 12],							# clap doubles the snare
			4: [14, 15],						# tom fill at the end of the bar
			5: [3, 7, 11, 15],					# open hats between the closed ones
			6: [0, 4, 8, 12],					# bass follows the kick
			7: list(range(16)),					# shaker on every sixteenth
		}

		for track, steps in demo.items():
			for step in steps:
				self.set_step(track, step, True, pattern_index=0)


	# Track controls

	def set_track_instrument (self, track: int, instrument_id: str, display_name: typing.Optional[str] = None) -> None:

		"""Bind an instrument to a track and emit ``instrument_change``.

		The display name is only replaced when one is given.
		"""

		if not self._valid_track(track):
			return

		self.tracks[track].instrument_id = instrument_id

		if display_name:
			self.tracks[track].display_name = display_name

		self.events.emit("instrument_change", track, instrument_id, display_name)


	def get_track_instrument (self, track: int) -> typing.Optional[str]:

		"""Instrument id bound to a track, or None for an invalid index."""

		return self.tracks[track].instrument_id if self._valid_track(track) else None


	def get_track_name (self, track: int) -> typing.Optional[str]:

		"""Display name of a track, or None for an invalid index."""

		return self.tracks[track].display_name if self._valid_track(track) else None


	def set_track_volume (self, track: int, volume: float) -> None:

		"""Set a track's volume, clamped to 0.0-1.0."""

		if self._valid_track(track):
			self.tracks[track].volume = max(0.0, min(1.0, float(volume)))


	def toggle_mute (self, track: int) -> bool:

		"""Flip a track's mute and return the new state (False for an invalid index)."""

		if not self._valid_track(track):
			return False

		self.tracks[track].muted = not self.tracks[track].muted
		return self.tracks[track].muted


	def toggle_solo (self, track: int) -> bool:

		"""Flip a track's solo and return the new state (False for an invalid index)."""

		if not self._valid_track(track):
			return False

		self.tracks[track].solo = not self.tracks[track].solo
		return self.tracks[track].solo


	def set_mute (self, track: int, muted: bool) -> None:
		if self._valid_track(track):
			self.tracks[track].muted = bool(muted)

	def set_solo (self, track: int, solo: bool) -> None:
		if self._valid_track(track):
			self.tracks[track].solo = bool(solo)


	def any_solo (self) -> bool:

		"""True when at least one track is soloed."""

		return any(control.solo for control in self.tracks)


	def should_play (self, track: int) -> bool:

		"""Whether an active step on this track would sound under the current mute/solo state."""

		if not self._valid_track(track):
			return False

		control = self.tracks[track]

		return should_play(control.muted, control.solo, self.any_solo())
