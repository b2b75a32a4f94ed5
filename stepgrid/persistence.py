"""Save and restore sequencer state as a JSON document.

The document shape is versionless and matches what earlier releases wrote::

	{
		"bpm": 120,
		"patterns": [[[true, false, ...], ...], ...],	# bank x track x step
		"currentPattern": 0,
		"trackVolumes": [0.7, ...],
		"trackMuted": [false, ...],
		"trackSolo": [false, ...],
		"trackInstruments": ["kick", ...],
		"trackNames": ["Kick", ...]
	}

Older documents are upgraded while loading: a single ``pattern`` grid becomes
bank 0, and grids or track arrays narrower than the session are padded with
defaults. A document that cannot be read leaves the sequencer untouched and
the load reports False.
"""

import json
import logging
import math
import os
import pathlib
import typing

import stepgrid.constants
import stepgrid.pattern
import stepgrid.transport

if typing.TYPE_CHECKING:
	from stepgrid.sequencer import Sequencer


logger = logging.getLogger(__name__)


Document = typing.Dict[str, typing.Any]


def snapshot (sequencer: "Sequencer") -> Document:

	"""Capture patterns, track controls and tempo as a JSON-ready dict."""

	store = sequencer.store

	return {
		"bpm": sequencer.bpm,
		"patterns": [store.get_pattern(index) for index in range(store.pattern_count)],
		"currentPattern": store.current_pattern,
		"trackVolumes": [control.volume for control in store.tracks],
		"trackMuted": [control.muted for control in store.tracks],
		"trackSolo": [control.solo for control in store.tracks],
		"trackInstruments": [control.instrument_id for control in store.tracks],
		"trackNames": [control.display_name for control in store.tracks],
	}


def _normalize_grid (grid: typing.Any, track_count: int, step_count: int) -> stepgrid.pattern.Grid:

	"""Fit a stored grid to the session, padding with empty tracks/steps and cutting overflow."""

	if not isinstance(grid, list):
		raise ValueError(f"Pattern must be a list of tracks, got {type(grid).__name__}")

	result: stepgrid.pattern.Grid = []

	for track in range(track_count):

		row = grid[track] if track < len(grid) else []

		if not isinstance(row, list):
			raise ValueError(f"Track {track} must be a list of steps, got {type(row).__name__}")

		result.append([bool(row[step]) if step < len(row) else False for step in range(step_count)])

	return result


def _pad (values: typing.Any, count: int, default: typing.Callable[[int], typing.Any], convert: typing.Callable[[typing.Any], typing.Any]) -> typing.List[typing.Any]:

	"""Convert a stored per-track array and right-pad it to ``count`` entries."""

	if not isinstance(values, list):
		raise ValueError(f"Track array must be a list, got {type(values).__name__}")

	return [convert(values[track]) if track < len(values) else default(track) for track in range(count)]


def _finite (value: typing.Any, field: str) -> float:

	"""Read a stored number, rejecting booleans, NaN and infinities."""

	if isinstance(value, bool):
		raise ValueError(f"'{field}' must be a number")

	number = float(value)

	if not math.isfinite(number):
		raise ValueError(f"'{field}' must be finite, got {value}")

	return number


def _clamp_volume (value: typing.Any) -> float:

	return max(0.0, min(1.0, _finite(value, "trackVolumes")))


def restore (sequencer: "Sequencer", document: typing.Any) -> bool:

	"""
	Apply a saved document to the sequencer.

	The whole document is validated before anything is written, so a failure
	leaves the in-memory state exactly as it was.

	Returns:
		True when the document was applied, False when it was unreadable.
	"""

	store = sequencer.store

	try:
		if not isinstance(document, dict):
			raise ValueError(f"Document must be an object, got {type(document).__name__}")

		bpm = stepgrid.transport.clamp_bpm(_finite(document.get("bpm") or stepgrid.constants.DEFAULT_BPM, "bpm"))

		patterns = [store.get_pattern(index) for index in range(store.pattern_count)]

		if document.get("patterns"):

			stored = document["patterns"]

			if not isinstance(stored, list):
				raise ValueError("'patterns' must be a list")

			patterns = [
				_normalize_grid(stored[index], store.track_count, store.step_count) if index < len(stored) else store.empty_grid()
				for index in range(store.pattern_count)
			]

		elif document.get("pattern"):
			patterns[0] = _normalize_grid(document["pattern"], store.track_count, store.step_count)

		current_pattern = int(_finite(document.get("currentPattern") or 0, "currentPattern"))

		if not 0 <= current_pattern < store.pattern_count:
			logger.warning(f"Stored pattern index {current_pattern} out of range, using 0")
			current_pattern = 0

		count = store.track_count

		volumes = _pad(document.get("trackVolumes") or [], count, lambda track: stepgrid.constants.DEFAULT_VOLUME, _clamp_volume)
		muted = _pad(document.get("trackMuted") or [], count, lambda track: False, bool)
		solo = _pad(document.get("trackSolo") or [], count, lambda track: False, bool)

		current_instruments = [control.instrument_id for control in store.tracks]
		current_names = [control.display_name for control in store.tracks]

		instruments = _pad(document.get("trackInstruments") or current_instruments, count, stepgrid.pattern.default_instrument, str)
		names = _pad(document.get("trackNames") or current_names, count, stepgrid.pattern.default_track_name, str)

	except (TypeError, ValueError, OverflowError) as e:
		logger.error(f"Failed to load pattern: {e}")
		return False

	sequencer.set_bpm(bpm)
	store.patterns = patterns
	store.current_pattern = current_pattern
	store.tracks = [
		stepgrid.pattern.TrackControl(
			instrument_id = instruments[track],
			display_name = names[track],
			volume = volumes[track],
			muted = muted[track],
			solo = solo[track]
		)
		for track in range(count)
	]

	return True


class DocumentStore:

	"""
	Named save slots, one JSON file per slot in a directory.
	"""

	def __init__ (self, directory: typing.Union[str, os.PathLike]) -> None:

		self.directory = pathlib.Path(directory).expanduser()


	def path_for (self, name: str) -> pathlib.Path:

		"""File that backs a named slot."""

		return self.directory / f"{stepgrid.constants.STORAGE_KEY_PREFIX}{name}.json"


	def save (self, sequencer: "Sequencer", name: str = "pattern") -> bool:

		"""Write the sequencer state to a slot. Returns False if the file could not be written."""

		return export_project(sequencer, self.path_for(name))


	def load (self, sequencer: "Sequencer", name: str = "pattern") -> bool:

		"""
		Restore the sequencer from a slot.

		Returns False (state untouched) when the slot is missing or unreadable, so
		the caller can fall back to a default pattern.
		"""

		path = self.path_for(name)

		if not path.exists():
			logger.info(f"No saved state in slot {name!r}")
			return False

		return import_project(sequencer, path)


	def delete (self, name: str) -> None:

		"""Remove a slot if it exists."""

		self.path_for(name).unlink(missing_ok=True)


def export_project (sequencer: "Sequencer", path: typing.Union[str, os.PathLike]) -> bool:

	"""Write the sequencer state to a JSON file."""

	target = pathlib.Path(path)

	try:
		target.parent.mkdir(parents=True, exist_ok=True)

		with open(target, "w") as f:
			json.dump(snapshot(sequencer), f, indent=2)

	except OSError as e:
		logger.error(f"Failed to save {target}: {e}")
		return False

	logger.info(f"Saved {target}")

	return True


def import_project (sequencer: "Sequencer", path: typing.Union[str, os.PathLike]) -> bool:

	"""Read a JSON file written by ``export_project`` (or an older release) into the sequencer."""

	source = pathlib.Path(path)

	try:
		with open(source, "r") as f:
			document = json.load(f)

	except (OSError, ValueError) as e:
		logger.error(f"Failed to read {source}: {e}")
		return False

	return restore(sequencer, document)
