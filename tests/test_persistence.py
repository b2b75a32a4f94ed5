import json
import pathlib

import pytest

import stepgrid.persistence
import stepgrid.sequencer


@pytest.fixture
def documents (tmp_path: pathlib.Path) -> stepgrid.persistence.DocumentStore:

	"""Save slots in a temporary directory."""

	return stepgrid.persistence.DocumentStore(tmp_path)


def _state (sequencer: stepgrid.sequencer.Sequencer) -> dict:

	"""Everything persistence is responsible for, for before/after comparisons."""

	return stepgrid.persistence.snapshot(sequencer)


def test_snapshot_shape (sequencer: stepgrid.sequencer.Sequencer) -> None:

	"""The snapshot carries every persisted field."""

	document = stepgrid.persistence.snapshot(sequencer)

	assert set(document) == {
		"bpm", "patterns", "currentPattern", "trackVolumes", "trackMuted",
		"trackSolo", "trackInstruments", "trackNames"
	}
	assert len(document["patterns"]) == 4
	assert document["trackNames"][2] == "Hi-Hat"


def test_save_and_load_slot (sequencer: stepgrid.sequencer.Sequencer, playback, documents: stepgrid.persistence.DocumentStore) -> None:

	"""A saved slot restores the same state into a fresh sequencer."""

	sequencer.store.load_demo_pattern()
	sequencer.store.set_step(3, 9, True, pattern_index=2)
	sequencer.store.switch_pattern(2)
	sequencer.store.set_track_volume(1, 0.3)
	sequencer.store.toggle_mute(4)
	sequencer.store.toggle_solo(5)
	sequencer.store.set_track_instrument(6, "cowbell", "Cowbell")
	sequencer.set_bpm(98)

	assert documents.save(sequencer, "autosave")
	assert documents.path_for("autosave").name == "sequencer_autosave.json"

	restored = stepgrid.sequencer.Sequencer(playback)

	assert documents.load(restored, "autosave")
	assert _state(restored) == _state(sequencer)


def test_load_missing_slot (sequencer: stepgrid.sequencer.Sequencer, documents: stepgrid.persistence.DocumentStore) -> None:

	"""A missing slot reports False."""

	assert documents.load(sequencer, "nothing-here") is False


def test_delete_slot (sequencer: stepgrid.sequencer.Sequencer, documents: stepgrid.persistence.DocumentStore) -> None:

	"""Deleting a slot removes its file, and deleting twice is harmless."""

	documents.save(sequencer, "tmp")
	documents.delete("tmp")
	documents.delete("tmp")

	assert not documents.path_for("tmp").exists()


def test_corrupt_file_leaves_state_untouched (sequencer: stepgrid.sequencer.Sequencer, documents: stepgrid.persistence.DocumentStore) -> None:

	"""Unparseable JSON reports False and changes nothing."""

	sequencer.store.load_demo_pattern()
	before = _state(sequencer)

	documents.path_for("broken").write_text("{ not json")

	assert documents.load(sequencer, "broken") is False
	assert _state(sequencer) == before


@pytest.mark.parametrize("document", [
	[1, 2, 3],
	"pattern",
	{"patterns": "abc"},
	{"patterns": [[1, 2, 3]]},
	{"bpm": "fast"},
	{"trackVolumes": ["loud"]},
	{"trackVolumes": [True]},
	{"trackMuted": 5},
	{"currentPattern": "two"},
])
def test_invalid_documents_are_rejected (sequencer: stepgrid.sequencer.Sequencer, document: object) -> None:

	"""Malformed documents are rejected as a whole, before anything is applied."""

	sequencer.store.load_demo_pattern()
	before = _state(sequencer)

	assert stepgrid.persistence.restore(sequencer, document) is False
	assert _state(sequencer) == before


@pytest.mark.parametrize("document", [
	{"bpm": 10 ** 400},
	{"bpm": float("nan")},
	{"currentPattern": float("inf")},
	{"currentPattern": 10 ** 400},
	{"trackVolumes": [float("nan")]},
])
def test_non_finite_numbers_are_rejected (sequencer: stepgrid.sequencer.Sequencer, document: dict) -> None:

	"""Infinite, NaN and out-of-float-range numbers are rejected instead of raising."""

	sequencer.store.load_demo_pattern()
	before = _state(sequencer)

	assert stepgrid.persistence.restore(sequencer, document) is False
	assert _state(sequencer) == before


def test_import_file_with_infinity (sequencer: stepgrid.sequencer.Sequencer, tmp_path: pathlib.Path) -> None:

	"""JSON's non-standard Infinity literal in a project file fails the import cleanly."""

	path = tmp_path / "infinite.json"
	path.write_text('{"bpm": 120, "currentPattern": Infinity}')

	before = _state(sequencer)

	assert stepgrid.persistence.import_project(sequencer, path) is False
	assert _state(sequencer) == before


def test_partial_failure_is_atomic (sequencer: stepgrid.sequencer.Sequencer) -> None:

	"""A bad field late in the document does not leave earlier fields applied."""

	before = _state(sequencer)

	document = {
		"bpm": 180,
		"patterns": [[[True] * 16] * 8],
		"trackNames": ["A"] * 8,
		"trackVolumes": [0.5, None],
	}

	assert stepgrid.persistence.restore(sequencer, document) is False
	assert _state(sequencer) == before


def test_short_track_arrays_are_padded (sequencer: stepgrid.sequencer.Sequencer) -> None:

	"""Four tracks of control data fill the first four tracks and default the rest."""

	document = {
		"bpm": 110,
		"patterns": [[[False] * 16 for _ in range(4)]],
		"trackVolumes": [0.1, 0.2, 0.3, 0.4],
		"trackMuted": [True, False, True, False],
		"trackSolo": [False, True, False, False],
	}

	assert stepgrid.persistence.restore(sequencer, document) is True

	volumes = [control.volume for control in sequencer.store.tracks]
	muted = [control.muted for control in sequencer.store.tracks]
	solo = [control.solo for control in sequencer.store.tracks]

	assert volumes == [0.1, 0.2, 0.3, 0.4, 0.7, 0.7, 0.7, 0.7]
	assert muted == [True, False, True, False, False, False, False, False]
	assert solo == [False, True, False, False, False, False, False, False]
	assert sequencer.bpm == 110


def test_narrow_grids_are_padded (sequencer: stepgrid.sequencer.Sequencer) -> None:

	"""Four-track, short-step grids grow to the session's dimensions; missing banks are empty."""

	grid = [[True] * 8 for _ in range(4)]

	assert stepgrid.persistence.restore(sequencer, {"patterns": [grid, grid]})

	store = sequencer.store

	assert len(store.patterns) == 4
	for pattern in store.patterns:
		assert len(pattern) == 8
		assert all(len(row) == 16 for row in pattern)

	assert store.is_step_active(3, 7, pattern_index=1)
	assert not store.is_step_active(3, 8, pattern_index=1)
	assert not store.is_step_active(4, 0, pattern_index=0)
	assert not any(any(row) for row in store.get_pattern(2))


def test_oversize_grids_are_cut (sequencer: stepgrid.sequencer.Sequencer) -> None:

	"""Extra banks, tracks and steps are dropped."""

	grid = [[True] * 32 for _ in range(12)]

	assert stepgrid.persistence.restore(sequencer, {"patterns": [grid] * 6})

	assert len(sequencer.store.patterns) == 4
	assert len(sequencer.store.current) == 8
	assert len(sequencer.store.current[0]) == 16


def test_legacy_single_pattern (sequencer: stepgrid.sequencer.Sequencer) -> None:

	"""A legacy ``pattern`` field becomes bank 0 and other banks are kept."""

	sequencer.store.set_step(0, 0, True, pattern_index=3)

	legacy = [[False] * 16 for _ in range(4)]
	legacy[1][4] = True

	assert stepgrid.persistence.restore(sequencer, {"bpm": 100, "pattern": legacy})

	assert sequencer.store.is_step_active(1, 4, pattern_index=0)
	assert len(sequencer.store.patterns[0]) == 8
	assert sequencer.store.is_step_active(0, 0, pattern_index=3)


def test_missing_fields_use_defaults (sequencer: stepgrid.sequencer.Sequencer) -> None:

	"""An empty document resets tempo and track mix, and keeps bindings and grids."""

	sequencer.store.set_track_instrument(0, "rim", "Rim")
	sequencer.store.set_track_volume(0, 0.1)
	sequencer.store.set_step(2, 2, True)
	sequencer.set_bpm(150)

	assert stepgrid.persistence.restore(sequencer, {})

	assert sequencer.bpm == 120
	assert sequencer.store.tracks[0].volume == 0.7
	assert sequencer.store.tracks[0].instrument_id == "rim"
	assert sequencer.store.tracks[0].display_name == "Rim"
	assert sequencer.store.is_step_active(2, 2)


def test_out_of_range_values_are_clamped (sequencer: stepgrid.sequencer.Sequencer) -> None:

	"""Tempo, volume and current pattern are brought into range."""

	document = {"bpm": 999, "currentPattern": 7, "trackVolumes": [2.0, -1]}

	assert stepgrid.persistence.restore(sequencer, document)

	assert sequencer.bpm == 200
	assert sequencer.store.current_pattern == 0
	assert sequencer.store.tracks[0].volume == 1.0
	assert sequencer.store.tracks[1].volume == 0.0


def test_short_instrument_arrays_get_defaults (sequencer: stepgrid.sequencer.Sequencer) -> None:

	"""Missing instrument bindings fall back to the default kit."""

	document = {"trackInstruments": ["cowbell", "rim"], "trackNames": ["Cowbell"]}

	assert stepgrid.persistence.restore(sequencer, document)

	assert [control.instrument_id for control in sequencer.store.tracks[:3]] == ["cowbell", "rim", "hihat"]
	assert [control.display_name for control in sequencer.store.tracks[:3]] == ["Cowbell", "Snare", "Hi-Hat"]


def test_export_and_import_project (sequencer: stepgrid.sequencer.Sequencer, playback, tmp_path: pathlib.Path) -> None:

	"""Projects round-trip through an arbitrary file path."""

	sequencer.store.fill_track(0, "kick-broken")
	path = tmp_path / "projects" / "set.json"

	assert stepgrid.persistence.export_project(sequencer, path)
	assert json.loads(path.read_text())["patterns"][0][0][6] is True

	other = stepgrid.sequencer.Sequencer(playback)

	assert stepgrid.persistence.import_project(other, path)
	assert other.store.get_pattern(0) == sequencer.store.get_pattern(0)


def test_import_missing_file (sequencer: stepgrid.sequencer.Sequencer, tmp_path: pathlib.Path) -> None:

	"""Importing a file that does not exist reports False."""

	assert stepgrid.persistence.import_project(sequencer, tmp_path / "missing.json") is False
