import pytest

import stepgrid.transport


def test_step_duration () -> None:

	"""A step is a sixteenth note."""

	assert stepgrid.transport.step_duration(120) == 0.125
	assert stepgrid.transport.step_duration(60) == 0.25


@pytest.mark.parametrize("bpm, expected", [(30, 60), (60, 60), (128, 128), (200, 200), (500, 200), (127.6, 128)])
def test_clamp_bpm (bpm: float, expected: int) -> None:

	"""Tempo is clamped to 60-200 and rounded to whole BPM."""

	assert stepgrid.transport.clamp_bpm(bpm) == expected


def test_initial_state () -> None:

	"""A new transport is stopped at step 0."""

	transport = stepgrid.transport.Transport()

	assert transport.mode == stepgrid.transport.STOPPED
	assert transport.current_step == 0
	assert transport.bpm == 120


def test_constructor_clamps_bpm () -> None:

	"""The initial tempo is clamped like set_bpm."""

	assert stepgrid.transport.Transport(bpm=10).bpm == 60


def test_set_bpm_returns_clamped_value () -> None:

	"""set_bpm reports the tempo actually applied."""

	transport = stepgrid.transport.Transport()

	assert transport.set_bpm(250) == 200
	assert transport.step_duration() == pytest.approx(0.075)


def test_transitions () -> None:

	"""play/pause/stop follow the state machine."""

	transport = stepgrid.transport.Transport()

	assert transport.play() is True
	assert transport.mode == stepgrid.transport.PLAYING
	assert transport.play() is False

	assert transport.pause() is True
	assert transport.mode == stepgrid.transport.PAUSED
	assert transport.pause() is False

	assert transport.play() is True
	assert transport.stop() is True
	assert transport.mode == stepgrid.transport.STOPPED
	assert transport.stop() is False


def test_pause_from_stopped_is_noop () -> None:

	"""Pausing a stopped transport changes nothing."""

	transport = stepgrid.transport.Transport()

	assert transport.pause() is False
	assert transport.mode == stepgrid.transport.STOPPED


def test_stop_from_paused_rewinds () -> None:

	"""Stopping a paused transport returns to step 0."""

	transport = stepgrid.transport.Transport()
	transport.play()

	for _ in range(5):
		transport.advance(16)

	transport.pause()
	assert transport.current_step == 5

	transport.stop()
	assert transport.current_step == 0


def test_advance_wraps_and_moves_cursor () -> None:

	"""Advancing moves one step and one step duration, wrapping at the step count."""

	transport = stepgrid.transport.Transport(bpm=120)
	transport.set_cursor(2.0)

	for _ in range(4):
		transport.advance(4)

	assert transport.current_step == 0
	assert transport.next_event_time == pytest.approx(2.5)
