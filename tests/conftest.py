import typing

import mido
import pytest

import stepgrid.sequencer


class FakePlayback:

	"""Playback collaborator with a hand-driven clock that records every trigger."""

	def __init__ (self, now: float = 0.0) -> None:

		"""Start the fake clock at ``now``."""

		self.now = now
		self.init_calls = 0
		self.resume_calls = 0
		self.triggers: typing.List[typing.Tuple[str, float, float]] = []


	def init (self) -> None:

		"""Count warm-up calls."""

		self.init_calls += 1


	def resume (self) -> None:

		"""Count resume calls."""

		self.resume_calls += 1


	def get_current_time (self) -> float:

		"""Return the hand-driven clock."""

		return self.now


	def play_instrument_by_name (self, instrument_id: str, time: float, volume: float) -> None:

		"""Record the trigger instead of making a sound."""

		self.triggers.append((instrument_id, time, volume))


class FakeMidiOut:

	"""MIDI output stub that keeps the messages it is sent."""

	def __init__ (self) -> None:

		"""Start with an empty message log."""

		self.messages: typing.List[mido.Message] = []
		self.closed = False


	def send (self, message: mido.Message) -> None:

		"""Record outgoing MIDI messages."""

		self.messages.append(message)


	def close (self) -> None:

		"""Mark the fake device closed."""

		self.closed = True


# Module-level reference so tests can inspect the most recently opened FakeMidiOut.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> typing.List[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	_current_fake_output = FakeMidiOut()
	return _current_fake_output


def current_fake_output () -> typing.Optional[FakeMidiOut]:

	"""The FakeMidiOut opened by the last ``mido.open_output`` call."""

	return _current_fake_output


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use a fake MIDI output."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def playback () -> FakePlayback:

	"""A fake playback collaborator whose clock starts at 10 seconds."""

	return FakePlayback(now=10.0)


@pytest.fixture
def sequencer (playback: FakePlayback) -> stepgrid.sequencer.Sequencer:

	"""A default 8x16x4 sequencer at 120 BPM wired to the fake playback."""

	return stepgrid.sequencer.Sequencer(playback, initial_bpm=120)
