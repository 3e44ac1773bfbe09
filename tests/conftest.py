import typing

import mido
import pytest

import scoreline.config
import scoreline.playback
import scoreline.score


class FakeMidiOut:

	"""MIDI output stub that remembers what was sent."""

	def __init__ (self) -> None:

		self.sent: typing.List[mido.Message] = []
		self.closed = False
		self.panicked = False

	def send (self, message: mido.Message) -> None:

		"""Record an outgoing MIDI message."""

		self.sent.append(message)

	def close (self) -> None:

		self.closed = True

	def panic (self) -> None:

		self.panicked = True

	def reset (self) -> None:

		"""No-op reset for the fake device."""

		return None


# Module-level reference so tests can inspect the most recently opened FakeMidiOut.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> list[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	fake = FakeMidiOut()
	_current_fake_output = fake
	return fake


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use a fake MIDI output for all tests that need it."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


class RecordingPlayer:

	"""Player stub that keeps every score it is asked to render."""

	def __init__ (self) -> None:

		self.rendered: typing.List[scoreline.playback.PlaybackScore] = []
		self.loaded: typing.List[scoreline.score.ScoreSnapshot] = []
		self.closed = False

	def load_instruments (self, score: scoreline.score.ScoreSnapshot) -> None:

		self.loaded.append(score)

	def render (self, score: scoreline.playback.PlaybackScore, options: scoreline.config.PlaybackOptions) -> None:

		self.rendered.append(score)

	def close (self) -> None:

		self.closed = True


@pytest.fixture
def player () -> RecordingPlayer:

	"""A player that records instead of sounding."""

	return RecordingPlayer()


def offsets (events: typing.Iterable[scoreline.score.SoundingEvent]) -> typing.List[float]:

	"""Sorted offsets of a collection of events."""

	return sorted(event.offset for event in events)
