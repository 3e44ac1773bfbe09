"""Audition only what a turn added to the score.

After each turn the session diffs the new snapshot against the previous one,
shifts the new events so the earliest starts at zero, and hands them to the
player as a throwaway score.  The session's own snapshot is never shifted, so
later diffs still line up with the cumulative timeline.
"""

import dataclasses
import logging
import typing

import scoreline.config
import scoreline.score


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class PlaybackScore:

	"""
	A one-off score built for playback and then discarded.
	"""

	events: typing.FrozenSet[scoreline.score.SoundingEvent] = frozenset()
	instruments: typing.Tuple[scoreline.score.Instrument, ...] = ()


@typing.runtime_checkable
class Player (typing.Protocol):

	"""
	Protocol for anything that can sound a score.
	"""

	def load_instruments (self, score: scoreline.score.ScoreSnapshot) -> None:

		"""Prepare every instrument the score references."""

		...

	def render (self, score: PlaybackScore, options: scoreline.config.PlaybackOptions) -> None:

		"""Play the score, returning immediately when rendering in the background."""

		...

	def close (self) -> None:

		...


def diff_events (old: scoreline.score.ScoreSnapshot, new: scoreline.score.ScoreSnapshot) -> typing.FrozenSet[scoreline.score.SoundingEvent]:

	"""
	Return the events in new that are not in old, compared by value.
	"""

	return frozenset(new.events - old.events)


def normalize_offsets (events: typing.AbstractSet[scoreline.score.SoundingEvent]) -> typing.FrozenSet[scoreline.score.SoundingEvent]:

	"""
	Shift events so the earliest starts at offset 0, keeping the gaps between them.

	An empty set is returned unchanged.
	"""

	if not events:
		return frozenset(events)

	earliest = min(event.offset for event in events)

	return frozenset(dataclasses.replace(event, offset=event.offset - earliest) for event in events)


def play_new_events (
	events: typing.AbstractSet[scoreline.score.SoundingEvent],
	instruments: typing.Iterable[scoreline.score.Instrument],
	player: Player,
	options: scoreline.config.PlaybackOptions
) -> PlaybackScore:

	"""
	Wrap events in a one-off score starting at zero and send it to the player.

	Only the instruments the events use are included.  Returns the score that
	was dispatched.
	"""

	used = {event.instrument for event in events}

	one_off_score = PlaybackScore(
		events = normalize_offsets(events),
		instruments = tuple(instrument for instrument in instruments if instrument.id in used)
	)

	if one_off_score.events:
		logger.debug(f"Playing {len(one_off_score.events)} new event(s)")
		player.render(one_off_score, options)

	return one_off_score
