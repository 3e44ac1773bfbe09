"""A score built up one line at a time.

Each line typed into a session is a *turn*:

1. **Resolve** - parse the line as music data, a part, or a score, whichever
   matches first, and remember that level as the session context.
2. **Evaluate** - apply the parsed forms to a copy of the score builder and
   commit the copy only if every form succeeds.
3. **Diff** - compare the new snapshot with the previous one by value.
4. **Normalize and dispatch** - play just the new events, starting now.

A failed parse changes nothing.  A failed evaluation leaves the score exactly
as it was, but the context still moves to the level the line parsed at.

Example:

	```python
	session = scoreline.session.Session(player=scoreline.midi_player.SilentPlayer())
	session.run_turn("piano: c d e")   # three new events at 0, 500, 1000 ms
	session.run_turn("f g")            # two more, played from 0 ms
	```
"""

import dataclasses
import logging
import re
import typing

import scoreline.config
import scoreline.context
import scoreline.errors
import scoreline.midi_player
import scoreline.notation
import scoreline.playback
import scoreline.score


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class TurnResult:

	"""
	What a successful turn did.
	"""

	entry_point: scoreline.notation.EntryPoint
	new_events: typing.FrozenSet[scoreline.score.SoundingEvent]
	snapshot: scoreline.score.ScoreSnapshot
	played: typing.Optional[scoreline.playback.PlaybackScore] = None


class Session:

	"""
	Holds everything that persists between turns: the context, the score
	builder, the last committed snapshot and the text of every accepted line.
	"""

	def __init__ (
		self,
		player: typing.Optional[scoreline.playback.Player] = None,
		options: typing.Optional[scoreline.config.PlaybackOptions] = None,
		parse: scoreline.context.ParseFunction = scoreline.notation.parse
	) -> None:

		"""
		Create an empty session.

		Parameters:
			player: Where new events are sent. Defaults to the player for
				``options.engine``.
			options: Playback options passed to the player on every turn.
			parse: The grammar's parse function.
		"""

		self.options = options if options is not None else scoreline.config.PlaybackOptions()
		self.player = player if player is not None else scoreline.midi_player.create_player(self.options)
		self._parse = parse

		self.context = scoreline.notation.EntryPoint.PART
		self.builder = scoreline.score.ScoreBuilder()
		self.snapshot = self.builder.snapshot()
		self.lines: typing.List[str] = []

	@property
	def score_text (self) -> str:

		"""Every accepted line, in order."""

		return "\n".join(self.lines)

	def run_turn (self, line: str, play: bool = True) -> typing.Optional[TurnResult]:

		"""
		Parse, evaluate and audition one line of input.

		Blank and comment-only lines are ignored and return None.

		Raises:
			NotationSyntaxError: The line does not parse at any level. Nothing
				changes.
			EvaluationError: The line parsed but could not be evaluated. The
				context is updated; the score is not.
		"""

		if scoreline.notation.is_blank(line):
			return None

		logger.debug("Parsing code...")

		parsed, failures = scoreline.context.resolve_and_parse(line, self._parse)

		if parsed is None:
			raise scoreline.errors.NotationSyntaxError(line, failures)

		logger.debug("Done parsing code.")

		# The context follows the parse, whatever happens during evaluation.
		self.context = parsed.entry_point

		forms = parsed.forms

		if parsed.entry_point is scoreline.notation.EntryPoint.MUSIC_DATA:
			forms = (scoreline.notation.MusicBlock(typing.cast(typing.Tuple[scoreline.notation.Event, ...], forms)),)

		old_snapshot = self.snapshot
		new_snapshot = self._commit(forms)
		self.lines.append(line)

		new_events = scoreline.playback.diff_events(old_snapshot, new_snapshot)

		logger.debug(f"{len(new_events)} new event(s)")

		played: typing.Optional[scoreline.playback.PlaybackScore] = None

		if play:
			played = self._dispatch(new_events, new_snapshot)

		return TurnResult(
			entry_point = parsed.entry_point,
			new_events = new_events,
			snapshot = new_snapshot,
			played = played
		)

	def load (self, text: str) -> scoreline.score.ScoreSnapshot:

		"""
		Replace the session with a whole score, without playing it.

		The text is parsed as a score, so it may span several lines and parts.
		On failure the current session is left untouched.
		"""

		result = self._parse(text, scoreline.notation.EntryPoint.SCORE)

		if isinstance(result, scoreline.notation.ParseFailure):
			raise scoreline.errors.NotationSyntaxError(text, [result])

		builder = scoreline.score.ScoreBuilder()
		builder.evaluate(result.forms)

		self.builder = builder
		self.snapshot = builder.snapshot()
		self.context = scoreline.notation.EntryPoint.SCORE
		self.lines = [line for line in text.splitlines() if line.strip()]

		logger.info(f"Loaded score with {len(self.snapshot.events)} event(s), {self.snapshot.end_offset() / 1000.0:.2f}s long")

		return self.snapshot

	def reset (self) -> None:

		"""
		Start a new, empty score.
		"""

		self.context = scoreline.notation.EntryPoint.PART
		self.builder = scoreline.score.ScoreBuilder()
		self.snapshot = self.builder.snapshot()
		self.lines = []

	def replay (self) -> scoreline.playback.PlaybackScore:

		"""
		Play the whole score from the beginning.
		"""

		return self._dispatch(self.snapshot.events, self.snapshot)

	def prompt (self) -> str:

		"""
		Return a prompt naming the current instruments, e.g. ``p/vc> ``.

		Instruments with a nickname of their own are abbreviated by the
		nickname's initials, others by the initials of their stock name.
		"""

		abbreviations: typing.List[str] = []

		for instrument_id in self.builder.current_instruments:

			instrument = self.builder.instruments[instrument_id].instrument
			nickname = next((name for name, ids in self.builder.nicknames.items() if ids == (instrument_id,)), None)
			source = nickname if nickname is not None else instrument.stock

			abbreviations.append("".join(re.findall(r"(?:^|[\W_])(\w)", source)))

		return "/".join(abbreviations) + "> "

	def close (self) -> None:

		self.player.close()

	def _commit (self, forms: typing.Sequence[scoreline.notation.Form]) -> scoreline.score.ScoreSnapshot:

		"""
		Evaluate forms into a scratch builder and keep it only if evaluation succeeds.
		"""

		scratch = self.builder.copy()
		scratch.evaluate(forms)

		self.builder = scratch
		self.snapshot = scratch.snapshot()

		return self.snapshot

	def _dispatch (self, events: typing.AbstractSet[scoreline.score.SoundingEvent], snapshot: scoreline.score.ScoreSnapshot) -> scoreline.playback.PlaybackScore:

		if self.options.load_instruments:
			self.player.load_instruments(snapshot)

		return scoreline.playback.play_new_events(events, snapshot.instruments, self.player, self.options)
