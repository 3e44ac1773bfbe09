import typing

import scoreline.context
import scoreline.notation

from scoreline.notation import EntryPoint


def _fake_parser (accepts: typing.Set[EntryPoint], calls: typing.List[EntryPoint]) -> scoreline.context.ParseFunction:

	"""Return a parse function that succeeds only for the given entry points."""

	def parse (text: str, entry_point: EntryPoint) -> scoreline.notation.ParseResult:

		calls.append(entry_point)

		if entry_point in accepts:
			return scoreline.notation.Parsed(entry_point, (scoreline.notation.Note("c"),))

		return scoreline.notation.ParseFailure(entry_point, "no", 0)

	return parse


def test_priority_order () -> None:

	"""Music data is tried first, then part, then score."""

	assert scoreline.context.PRIORITY == (EntryPoint.MUSIC_DATA, EntryPoint.PART, EntryPoint.SCORE)


def test_music_data_wins_over_part () -> None:

	"""When both music data and part accept the input, music data is chosen."""

	calls: typing.List[EntryPoint] = []
	parsed, failures = scoreline.context.resolve_and_parse("x", _fake_parser({EntryPoint.MUSIC_DATA, EntryPoint.PART}, calls))

	assert parsed is not None
	assert parsed.entry_point is EntryPoint.MUSIC_DATA
	assert failures == []
	assert calls == [EntryPoint.MUSIC_DATA]


def test_falls_back_in_order () -> None:

	"""Entry points that fail are skipped; the first success stops the search."""

	calls: typing.List[EntryPoint] = []
	parsed, failures = scoreline.context.resolve_and_parse("x", _fake_parser({EntryPoint.PART, EntryPoint.SCORE}, calls))

	assert parsed is not None
	assert parsed.entry_point is EntryPoint.PART
	assert [failure.entry_point for failure in failures] == [EntryPoint.MUSIC_DATA]
	assert calls == [EntryPoint.MUSIC_DATA, EntryPoint.PART]


def test_all_fail () -> None:

	calls: typing.List[EntryPoint] = []
	parsed, failures = scoreline.context.resolve_and_parse("x", _fake_parser(set(), calls))

	assert parsed is None
	assert [failure.entry_point for failure in failures] == list(scoreline.context.PRIORITY)


def test_real_grammar_part_line () -> None:

	"""A part declaration is not music data, so it resolves to the part level."""

	parsed, _ = scoreline.context.resolve_and_parse("piano: c d e")

	assert parsed is not None
	assert parsed.entry_point is EntryPoint.PART


def test_real_grammar_bare_notes () -> None:

	parsed, _ = scoreline.context.resolve_and_parse("f g")

	assert parsed is not None
	assert parsed.entry_point is EntryPoint.MUSIC_DATA


def test_real_grammar_several_parts () -> None:

	parsed, _ = scoreline.context.resolve_and_parse("piano: c violin: e")

	assert parsed is not None
	assert parsed.entry_point is EntryPoint.SCORE


def test_real_grammar_ambiguous_attribute () -> None:

	"""A lone global attribute is valid music data and a valid score; music data wins."""

	assert isinstance(scoreline.notation.parse("(tempo! 90)", EntryPoint.SCORE), scoreline.notation.Parsed)

	parsed, _ = scoreline.context.resolve_and_parse("(tempo! 90)")

	assert parsed is not None
	assert parsed.entry_point is EntryPoint.MUSIC_DATA
