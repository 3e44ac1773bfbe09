"""Choose the level at which a line of input is parsed.

A line typed into a session can be bare music data continuing the open part,
a new part declaration, or a whole score.  Some lines are valid at more than
one level, so the entry points are tried most local first and the first one
that parses wins.
"""

import logging
import typing

import scoreline.notation


logger = logging.getLogger(__name__)

#: Entry points in the order they are tried.
PRIORITY: typing.Tuple[scoreline.notation.EntryPoint, ...] = (
	scoreline.notation.EntryPoint.MUSIC_DATA,
	scoreline.notation.EntryPoint.PART,
	scoreline.notation.EntryPoint.SCORE,
)

ParseFunction = typing.Callable[[str, scoreline.notation.EntryPoint], scoreline.notation.ParseResult]


def resolve_and_parse (
	text: str,
	parse: ParseFunction = scoreline.notation.parse,
	priority: typing.Sequence[scoreline.notation.EntryPoint] = PRIORITY
) -> typing.Tuple[typing.Optional[scoreline.notation.Parsed], typing.List[scoreline.notation.ParseFailure]]:

	"""
	Parse text under each entry point in priority order, stopping at the first success.

	Parameters:
		text: One line of notation.
		parse: The grammar's parse function (``scoreline.notation.parse`` by default).
		priority: Entry points to try, in order.

	Returns:
		A tuple of the successful ``Parsed`` result (or None if every entry
		point failed) and the failures collected before it.
	"""

	failures: typing.List[scoreline.notation.ParseFailure] = []

	for entry_point in priority:

		result = parse(text, entry_point)

		if isinstance(result, scoreline.notation.Parsed):
			logger.debug(f"Parsed as {entry_point.value}")
			return result, failures

		failures.append(result)

	logger.debug(f"No entry point parsed {text!r}")

	return None, failures
