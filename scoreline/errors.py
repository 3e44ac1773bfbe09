"""Exception hierarchy shared across scoreline.

Everything a turn can reject derives from ``ScorelineError`` so the console
can report it as a one-line message and carry on.  Anything else (a MIDI
backend failure, a bug) propagates as-is and is shown with a traceback.
"""

import typing

if typing.TYPE_CHECKING:
	import scoreline.notation


class ScorelineError (Exception):
	pass


class NotationSyntaxError (ScorelineError):

	"""
	Raised when a line does not parse under any entry point.

	``failures`` holds the failure from each entry point that was tried, in
	the order they were tried.
	"""

	def __init__ (self, text: str, failures: typing.Sequence["scoreline.notation.ParseFailure"]) -> None:

		self.text = text
		self.failures = tuple(failures)

		# Report the entry point that got furthest before failing.
		furthest = max(failures, key=lambda failure: failure.position) if failures else None
		detail = furthest.message if furthest else "empty input"

		super().__init__(f"Invalid syntax: {detail}")


class EvaluationError (ScorelineError):
	pass


class UnknownInstrumentError (EvaluationError):
	pass


class NoInstrumentError (EvaluationError):
	pass


class UnknownAttributeError (EvaluationError):
	pass


class AttributeValueError (EvaluationError):
	pass


class NicknameError (EvaluationError):
	pass


class PitchRangeError (EvaluationError):
	pass


class PlayerError (ScorelineError):
	pass
