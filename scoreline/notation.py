"""Text notation for building a score one line at a time.

The notation is a compact subset of Alda.  A part declaration names one or
more instruments, optionally gives the group a nickname, and is followed by
music data::

	piano: o4 c d e f | g2 g2
	violin/viola "upper": (volume 80) c4. d8 e4~8
	cello: V1: c1 V2: e2 g2 V0: c1/e/g

Music data elements:

- ``c`` ... ``b``: a note, with ``+`` (sharp), ``-`` (flat) or ``_`` (natural)
  accidentals, an optional note value (``4`` = quarter), dots, and ``~`` ties
  (``c4.~16``).
- ``r``: a rest, with an optional note value.
- ``c/e/g``: a chord; octave changes may appear between the members.
- ``o5``, ``>``, ``<``: set, raise or lower the octave.
- ``(tempo 90)``: an attribute; a ``!`` suffix (``(tempo! 90)``) makes it global.
- ``V1:`` ... ``V0:``: start a voice / close all voices.
- ``|``: a barline (purely visual).
- ``# ...``: a comment to the end of the line.

The same text can be parsed starting from three different entry points, so a
line typed into the console can be a bare continuation of the open part, a
whole new part, or a score of several parts.  :func:`parse` never raises for
bad input; it returns a :class:`ParseFailure` instead.
"""

import dataclasses
import enum
import re
import typing


class EntryPoint (enum.Enum):

	"""
	Grammar production a parse may start from, most local first.
	"""

	MUSIC_DATA = "music-data"
	PART = "part"
	SCORE = "score"


# ─── Forms ───────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class NoteLength:

	"""
	One note value with dots; ``NoteLength(4, 1)`` is a dotted quarter.
	"""

	value: int
	dots: int = 0

	def beats (self) -> float:

		"""Length in beats, counting a quarter note as one beat."""

		base = 4.0 / self.value

		return base * (2.0 - 0.5 ** self.dots)


@dataclasses.dataclass(frozen=True)
class Duration:

	"""
	One or more note lengths tied together.
	"""

	lengths: typing.Tuple[NoteLength, ...]

	def beats (self) -> float:

		return sum(length.beats() for length in self.lengths)


@dataclasses.dataclass(frozen=True)
class Note:

	letter: str
	accidentals: str = ""
	duration: typing.Optional[Duration] = None


@dataclasses.dataclass(frozen=True)
class Rest:

	duration: typing.Optional[Duration] = None


@dataclasses.dataclass(frozen=True)
class OctaveSet:

	octave: int


@dataclasses.dataclass(frozen=True)
class OctaveShift:

	delta: int


@dataclasses.dataclass(frozen=True)
class Chord:

	"""
	Notes sounding together, possibly with octave changes between them.
	"""

	members: typing.Tuple[typing.Union[Note, OctaveSet, OctaveShift], ...]


@dataclasses.dataclass(frozen=True)
class Attribute:

	name: str
	value: float
	is_global: bool = False


@dataclasses.dataclass(frozen=True)
class Barline:
	pass


@dataclasses.dataclass(frozen=True)
class VoiceMarker:

	"""
	``V1:`` and up switch voices; ``V0:`` closes every open voice.
	"""

	number: int


Event = typing.Union[Note, Rest, Chord, OctaveSet, OctaveShift, Attribute, Barline, VoiceMarker]


@dataclasses.dataclass(frozen=True)
class PartDeclaration:

	names: typing.Tuple[str, ...]
	nickname: typing.Optional[str] = None
	events: typing.Tuple[Event, ...] = ()


@dataclasses.dataclass(frozen=True)
class MusicBlock:

	"""
	Bare music data evaluated as a single unit against the open part.
	"""

	events: typing.Tuple[Event, ...]


Form = typing.Union[Event, PartDeclaration, MusicBlock]


# ─── Results ─────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class Parsed:

	entry_point: EntryPoint
	forms: typing.Tuple[Form, ...]


@dataclasses.dataclass(frozen=True)
class ParseFailure:

	entry_point: EntryPoint
	message: str
	position: int = 0


ParseResult = typing.Union[Parsed, ParseFailure]


# ─── Tokenizer ───────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class Token:

	kind: str
	text: str
	position: int
	groups: typing.Tuple[typing.Optional[str], ...] = ()


_DURATION = r"\d+\.*(?:~\d+\.*)*"

# Order matters: the first alternative that matches wins, so instrument names
# are tried before the single-letter note, rest and octave tokens.
_TOKEN_SPEC: typing.List[typing.Tuple[str, str]] = [
	("COMMENT", r"#[^\n]*"),
	("WHITESPACE", r"\s+"),
	("NICKNAME", r'"([^"\n]*)"'),
	("ATTRIBUTE", r"\(\s*([a-zA-Z][a-zA-Z\-]*)(!?)\s+(-?\d+(?:\.\d+)?)\s*\)"),
	("VOICE", r"[Vv](\d+):"),
	("NAME", r"[a-zA-Z]{2}[a-zA-Z0-9_\-]*"),
	("OCTAVE_SET", r"o(-?\d+)"),
	("NOTE", rf"([a-g])([+\-_]*)({_DURATION})?"),
	("REST", rf"r({_DURATION})?"),
	("OCTAVE_UP", r">"),
	("OCTAVE_DOWN", r"<"),
	("BARLINE", r"\|"),
	("SLASH", r"/"),
	("COLON", r":"),
]

_TOKEN_RE = re.compile("|".join(f"(?P<{kind}>{pattern})" for kind, pattern in _TOKEN_SPEC))

_GROUP_COUNTS: typing.Dict[str, int] = {kind: re.compile(pattern).groups for kind, pattern in _TOKEN_SPEC}

_SKIPPED = ("COMMENT", "WHITESPACE")


class _ParseError (Exception):

	def __init__ (self, message: str, position: int) -> None:

		super().__init__(message)
		self.message = message
		self.position = position


def _tokenize (text: str) -> typing.List[Token]:

	"""
	Split text into tokens, dropping whitespace and comments.
	"""

	tokens: typing.List[Token] = []
	position = 0

	while position < len(text):

		match = _TOKEN_RE.match(text, position)

		if match is None:
			raise _ParseError(f"unexpected {text[position]!r} at column {position + 1}", position)

		kind = typing.cast(str, match.lastgroup)

		if kind not in _SKIPPED:
			# Inner groups of the matched alternative, in order.
			start = match.re.groupindex[kind]
			groups = tuple(match.group(i) for i in range(start + 1, start + 1 + _GROUP_COUNTS[kind]))
			tokens.append(Token(kind, match.group(), position, groups))

		position = match.end()

	return tokens


def is_blank (text: str) -> bool:

	"""
	Return True if text holds nothing but whitespace and comments.
	"""

	try:
		return not _tokenize(text)
	except _ParseError:
		return False


def _parse_duration (text: typing.Optional[str], position: int) -> typing.Optional[Duration]:

	if not text:
		return None

	lengths: typing.List[NoteLength] = []

	for component in text.split("~"):

		digits = component.rstrip(".")
		value = int(digits)

		if value <= 0:
			raise _ParseError(f"invalid note value {digits!r} at column {position + 1}", position)

		lengths.append(NoteLength(value, len(component) - len(digits)))

	return Duration(tuple(lengths))


# ─── Parser ──────────────────────────────────────────────────────────


class _Parser:

	"""
	Recursive-descent parser over a token list.
	"""

	def __init__ (self, tokens: typing.List[Token], text: str) -> None:

		self._tokens = tokens
		self._text = text
		self._index = 0

	def _peek (self) -> typing.Optional[Token]:

		if self._index < len(self._tokens):
			return self._tokens[self._index]

		return None

	def _next (self) -> Token:

		token = self._peek()

		if token is None:
			raise _ParseError("unexpected end of input", len(self._text))

		self._index += 1

		return token

	def _unexpected (self, token: typing.Optional[Token]) -> _ParseError:

		if token is None:
			return _ParseError("unexpected end of input", len(self._text))

		return _ParseError(f"unexpected {token.text!r} at column {token.position + 1}", token.position)

	def expect_end (self) -> None:

		token = self._peek()

		if token is not None:
			raise self._unexpected(token)

	# music-data := event+

	def music_data (self) -> typing.Tuple[Event, ...]:

		events: typing.List[Event] = []

		while True:
			event = self.event()

			if event is None:
				break

			events.append(event)

		return tuple(events)

	def event (self) -> typing.Optional[Event]:

		"""
		Parse one music data element, or return None if the next token starts something else.
		"""

		token = self._peek()

		if token is None:
			return None

		if token.kind == "NOTE":
			self._index += 1
			note = self._note(token)

			following = self._peek()

			if following is not None and following.kind == "SLASH":
				return self._chord(note)

			return note

		if token.kind == "REST":
			self._index += 1
			return Rest(_parse_duration(token.groups[0], token.position))

		if token.kind in ("OCTAVE_SET", "OCTAVE_UP", "OCTAVE_DOWN"):
			self._index += 1
			return self._octave(token)

		if token.kind == "ATTRIBUTE":
			self._index += 1
			name, bang, value = token.groups
			return Attribute(typing.cast(str, name), float(typing.cast(str, value)), is_global = bool(bang))

		if token.kind == "BARLINE":
			self._index += 1
			return Barline()

		if token.kind == "VOICE":
			self._index += 1
			return VoiceMarker(int(typing.cast(str, token.groups[0])))

		return None

	def _note (self, token: Token) -> Note:

		letter, accidentals, duration = token.groups

		return Note(
			letter = typing.cast(str, letter),
			accidentals = accidentals or "",
			duration = _parse_duration(duration, token.position)
		)

	def _octave (self, token: Token) -> typing.Union[OctaveSet, OctaveShift]:

		if token.kind == "OCTAVE_SET":
			return OctaveSet(int(typing.cast(str, token.groups[0])))

		return OctaveShift(1 if token.kind == "OCTAVE_UP" else -1)

	def _chord (self, first: Note) -> Chord:

		members: typing.List[typing.Union[Note, OctaveSet, OctaveShift]] = [first]

		while True:
			token = self._peek()

			if token is None or token.kind != "SLASH":
				break

			self._index += 1

			# Octave changes may sit between chord members: c/>e/g
			token = self._next()

			while token.kind in ("OCTAVE_SET", "OCTAVE_UP", "OCTAVE_DOWN"):
				members.append(self._octave(token))
				token = self._next()

			if token.kind != "NOTE":
				raise self._unexpected(token)

			members.append(self._note(token))

		return Chord(tuple(members))

	# part := NAME ("/" NAME)* NICKNAME? ":" music-data?

	def part (self) -> PartDeclaration:

		token = self._next()

		if token.kind != "NAME":
			raise self._unexpected(token)

		names = [token.text]

		while True:
			token = self._next()

			if token.kind != "SLASH":
				break

			token = self._next()

			if token.kind != "NAME":
				raise self._unexpected(token)

			names.append(token.text)

		nickname: typing.Optional[str] = None

		if token.kind == "NICKNAME":
			nickname = token.groups[0]

			if not nickname:
				raise _ParseError(f"empty nickname at column {token.position + 1}", token.position)

			token = self._next()

		if token.kind != "COLON":
			raise self._unexpected(token)

		return PartDeclaration(tuple(names), nickname, self.music_data())

	# score := ATTRIBUTE* part*   (non-empty; leading attributes are global)

	def score (self) -> typing.Tuple[Form, ...]:

		forms: typing.List[Form] = []

		while True:
			token = self._peek()

			if token is None or token.kind != "ATTRIBUTE":
				break

			attribute = typing.cast(Attribute, self.event())
			forms.append(dataclasses.replace(attribute, is_global=True))

		while self._peek() is not None:
			forms.append(self.part())

		return tuple(forms)


def parse (text: str, entry_point: EntryPoint) -> ParseResult:

	"""
	Parse text starting from the given entry point.

	The whole text must be consumed for the parse to succeed.

	Parameters:
		text: The notation to parse.
		entry_point: Which production to start from.

	Returns:
		``Parsed`` with the forms on success, ``ParseFailure`` otherwise.

	Example:
		```python
		parse("piano: c d e", EntryPoint.PART)        # Parsed
		parse("piano: c d e", EntryPoint.MUSIC_DATA)  # ParseFailure
		```
	"""

	try:
		tokens = _tokenize(text)

		if not tokens:
			return ParseFailure(entry_point, "empty input", 0)

		parser = _Parser(tokens, text)

		if entry_point is EntryPoint.MUSIC_DATA:
			forms: typing.Tuple[Form, ...] = parser.music_data()

		elif entry_point is EntryPoint.PART:
			forms = (parser.part(),)

		else:
			forms = parser.score()

		parser.expect_end()

	except _ParseError as exc:
		return ParseFailure(entry_point, exc.message, exc.position)

	return Parsed(entry_point, forms)
