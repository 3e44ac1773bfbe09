import copy
import dataclasses
import logging
import typing

import scoreline.constants
import scoreline.constants.instruments
import scoreline.errors
import scoreline.notation


logger = logging.getLogger(__name__)

_SEMITONES: typing.Dict[str, int] = {"c": 0, "d": 2, "e": 4, "f": 5, "g": 7, "a": 9, "b": 11}

_ACCIDENTALS: typing.Dict[str, int] = {"+": 1, "-": -1, "_": 0}

_ATTRIBUTE_ALIASES: typing.Dict[str, str] = {
	"tempo": "tempo",
	"volume": "volume",
	"vol": "volume",
	"quantization": "quantization",
	"quantize": "quantization",
	"quant": "quantization",
	"octave": "octave",
}


@dataclasses.dataclass(frozen=True)
class SoundingEvent:

	"""
	A single note in the score.

	Events are values: two events are equal when every field matches, offset
	included, so the same pitch played later is a different event.
	"""

	offset: float		# ms from the start of the score
	instrument: str		# instrument instance id
	midi_note: int
	duration: float		# sounding ms, after quantization
	volume: float		# 0-100


@dataclasses.dataclass(frozen=True)
class Instrument:

	"""
	An instrument instance taking part in the score.
	"""

	id: str
	stock: str
	program: int
	percussion: bool = False
	nickname: typing.Optional[str] = None


@dataclasses.dataclass(frozen=True)
class ScoreSnapshot:

	"""
	Everything committed to the score so far.
	"""

	events: typing.FrozenSet[SoundingEvent] = frozenset()
	instruments: typing.Tuple[Instrument, ...] = ()

	def end_offset (self) -> float:

		"""Offset at which the last event stops sounding, or 0 for an empty score."""

		return max((event.offset + event.duration for event in self.events), default=0.0)


@dataclasses.dataclass
class Position:

	"""
	Where an instrument (or one of its voices) is writing, and with what defaults.
	"""

	offset: float = 0.0
	octave: int = scoreline.constants.DEFAULT_OCTAVE
	duration: scoreline.notation.Duration = scoreline.notation.Duration((scoreline.notation.NoteLength(scoreline.constants.DEFAULT_NOTE_VALUE),))


@dataclasses.dataclass
class InstrumentState:

	"""
	Mutable per-instance evaluation state.
	"""

	instrument: Instrument
	position: Position = dataclasses.field(default_factory=Position)
	tempo: float = scoreline.constants.DEFAULT_TEMPO
	volume: float = scoreline.constants.DEFAULT_VOLUME
	quantization: float = scoreline.constants.DEFAULT_QUANTIZATION
	voices: typing.Dict[int, Position] = dataclasses.field(default_factory=dict)
	current_voice: typing.Optional[int] = None

	def active_position (self) -> Position:

		if self.current_voice is None:
			return self.position

		return self.voices[self.current_voice]


class ScoreBuilder:

	"""
	Evaluates parsed forms into a growing score.

	Holds the instrument instances, the nickname table, the instruments the
	next bare music data applies to, and every event produced so far.  Use
	``copy()`` to get an independent builder to evaluate into speculatively.
	"""

	def __init__ (self) -> None:

		"""
		Start with an empty score and no instruments.
		"""

		self.instruments: typing.Dict[str, InstrumentState] = {}
		self.nicknames: typing.Dict[str, typing.Tuple[str, ...]] = {}
		self.stock_instances: typing.Dict[str, str] = {}
		self.current_instruments: typing.Tuple[str, ...] = ()
		self.events: typing.Set[SoundingEvent] = set()
		self.global_attributes: typing.Dict[str, float] = {}
		self._instance_counter = 0

	def copy (self) -> "ScoreBuilder":

		"""
		Return a deep copy that can be evaluated into without touching this builder.
		"""

		return copy.deepcopy(self)

	def snapshot (self) -> ScoreSnapshot:

		"""
		Return the current score as an immutable snapshot.
		"""

		return ScoreSnapshot(
			events = frozenset(self.events),
			instruments = tuple(state.instrument for state in self.instruments.values())
		)

	def evaluate (self, forms: typing.Iterable[scoreline.notation.Form]) -> None:

		"""
		Apply forms, in order, to the score.

		Part declarations switch the current instruments; music blocks and bare
		events apply to whatever is current.  Raises an ``EvaluationError``
		subclass on the first form that cannot be evaluated, leaving this
		builder partially updated - evaluate into a ``copy()`` to avoid that.
		"""

		for form in forms:

			if isinstance(form, scoreline.notation.PartDeclaration):
				self._declare_part(form)
				self._apply_events(form.events)

			elif isinstance(form, scoreline.notation.MusicBlock):
				self._apply_events(form.events)

			else:
				self._apply_events((form,))

	# ─── Parts and instruments ───────────────────────────────────────

	def _declare_part (self, part: scoreline.notation.PartDeclaration) -> None:

		# A new part closes any voices left open by the previous one.
		for instrument_id in self.current_instruments:
			self._close_voices(self.instruments[instrument_id])

		if part.nickname is not None:
			ids = self._declare_nicknamed(part.names, part.nickname)

		else:
			ids = tuple(instrument_id for name in part.names for instrument_id in self._resolve_name(name))

		self.current_instruments = ids

		logger.debug(f"Current instruments: {', '.join(ids)}")

	def _declare_nicknamed (self, names: typing.Tuple[str, ...], nickname: str) -> typing.Tuple[str, ...]:

		if nickname in self.nicknames:
			raise scoreline.errors.NicknameError(f"Nickname {nickname!r} is already in use")

		if scoreline.constants.instruments.lookup(nickname) is not None:
			raise scoreline.errors.NicknameError(f"Nickname {nickname!r} is the name of a stock instrument")

		# Validate every name before creating anything.
		stocks = [self._lookup_stock(name) for name in names]

		# A single instrument keeps the nickname itself; a group shares it.
		single = nickname if len(stocks) == 1 else None
		ids = tuple(self._new_instance(stock, single).instrument.id for stock in stocks)

		self.nicknames[nickname] = ids

		return ids

	def _resolve_name (self, name: str) -> typing.Tuple[str, ...]:

		if name in self.nicknames:
			return self.nicknames[name]

		stock = self._lookup_stock(name)

		if name in self.stock_instances:
			return (self.stock_instances[name],)

		state = self._new_instance(stock, None)
		self.stock_instances[name] = state.instrument.id

		return (state.instrument.id,)

	def _lookup_stock (self, name: str) -> scoreline.constants.instruments.StockInstrument:

		stock = scoreline.constants.instruments.lookup(name)

		if stock is None:
			raise scoreline.errors.UnknownInstrumentError(f"Unrecognized instrument: {name}")

		return stock

	def _new_instance (self, stock: scoreline.constants.instruments.StockInstrument, nickname: typing.Optional[str]) -> InstrumentState:

		self._instance_counter += 1

		instrument = Instrument(
			id = f"{stock.name}-{self._instance_counter}",
			stock = stock.name,
			program = stock.program,
			percussion = stock.percussion,
			nickname = nickname
		)

		state = InstrumentState(instrument=instrument)

		for name, value in self.global_attributes.items():
			self._set_attribute(state, name, value)

		self.instruments[instrument.id] = state

		logger.info(f"New instrument: {instrument.id} (program {instrument.program})")

		return state

	# ─── Music data ──────────────────────────────────────────────────

	def _apply_events (self, events: typing.Sequence[scoreline.notation.Event]) -> None:

		if not events:
			return

		needs_instrument = any(not (isinstance(event, scoreline.notation.Attribute) and event.is_global) for event in events)

		if needs_instrument and not self.current_instruments:
			raise scoreline.errors.NoInstrumentError("No instrument is open; start a part first, e.g. 'piano: c d e'")

		# Each instrument in a group plays the whole sequence from its own position.
		for instrument_id in self.current_instruments:

			state = self.instruments[instrument_id]

			for event in events:
				self._apply_event(state, event)

		for event in events:
			if isinstance(event, scoreline.notation.Attribute) and event.is_global:
				self._set_global_attribute(event, exclude=self.current_instruments)

	def _apply_event (self, state: InstrumentState, event: scoreline.notation.Event) -> None:

		position = state.active_position()

		if isinstance(event, scoreline.notation.Note):
			self._play_note(state, position, event)

		elif isinstance(event, scoreline.notation.Chord):
			self._play_chord(state, position, event)

		elif isinstance(event, scoreline.notation.Rest):
			duration = self._duration_ms(state, position, event.duration)
			position.offset += duration

		elif isinstance(event, (scoreline.notation.OctaveSet, scoreline.notation.OctaveShift)):
			self._change_octave(position, event)

		elif isinstance(event, scoreline.notation.Attribute):
			self._set_attribute(state, event.name, event.value)

		elif isinstance(event, scoreline.notation.VoiceMarker):
			self._switch_voice(state, event.number)

		elif isinstance(event, scoreline.notation.Barline):
			pass

		else:
			raise TypeError(f"Unexpected form: {event!r}")

	def _duration_ms (self, state: InstrumentState, position: Position, duration: typing.Optional[scoreline.notation.Duration]) -> float:

		"""
		Resolve a written duration (or the remembered one) to milliseconds at the instrument's tempo.
		"""

		if duration is not None:
			position.duration = duration

		return position.duration.beats() * 60000.0 / state.tempo

	def _midi_note (self, position: Position, note: scoreline.notation.Note) -> int:

		semitone = _SEMITONES[note.letter] + sum(_ACCIDENTALS[accidental] for accidental in note.accidentals)
		midi_note = (position.octave + 1) * 12 + semitone

		if not scoreline.constants.MIN_MIDI_NOTE <= midi_note <= scoreline.constants.MAX_MIDI_NOTE:
			raise scoreline.errors.PitchRangeError(f"Note {note.letter}{note.accidentals} in octave {position.octave} is outside the MIDI range")

		return midi_note

	def _play_note (self, state: InstrumentState, position: Position, note: scoreline.notation.Note) -> None:

		duration = self._duration_ms(state, position, note.duration)
		self._emit(state, position.offset, self._midi_note(position, note), duration)

		position.offset += duration

	def _play_chord (self, state: InstrumentState, position: Position, chord: scoreline.notation.Chord) -> None:

		start = position.offset
		shortest: typing.Optional[float] = None

		for member in chord.members:

			if isinstance(member, scoreline.notation.Note):
				duration = self._duration_ms(state, position, member.duration)
				self._emit(state, start, self._midi_note(position, member), duration)
				shortest = duration if shortest is None else min(shortest, duration)

			else:
				self._change_octave(position, member)

		position.offset = start + (shortest or 0.0)

	def _emit (self, state: InstrumentState, offset: float, midi_note: int, duration: float) -> None:

		self.events.add(SoundingEvent(
			offset = offset,
			instrument = state.instrument.id,
			midi_note = midi_note,
			duration = duration * state.quantization / 100.0,
			volume = state.volume
		))

	def _change_octave (self, position: Position, event: typing.Union[scoreline.notation.OctaveSet, scoreline.notation.OctaveShift]) -> None:

		octave = event.octave if isinstance(event, scoreline.notation.OctaveSet) else position.octave + event.delta

		if not scoreline.constants.MIN_OCTAVE <= octave <= scoreline.constants.MAX_OCTAVE:
			raise scoreline.errors.AttributeValueError(f"Octave {octave} is out of range")

		position.octave = octave

	# ─── Attributes ──────────────────────────────────────────────────

	def _canonical_attribute (self, name: str) -> str:

		canonical = _ATTRIBUTE_ALIASES.get(name)

		if canonical is None:
			raise scoreline.errors.UnknownAttributeError(f"Unrecognized attribute: {name}")

		return canonical

	def _check_attribute (self, name: str, value: float) -> str:

		"""
		Validate an attribute value and return the attribute's canonical name.
		"""

		name = self._canonical_attribute(name)

		if name == "tempo":
			if value <= 0:
				raise scoreline.errors.AttributeValueError(f"Tempo must be positive, got {value:g}")

		elif name == "octave":
			if value != int(value):
				raise scoreline.errors.AttributeValueError(f"Octave must be a whole number, got {value:g}")
			if not scoreline.constants.MIN_OCTAVE <= value <= scoreline.constants.MAX_OCTAVE:
				raise scoreline.errors.AttributeValueError(f"Octave {int(value)} is out of range")

		elif not 0 <= value <= 100:
			raise scoreline.errors.AttributeValueError(f"{name.capitalize()} must be between 0 and 100, got {value:g}")

		return name

	def _set_global_attribute (self, attribute: scoreline.notation.Attribute, exclude: typing.Tuple[str, ...] = ()) -> None:

		"""
		Apply an attribute to every instrument not in exclude, and to instruments declared later.

		The value is checked before any instrument changes.
		"""

		name = self._check_attribute(attribute.name, attribute.value)

		for instrument_id, state in self.instruments.items():
			if instrument_id in exclude:
				continue
			self._set_attribute(state, name, attribute.value)

		self.global_attributes[name] = attribute.value

	def _set_attribute (self, state: InstrumentState, name: str, value: float) -> None:

		name = self._check_attribute(name, value)

		if name == "tempo":
			state.tempo = value

		elif name == "octave":
			self._change_octave(state.active_position(), scoreline.notation.OctaveSet(int(value)))

		else:
			setattr(state, name, value)

	# ─── Voices ──────────────────────────────────────────────────────

	def _switch_voice (self, state: InstrumentState, number: int) -> None:

		if number == 0:
			self._close_voices(state)
			return

		if number not in state.voices:
			# Every voice starts from where the instrument was when voices opened.
			state.voices[number] = dataclasses.replace(state.position)

		state.current_voice = number

	def _close_voices (self, state: InstrumentState) -> None:

		if not state.voices:
			return

		furthest = max(state.voices.values(), key=lambda position: position.offset)

		state.position.offset = furthest.offset
		state.voices = {}
		state.current_voice = None
