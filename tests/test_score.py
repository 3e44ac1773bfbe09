import typing

import pytest

import conftest
import scoreline.errors
import scoreline.notation
import scoreline.score

from scoreline.notation import EntryPoint


def _evaluate (builder: scoreline.score.ScoreBuilder, text: str, entry_point: EntryPoint = EntryPoint.SCORE) -> None:

	"""Parse text at a given level and evaluate it into the builder."""

	result = scoreline.notation.parse(text, entry_point)

	assert isinstance(result, scoreline.notation.Parsed), result

	forms: typing.Tuple[scoreline.notation.Form, ...] = result.forms

	if entry_point is EntryPoint.MUSIC_DATA:
		forms = (scoreline.notation.MusicBlock(forms),)

	builder.evaluate(forms)


def _notes (builder: scoreline.score.ScoreBuilder) -> typing.List[typing.Tuple[float, int]]:

	"""(offset, midi note) pairs in time order."""

	return sorted((event.offset, event.midi_note) for event in builder.events)


@pytest.fixture
def builder () -> scoreline.score.ScoreBuilder:

	return scoreline.score.ScoreBuilder()


# --- Timing ---


def test_quarter_notes_at_default_tempo (builder: scoreline.score.ScoreBuilder) -> None:

	"""Quarter notes at 120 BPM are 500 ms apart and start at middle C's octave."""

	_evaluate(builder, "piano: c d e")

	assert _notes(builder) == [(0.0, 60), (500.0, 62), (1000.0, 64)]


def test_quantization_shortens_sounding_duration (builder: scoreline.score.ScoreBuilder) -> None:

	"""Events sound for 90% of their written length by default."""

	_evaluate(builder, "piano: c")

	(event,) = builder.events

	assert event.duration == pytest.approx(450.0)


def test_note_value_is_remembered (builder: scoreline.score.ScoreBuilder) -> None:

	"""A note without a value reuses the last one given."""

	_evaluate(builder, "piano: c8 d e")

	assert conftest.offsets(builder.events) == [0.0, 250.0, 500.0]


def test_dots_ties_and_rests (builder: scoreline.score.ScoreBuilder) -> None:

	"""Dotted and tied values lengthen notes; rests advance time silently."""

	_evaluate(builder, "piano: c4. d8 r2 e4~4 f")

	assert conftest.offsets(builder.events) == [0.0, 750.0, 2000.0, 3000.0]


def test_tempo_attribute (builder: scoreline.score.ScoreBuilder) -> None:

	"""Tempo changes apply to following notes."""

	_evaluate(builder, "piano: c (tempo 60) d e")

	assert conftest.offsets(builder.events) == [0.0, 500.0, 1500.0]


def test_volume_and_quantization_attributes (builder: scoreline.score.ScoreBuilder) -> None:

	_evaluate(builder, "piano: (vol 50) (quant 100) c")

	(event,) = builder.events

	assert event.volume == 50
	assert event.duration == 500.0


# --- Pitch ---


def test_accidentals_and_octaves (builder: scoreline.score.ScoreBuilder) -> None:

	"""Sharps, flats, octave shifts and octave settings change the MIDI note."""

	_evaluate(builder, "piano: c+ d- > e < < f o2 g")

	assert [note for _, note in _notes(builder)] == [61, 61, 76, 53, 43]


def test_octave_attribute (builder: scoreline.score.ScoreBuilder) -> None:

	_evaluate(builder, "piano: (octave 5) c")

	assert _notes(builder) == [(0.0, 72)]


def test_pitch_out_of_range (builder: scoreline.score.ScoreBuilder) -> None:

	with pytest.raises(scoreline.errors.PitchRangeError):
		_evaluate(builder, "piano: o9 b+")


def test_octave_out_of_range (builder: scoreline.score.ScoreBuilder) -> None:

	with pytest.raises(scoreline.errors.AttributeValueError):
		_evaluate(builder, "piano: o9 >")


# --- Chords ---


def test_chord_notes_share_an_offset (builder: scoreline.score.ScoreBuilder) -> None:

	"""Chord members start together and the part moves on by the shortest one."""

	_evaluate(builder, "piano: c2/e4/g d")

	assert _notes(builder) == [(0.0, 60), (0.0, 64), (0.0, 67), (500.0, 62)]


def test_chord_octave_change_persists (builder: scoreline.score.ScoreBuilder) -> None:

	_evaluate(builder, "piano: c/>c c")

	assert [note for _, note in _notes(builder)] == [60, 72, 72]


# --- Instruments ---


def test_unknown_instrument (builder: scoreline.score.ScoreBuilder) -> None:

	with pytest.raises(scoreline.errors.UnknownInstrumentError):
		_evaluate(builder, "nosuchthing: c")


def test_music_data_without_instrument (builder: scoreline.score.ScoreBuilder) -> None:

	"""Bare music data needs an open part."""

	with pytest.raises(scoreline.errors.NoInstrumentError):
		_evaluate(builder, "c d", EntryPoint.MUSIC_DATA)


def test_global_attribute_without_instrument (builder: scoreline.score.ScoreBuilder) -> None:

	"""A global attribute needs no open part and applies to later instruments."""

	_evaluate(builder, "(tempo! 60)", EntryPoint.MUSIC_DATA)
	_evaluate(builder, "piano: c d")

	assert conftest.offsets(builder.events) == [0.0, 1000.0]


def test_global_attribute_reaches_other_instruments (builder: scoreline.score.ScoreBuilder) -> None:

	_evaluate(builder, "piano: c violin: c (volume! 40)")
	_evaluate(builder, "piano: d")

	volumes = {event.midi_note: event.volume for event in builder.events if event.instrument.startswith("piano")}

	assert volumes == {60: 100, 62: 40}


@pytest.mark.parametrize("text", ["(tempo! -5)", "(quant! 101)", "(octave! 10)"])
def test_global_attribute_value_checked_without_instruments (builder: scoreline.score.ScoreBuilder, text: str) -> None:

	with pytest.raises(scoreline.errors.AttributeValueError):
		_evaluate(builder, text, EntryPoint.MUSIC_DATA)

	assert builder.global_attributes == {}


def test_unknown_attribute (builder: scoreline.score.ScoreBuilder) -> None:

	with pytest.raises(scoreline.errors.UnknownAttributeError):
		_evaluate(builder, "piano: (swing 50) c")


@pytest.mark.parametrize("text", ["piano: (tempo 0)", "piano: (volume 120)", "piano: (octave 4.5)"])
def test_attribute_values_are_checked (builder: scoreline.score.ScoreBuilder, text: str) -> None:

	with pytest.raises(scoreline.errors.AttributeValueError):
		_evaluate(builder, text)


def test_redeclaring_a_part_continues_it (builder: scoreline.score.ScoreBuilder) -> None:

	"""Naming a stock instrument again refers to the same instance."""

	_evaluate(builder, "piano: c d violin: e")
	_evaluate(builder, "piano: e")

	piano_offsets = sorted(event.offset for event in builder.events if event.instrument.startswith("piano"))

	assert piano_offsets == [0.0, 500.0, 1000.0]
	assert len(builder.snapshot().instruments) == 2


def test_instrument_group_plays_in_unison (builder: scoreline.score.ScoreBuilder) -> None:

	_evaluate(builder, "violin/cello: c d")

	assert len(builder.events) == 4
	assert len({event.instrument for event in builder.events}) == 2


def test_nickname_creates_a_new_instance (builder: scoreline.score.ScoreBuilder) -> None:

	"""A nickname gives a fresh instance that later lines can refer to by name."""

	_evaluate(builder, "piano: c")
	_evaluate(builder, 'piano "lefthand": o3 c')
	_evaluate(builder, "lefthand: d")

	snapshot = builder.snapshot()

	assert len(snapshot.instruments) == 2
	assert builder.nicknames == {"lefthand": ("piano-2",)}
	assert builder.instruments["piano-2"].instrument.nickname == "lefthand"
	assert sorted((e.offset, e.midi_note) for e in snapshot.events if e.instrument == "piano-2") == [(0.0, 48), (500.0, 50)]


def test_nickname_cannot_be_reused (builder: scoreline.score.ScoreBuilder) -> None:

	_evaluate(builder, 'piano "p": c')

	with pytest.raises(scoreline.errors.NicknameError):
		_evaluate(builder, 'violin "p": c')


def test_percussion_instrument (builder: scoreline.score.ScoreBuilder) -> None:

	_evaluate(builder, "percussion: c")

	(instrument,) = builder.snapshot().instruments

	assert instrument.percussion


# --- Voices ---


def test_voices_start_together (builder: scoreline.score.ScoreBuilder) -> None:

	"""Voices share a start offset; closing them moves on to the longest."""

	_evaluate(builder, "piano: c V1: e f V2: g1 V0: c")

	assert _notes(builder) == [(0.0, 60), (500.0, 64), (500.0, 67), (1000.0, 65), (2500.0, 60)]


def test_voice_continues_on_the_next_line (builder: scoreline.score.ScoreBuilder) -> None:

	"""An open voice carries on across separate evaluations."""

	_evaluate(builder, "piano: V1: c V2: e")
	_evaluate(builder, "d", EntryPoint.MUSIC_DATA)

	assert _notes(builder) == [(0.0, 60), (0.0, 64), (500.0, 62)]


def test_new_part_closes_voices (builder: scoreline.score.ScoreBuilder) -> None:

	_evaluate(builder, "piano: V1: c V2: e2")
	_evaluate(builder, "violin: c")
	_evaluate(builder, "piano: g")

	piano = sorted((e.offset, e.midi_note) for e in builder.events if e.instrument.startswith("piano"))

	assert piano == [(0.0, 60), (0.0, 64), (1000.0, 67)]


# --- Snapshots and copies ---


def test_snapshot_is_immutable_value (builder: scoreline.score.ScoreBuilder) -> None:

	"""A snapshot does not change when the builder moves on."""

	_evaluate(builder, "piano: c")
	before = builder.snapshot()
	_evaluate(builder, "piano: d")

	assert len(before.events) == 1
	assert len(builder.snapshot().events) == 2


def test_copy_is_independent (builder: scoreline.score.ScoreBuilder) -> None:

	_evaluate(builder, "piano: c")
	scratch = builder.copy()
	_evaluate(scratch, 'violin "v": d e')

	assert len(builder.events) == 1
	assert builder.nicknames == {}
	assert builder.current_instruments == ("piano-1",)


def test_events_compare_by_value () -> None:

	"""Identical fields make identical events; a different offset makes a different one."""

	a = scoreline.score.SoundingEvent(0.0, "piano-1", 60, 450.0, 100)
	b = scoreline.score.SoundingEvent(0.0, "piano-1", 60, 450.0, 100)
	c = scoreline.score.SoundingEvent(500.0, "piano-1", 60, 450.0, 100)

	assert a == b
	assert len({a, b, c}) == 2


def test_end_offset () -> None:

	assert scoreline.score.ScoreSnapshot().end_offset() == 0.0


def test_end_offset_of_a_score (builder: scoreline.score.ScoreBuilder) -> None:

	"""The score ends when its last note stops sounding."""

	_evaluate(builder, "piano: c d2")

	assert builder.snapshot().end_offset() == 1400.0
