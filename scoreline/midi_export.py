import logging
import typing

import mido

import scoreline.constants
import scoreline.midi_player
import scoreline.score


logger = logging.getLogger(__name__)


def _ms_to_ticks (ms: float) -> int:

	ms_per_beat = 60000.0 / scoreline.constants.EXPORT_TEMPO

	return int(round(ms * scoreline.constants.EXPORT_TICKS_PER_BEAT / ms_per_beat))


def build_midi_file (score: scoreline.score.ScoreSnapshot) -> mido.MidiFile:

	"""
	Convert a score snapshot into a type 1 MIDI file.

	Offsets are already absolute milliseconds (tempo changes were applied when
	the score was built), so the file uses one fixed tempo and a straight
	ms-to-ticks conversion.  Track 0 holds the tempo; each instrument instance
	gets its own track.
	"""

	mid = mido.MidiFile(type=1)
	mid.ticks_per_beat = scoreline.constants.EXPORT_TICKS_PER_BEAT

	tempo_track = mido.MidiTrack()
	tempo_track.append(mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(scoreline.constants.EXPORT_TEMPO), time=0))
	mid.tracks.append(tempo_track)

	channels: typing.Dict[str, int] = {}

	for instrument in score.instruments:

		events = [event for event in score.events if event.instrument == instrument.id]

		if not events:
			continue

		channel = scoreline.midi_player.allocate_channel(instrument, channels)

		track = mido.MidiTrack()
		track.append(mido.MetaMessage('track_name', name=instrument.nickname or instrument.id, time=0))

		if not instrument.percussion:
			track.append(mido.Message('program_change', channel=channel, program=instrument.program, time=0))

		# (tick, order, message) with note-offs ahead of note-ons on the same tick
		timed: typing.List[typing.Tuple[int, int, int, mido.Message]] = []

		for event in events:
			start = _ms_to_ticks(event.offset)
			end = max(start, _ms_to_ticks(event.offset + event.duration))
			timed.append((start, 1, event.midi_note, mido.Message('note_on', channel=channel, note=event.midi_note, velocity=scoreline.midi_player.velocity(event.volume))))
			timed.append((end, 0, event.midi_note, mido.Message('note_off', channel=channel, note=event.midi_note, velocity=0)))

		timed.sort(key=lambda item: item[:3])

		last_tick = 0

		for tick, _, _, message in timed:
			track.append(message.copy(time=tick - last_tick))
			last_tick = tick

		mid.tracks.append(track)

	return mid


def export_midi (score: scoreline.score.ScoreSnapshot, filename: str) -> None:

	"""
	Write a score snapshot to a standard MIDI file.
	"""

	mid = build_midi_file(score)

	logger.info(f"Saving {len(score.events)} event(s) to {filename}...")

	mid.save(filename)

	logger.info(f"Saved {filename}")
