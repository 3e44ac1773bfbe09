"""MIDI playback for session turns.

``MidiPlayer`` owns one output port.  Each instrument instance gets its own
channel the first time it is loaded (percussion always uses the GM drum
channel) and a program change selects its General MIDI patch.  A score is
rendered by converting every event into a ``note_on``/``note_off`` pair and
sending them at the right wall-clock times, on a daemon thread when
background rendering is enabled so the console is free for the next line.

Rendering threads only read the messages built for them; all channel
bookkeeping happens on the calling thread before a render starts.  Closing
the player stops any render still in progress before the port is closed.
"""

import logging
import threading
import time
import typing

import mido

import scoreline.config
import scoreline.constants
import scoreline.errors
import scoreline.midi_utils
import scoreline.playback
import scoreline.score


logger = logging.getLogger(__name__)

TimedMessage = typing.Tuple[float, mido.Message]


def allocate_channel (instrument: scoreline.score.Instrument, channels: typing.Dict[str, int]) -> int:

	"""
	Return the channel for an instrument, assigning the next free one if needed.

	Percussion always plays on the GM drum channel.  Once the fifteen melodic
	channels are used up, later instruments share channels round-robin.
	"""

	if instrument.id in channels:
		return channels[instrument.id]

	if instrument.percussion:
		channel = scoreline.constants.PERCUSSION_CHANNEL

	else:
		melodic = [c for c in range(scoreline.constants.MIDI_CHANNELS) if c != scoreline.constants.PERCUSSION_CHANNEL]
		taken = sum(1 for c in channels.values() if c != scoreline.constants.PERCUSSION_CHANNEL)
		channel = melodic[taken % len(melodic)]

		if taken >= len(melodic):
			logger.warning(f"Out of MIDI channels - {instrument.id} shares channel {channel}")

	channels[instrument.id] = channel

	return channel


def velocity (volume: float) -> int:

	"""
	Scale a 0-100 volume to a MIDI velocity.
	"""

	return max(0, min(scoreline.constants.MAX_VELOCITY, round(volume * scoreline.constants.MAX_VELOCITY / 100)))


class MidiPlayer:

	"""
	Plays scores through a MIDI output port.
	"""

	def __init__ (self, output_device_name: typing.Optional[str] = None, midi_out: typing.Any = None) -> None:

		"""
		Open the output port.

		Parameters:
			output_device_name: Port to open. When omitted, the only available
				port is used or the user is asked to choose.
			midi_out: An already-open port to use instead of opening one.
		"""

		if midi_out is None:
			output_device_name, midi_out = scoreline.midi_utils.select_output_device(output_device_name)

		if midi_out is None:
			raise scoreline.errors.PlayerError("No MIDI output device available")

		self.output_device_name = output_device_name
		self.midi_out = midi_out
		self.channels: typing.Dict[str, int] = {}
		self.programs: typing.Dict[int, int] = {}
		self._send_lock = threading.Lock()
		self._stop = threading.Event()
		self._threads: typing.List[threading.Thread] = []

	def load_instruments (self, score: scoreline.score.ScoreSnapshot) -> None:

		"""
		Assign channels and send program changes for instruments not yet loaded.
		"""

		for instrument in score.instruments:

			channel = allocate_channel(instrument, self.channels)

			if instrument.percussion or self.programs.get(channel) == instrument.program:
				continue

			self.programs[channel] = instrument.program
			self._send(mido.Message('program_change', channel=channel, program=instrument.program))

			logger.info(f"Loaded {instrument.stock} on channel {channel + 1}")

	def messages (self, score: scoreline.playback.PlaybackScore) -> typing.List[TimedMessage]:

		"""
		Build the timed messages for a score, sorted by time in seconds.

		At equal times note-offs come first so a repeated pitch is re-struck.
		"""

		instruments = {instrument.id: instrument for instrument in score.instruments}
		timed: typing.List[typing.Tuple[float, int, mido.Message]] = []

		for event in score.events:

			instrument = instruments.get(event.instrument)

			if instrument is None:
				channel = self.channels.get(event.instrument, 0)
			else:
				channel = allocate_channel(instrument, self.channels)

			start = event.offset / 1000.0
			end = (event.offset + event.duration) / 1000.0

			timed.append((start, 1, mido.Message('note_on', channel=channel, note=event.midi_note, velocity=velocity(event.volume))))
			timed.append((end, 0, mido.Message('note_off', channel=channel, note=event.midi_note, velocity=0)))

		timed.sort(key=lambda item: (item[0], item[1], item[2].note))

		return [(seconds, message) for seconds, _, message in timed]

	def render (self, score: scoreline.playback.PlaybackScore, options: scoreline.config.PlaybackOptions) -> None:

		"""
		Play a score, on a daemon thread if ``options.background`` is set.
		"""

		messages = self.messages(score)

		if not messages:
			return

		if not options.background:
			self._play(messages)
			return

		self._threads = [thread for thread in self._threads if thread.is_alive()]

		thread = threading.Thread(
			target = self._play,
			args = (messages,),
			name = "scoreline-playback",
			daemon = True,
		)
		self._threads.append(thread)
		thread.start()

	def wait (self, timeout: typing.Optional[float] = None) -> None:

		"""
		Block until every background render has finished.
		"""

		for thread in list(self._threads):
			thread.join(timeout)

		self._threads = [thread for thread in self._threads if thread.is_alive()]

	def close (self) -> None:

		"""
		Stop any background renders, then silence every channel and close the port.
		"""

		self._stop.set()
		self.wait()

		with self._send_lock:
			self.midi_out.panic()
			self.midi_out.close()

		logger.info("MIDI output closed")

	def _play (self, messages: typing.List[TimedMessage]) -> None:

		start = time.monotonic()

		for seconds, message in messages:

			delay = start + seconds - time.monotonic()

			if delay > 0:
				self._stop.wait(delay)

			if self._stop.is_set():
				return

			self._send(message)

	def _send (self, message: mido.Message) -> None:

		with self._send_lock:
			self.midi_out.send(message)


class SilentPlayer:

	"""
	A player with no output, for headless sessions.
	"""

	def load_instruments (self, score: scoreline.score.ScoreSnapshot) -> None:

		return None

	def render (self, score: scoreline.playback.PlaybackScore, options: scoreline.config.PlaybackOptions) -> None:

		if score.events:
			length = max(event.offset + event.duration for event in score.events)
			logger.info(f"Not playing {len(score.events)} event(s) ({length / 1000.0:.2f}s) - audio is disabled")

	def close (self) -> None:

		return None


def create_player (options: scoreline.config.PlaybackOptions) -> scoreline.playback.Player:

	"""
	Return the player for the configured engine.
	"""

	if options.engine == "none":
		return SilentPlayer()

	return MidiPlayer(output_device_name=options.output_device)
