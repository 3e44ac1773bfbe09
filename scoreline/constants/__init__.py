"""Constants for scoreline.

This package contains two sets of constants:

- ``scoreline.constants.instruments`` - General MIDI program map and the stock
  instrument names accepted in part declarations
- The timing and attribute defaults below, shared by the score builder, the
  MIDI player and the MIDI exporter

Offsets and durations are measured in milliseconds throughout.
"""

# Attribute defaults for a freshly declared instrument.

DEFAULT_TEMPO = 120				# BPM
DEFAULT_OCTAVE = 4				# "c" in octave 4 is middle C (MIDI 60)
DEFAULT_NOTE_VALUE = 4			# quarter note
DEFAULT_VOLUME = 100			# 0-100, scaled to MIDI velocity on output
DEFAULT_QUANTIZATION = 90		# percent of the written duration that sounds

# Attribute ranges

MIN_OCTAVE = -1
MAX_OCTAVE = 9
MIN_MIDI_NOTE = 0
MAX_MIDI_NOTE = 127

# MIDI output

PERCUSSION_CHANNEL = 9
MIDI_CHANNELS = 16
MAX_VELOCITY = 127

# MIDI file export uses a fixed tempo map so milliseconds convert exactly.

EXPORT_TICKS_PER_BEAT = 480
EXPORT_TEMPO = 120
