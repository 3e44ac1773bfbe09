
"""
scoreline - build a musical score one line at a time, and hear each addition.

scoreline is an interactive console for a compact, Alda-style text notation.
Every line you type is merged into a score that keeps growing for the whole
session, and only the notes that line added are played - immediately, from
the top - so you audition what you just wrote without replaying everything
before it.

What happens on each line:

- **Context resolution.** A line can be bare music data continuing the
  instrument you are already writing for (``f g a``), a new part
  (``cello: c2 e2``), or a score of several parts
  (``piano: c violin: e``).  Inputs valid at more than one level are
  resolved by always preferring the most local one.
- **Safe evaluation.** The line is evaluated into a copy of the score and
  only committed if it evaluates cleanly, so a typo'd instrument name never
  leaves the session half-updated.
- **Incremental playback.** The new snapshot is diffed against the previous
  one by value, the new notes are shifted to start at zero, and a one-off
  score is sent to the MIDI output on a background thread.

Notation at a glance:

    ```
    piano: o4 c8 d e f g4 g      # notes, note values, octaves
    violin/viola "upper": c/e/g  # instrument groups, nicknames, chords
    (tempo! 90) (volume 70)      # global and per-part attributes
    V1: c1 V2: e2 g2 V0:         # voices
    ```

Console commands: ``:help``, ``:new``, ``:score``, ``:play``, ``:save``,
``:load``, ``:export`` and ``quit``.

Library use:

    ```python
    import scoreline

    session = scoreline.Session(player=scoreline.SilentPlayer())
    result = session.run_turn("piano: c d e")
    sorted(event.offset for event in result.new_events)   # [0.0, 500.0, 1000.0]
    ```

Package-level exports: ``Session``, ``ScoreBuilder``, ``MidiPlayer``,
``SilentPlayer``, ``PlaybackOptions``.
"""

import scoreline.config
import scoreline.midi_player
import scoreline.score
import scoreline.session


__version__ = "0.1.0"

Session = scoreline.session.Session
ScoreBuilder = scoreline.score.ScoreBuilder
MidiPlayer = scoreline.midi_player.MidiPlayer
SilentPlayer = scoreline.midi_player.SilentPlayer
PlaybackOptions = scoreline.config.PlaybackOptions
