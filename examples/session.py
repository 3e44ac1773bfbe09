import logging

import scoreline
import scoreline.midi_export
import scoreline.midi_player

logging.basicConfig(level=logging.INFO)

# Build a score the same way the console does, one line at a time, without sound.
# Swap in scoreline.midi_player.MidiPlayer() to hear each line as it is added.
session = scoreline.Session(player=scoreline.midi_player.SilentPlayer())

lines = [
	"piano: c8 d e f g4 g",
	"a8 a a a g2",
	"violin/cello: o3 c1/e/g",
	"piano: V1: c2 e V2: o3 c1",
	"V0: c1",
]

for line in lines:
	result = session.run_turn(line)
	if result is not None:
		print(f"{session.context.name:<10} {len(result.new_events):>3} new event(s)  {line}")

print()
print(session.score_text)

if __name__ == "__main__":
	scoreline.midi_export.export_midi(session.snapshot, "session.mid")
