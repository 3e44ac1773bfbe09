"""General MIDI Level 1 instrument map.

Every stock instrument that can be named in a part declaration, keyed by its
name in the notation.  The full GM set is available under ``midi-`` prefixed
names (``midi-acoustic-grand-piano``, ``midi-cello``...), and the common
orchestral and band instruments also have short aliases::

	piano: c d e
	violin/cello "strings": g a b

``percussion`` (or ``midi-percussion``) plays on the GM drum channel, where the
note number selects the drum sound rather than a pitch.
"""

import dataclasses
import typing


@dataclasses.dataclass(frozen=True)
class StockInstrument:

	"""
	A General MIDI patch that instrument instances are created from.
	"""

	name: str
	program: int
	percussion: bool = False


# ─── General MIDI program names ──────────────────────────────────────
#
# Index in this list is the zero-based GM program number.

GM_PROGRAM_NAMES: typing.List[str] = [
	# Piano
	"acoustic-grand-piano", "bright-acoustic-piano", "electric-grand-piano", "honky-tonk-piano",
	"electric-piano-1", "electric-piano-2", "harpsichord", "clavi",
	# Chromatic percussion
	"celesta", "glockenspiel", "music-box", "vibraphone",
	"marimba", "xylophone", "tubular-bells", "dulcimer",
	# Organ
	"drawbar-organ", "percussive-organ", "rock-organ", "church-organ",
	"reed-organ", "accordion", "harmonica", "tango-accordion",
	# Guitar
	"acoustic-guitar-nylon", "acoustic-guitar-steel", "electric-guitar-jazz", "electric-guitar-clean",
	"electric-guitar-muted", "overdriven-guitar", "distortion-guitar", "guitar-harmonics",
	# Bass
	"acoustic-bass", "electric-bass-finger", "electric-bass-pick", "fretless-bass",
	"slap-bass-1", "slap-bass-2", "synth-bass-1", "synth-bass-2",
	# Strings
	"violin", "viola", "cello", "contrabass",
	"tremolo-strings", "pizzicato-strings", "orchestral-harp", "timpani",
	# Ensemble
	"string-ensemble-1", "string-ensemble-2", "synth-strings-1", "synth-strings-2",
	"choir-aahs", "voice-oohs", "synth-voice", "orchestra-hit",
	# Brass
	"trumpet", "trombone", "tuba", "muted-trumpet",
	"french-horn", "brass-section", "synth-brass-1", "synth-brass-2",
	# Reed
	"soprano-sax", "alto-sax", "tenor-sax", "baritone-sax",
	"oboe", "english-horn", "bassoon", "clarinet",
	# Pipe
	"piccolo", "flute", "recorder", "pan-flute",
	"blown-bottle", "shakuhachi", "whistle", "ocarina",
	# Synth lead
	"square-lead", "saw-wave", "calliope-lead", "chiffer-lead",
	"charang", "solo-vox", "fifths", "bass-and-lead",
	# Synth pad
	"new-age-pad", "warm-pad", "polysynth-pad", "choir-pad",
	"bowed-pad", "metallic-pad", "halo-pad", "sweep-pad",
	# Synth effects
	"fx-rain", "fx-soundtrack", "fx-crystal", "fx-atmosphere",
	"fx-brightness", "fx-goblins", "fx-echoes", "fx-sci-fi",
	# Ethnic
	"sitar", "banjo", "shamisen", "koto",
	"kalimba", "bagpipes", "fiddle", "shehnai",
	# Percussive
	"tinkle-bell", "agogo", "steel-drums", "woodblock",
	"taiko-drum", "melodic-tom", "synth-drum", "reverse-cymbal",
	# Sound effects
	"guitar-fret-noise", "breath-noise", "seashore", "bird-tweet",
	"telephone-ring", "helicopter", "applause", "gunshot",
]


# ─── Short aliases ───────────────────────────────────────────────────

ALIASES: typing.Dict[str, str] = {
	"piano": "acoustic-grand-piano",
	"electric-piano": "electric-piano-1",
	"organ": "church-organ",
	"guitar": "acoustic-guitar-nylon",
	"acoustic-guitar": "acoustic-guitar-nylon",
	"electric-guitar": "electric-guitar-clean",
	"bass": "acoustic-bass",
	"electric-bass": "electric-bass-finger",
	"double-bass": "contrabass",
	"upright-bass": "contrabass",
	"harp": "orchestral-harp",
	"strings": "string-ensemble-1",
	"choir": "choir-aahs",
	"horn": "french-horn",
	"sax": "alto-sax",
	"saxophone": "alto-sax",
	"bagpipe": "bagpipes",
	"steel-drum": "steel-drums",
}

PERCUSSION = StockInstrument(name="percussion", program=0, percussion=True)


def _build_stock_map () -> typing.Dict[str, StockInstrument]:

	stock: typing.Dict[str, StockInstrument] = {}

	for program, name in enumerate(GM_PROGRAM_NAMES):
		stock[f"midi-{name}"] = StockInstrument(name=f"midi-{name}", program=program)

	for alias, name in ALIASES.items():
		stock[alias] = StockInstrument(name=alias, program=GM_PROGRAM_NAMES.index(name))

	# Names that are unambiguous on their own (violin, cello, trumpet...) work without the prefix.
	for program, name in enumerate(GM_PROGRAM_NAMES):
		stock.setdefault(name, StockInstrument(name=name, program=program))

	stock["percussion"] = PERCUSSION
	stock["midi-percussion"] = dataclasses.replace(PERCUSSION, name="midi-percussion")

	return stock


STOCK_INSTRUMENTS: typing.Dict[str, StockInstrument] = _build_stock_map()


def lookup (name: str) -> typing.Optional[StockInstrument]:

	"""
	Return the stock instrument for a name, or None if the name is not known.
	"""

	return STOCK_INSTRUMENTS.get(name)
