"""Interactive console for building a score line by line.

Usage::

    scoreline
    scoreline --engine none
    python -m scoreline --device "IAC Driver Bus 1"

Type notation at the prompt and hear just what you added.  The prompt shows
the instruments the next line of bare music data will go to.  Lines starting
with ``:`` are session commands (``:help`` lists them).  Type ``quit`` or
press Ctrl+D to leave; the score text is printed on the way out.
"""

import logging
import re
import sys
import traceback
import typing

import scoreline.errors
import scoreline.midi_export
import scoreline.session


logger = logging.getLogger(__name__)

ASCII_ART = "\n".join([
	"                          _ _",
	" ___  ___ ___  _ __ ___  | (_)_ __   ___",
	"/ __|/ __/ _ \\| '__/ _ \\ | | | '_ \\ / _ \\",
	"\\__ \\ (_| (_) | | |  __/ | | | | | |  __/",
	"|___/\\___\\___/|_|  \\___| |_|_|_| |_|\\___|",
])

_QUIT_RE = re.compile(r"^\s*:?(quit|exit|bye)\s*$")
_COMMAND_RE = re.compile(r"^\s*:(\S+)\s*(.*?)\s*$")


def banner (version: str) -> str:

	"""Return the start-up banner."""

	return f"{ASCII_ART}\n\n            v{version}\n         repl session"


class Console:

	"""
	Read-evaluate-play loop around a session.

	Any error raised by a turn or a command is reported and the loop carries
	on; the session only ever holds fully committed state.
	"""

	def __init__ (
		self,
		session: scoreline.session.Session,
		input_fn: typing.Optional[typing.Callable[[str], str]] = None,
		out: typing.Optional[typing.TextIO] = None,
		err: typing.Optional[typing.TextIO] = None
	) -> None:

		self.session = session
		self._input = input_fn if input_fn is not None else input
		self._out = out if out is not None else sys.stdout
		self._err = err if err is not None else sys.stderr
		self.done = False

		self.commands: typing.Dict[str, typing.Tuple[typing.Callable[[str], None], str]] = {
			"help": (self._help, "List the available commands"),
			"new": (self._new, "Start a new, empty score"),
			"score": (self._score, "Print the text of the score so far"),
			"play": (self._play, "Play the whole score from the start"),
			"save": (self._save, "Save the score text to FILE"),
			"load": (self._load, "Replace the score with the contents of FILE"),
			"export": (self._export, "Write the score to FILE as a standard MIDI file"),
		}

	def run (self) -> None:

		"""Read lines until quit or end of input, then close the session."""

		try:

			while not self.done:

				try:
					line = self._input(self.session.prompt())
				except KeyboardInterrupt:
					self._print()
					continue
				except EOFError:
					self._print()
					self.quit()
					break

				self.handle(line)

		finally:
			self.session.close()

	def handle (self, line: str) -> None:

		"""Handle one line of input: notation, a command, or quit."""

		if not line.strip():
			return

		if _QUIT_RE.match(line):
			self.quit()
			return

		try:
			command = _COMMAND_RE.match(line)

			if command is not None:
				self.command(command.group(1), command.group(2))
			else:
				self.session.run_turn(line)

		except scoreline.errors.ScorelineError as exc:
			self._print(f"{exc}", file=self._err)

		except Exception:
			self._print(traceback.format_exc(), file=self._err)

	def command (self, name: str, argument: str) -> None:

		entry = self.commands.get(name)

		if entry is None:
			self._print(f"Unknown command :{name} - type :help for a list", file=self._err)
			return

		handler, _ = entry
		handler(argument)

	def quit (self) -> None:

		"""Print the score text and stop the loop."""

		self._print()
		self._print(f"score:\n{self.session.score_text}")
		self.done = True

	def _print (self, text: str = "", file: typing.Optional[typing.TextIO] = None) -> None:

		print(text, file=file if file is not None else self._out)

	def _require_argument (self, name: str, argument: str) -> bool:

		if not argument:
			self._print(f"Usage: :{name} FILE", file=self._err)
			return False

		return True

	def _help (self, argument: str) -> None:

		for name, (_, description) in self.commands.items():
			self._print(f"  :{name:<8} {description}")

		self._print(f"  :{'quit':<8} Print the score and leave")

	def _new (self, argument: str) -> None:

		self.session.reset()
		self._print("New score started.")

	def _score (self, argument: str) -> None:

		self._print(self.session.score_text)

	def _play (self, argument: str) -> None:

		self.session.replay()

	def _save (self, argument: str) -> None:

		if not self._require_argument("save", argument):
			return

		with open(argument, 'w', encoding='utf-8') as f:
			f.write(self.session.score_text + "\n")

		self._print(f"Saved {argument}")

	def _load (self, argument: str) -> None:

		if not self._require_argument("load", argument):
			return

		with open(argument, 'r', encoding='utf-8') as f:
			text = f.read()

		snapshot = self.session.load(text)
		self._print(f"Loaded {argument} ({len(snapshot.events)} events)")

	def _export (self, argument: str) -> None:

		if not self._require_argument("export", argument):
			return

		scoreline.midi_export.export_midi(self.session.snapshot, argument)
		self._print(f"Exported {argument}")
