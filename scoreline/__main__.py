import argparse
import dataclasses
import logging
import os
import sys
import typing

import scoreline
import scoreline.config
import scoreline.errors
import scoreline.midi_player
import scoreline.midi_utils
import scoreline.repl
import scoreline.session


logger = logging.getLogger(__name__)


def parse_args (argv: typing.Optional[typing.List[str]] = None) -> argparse.Namespace:

	parser = argparse.ArgumentParser(prog="scoreline", description="Build a score line by line and hear each addition")
	parser.add_argument("--config", default=None, help=f"YAML config file (default: {scoreline.config.DEFAULT_CONFIG_PATH} if present)")
	parser.add_argument("--device", default=None, help="MIDI output device name")
	parser.add_argument("--engine", choices=scoreline.config.ENGINES, default=None, help="Playback engine (default: midi)")
	parser.add_argument("--foreground", action="store_true", help="Wait for each line to finish playing before reading the next")
	parser.add_argument("--no-instruments", action="store_true", help="Do not send program changes")
	parser.add_argument("--list-devices", action="store_true", help="List MIDI output devices and exit")
	parser.add_argument("--verbose", "-v", action="store_true", help="Log debug messages")

	return parser.parse_args(argv)


def build_options (args: argparse.Namespace, config: typing.Dict[str, typing.Any]) -> scoreline.config.PlaybackOptions:

	"""
	Merge the config file with command line flags; flags win.
	"""

	options = scoreline.config.PlaybackOptions.from_config(config)

	overrides: typing.Dict[str, typing.Any] = {}

	if args.engine is not None:
		overrides["engine"] = args.engine

	if args.device is not None:
		overrides["output_device"] = args.device

	if args.foreground:
		overrides["background"] = False

	if args.no_instruments:
		overrides["load_instruments"] = False

	return dataclasses.replace(options, **overrides)


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Main entry point for the scoreline console.
	"""

	args = parse_args(argv)

	config_path = args.config or scoreline.config.DEFAULT_CONFIG_PATH
	config = scoreline.config.load_config(config_path) if args.config or os.path.exists(config_path) else {}

	level_name = "DEBUG" if args.verbose else str(config.get('logging', {}).get('level', 'WARNING')).upper()
	logging.basicConfig(level=getattr(logging, level_name, logging.WARNING))

	if args.list_devices:
		for name in scoreline.midi_utils.list_output_names():
			print(name)
		return

	options = build_options(args, config)

	print()
	print(scoreline.repl.banner(scoreline.__version__), "\n")

	if options.engine == "midi":
		print("Loading MIDI output... ", end="", flush=True)

	try:
		player = scoreline.midi_player.create_player(options)
	except scoreline.errors.PlayerError as exc:
		print()
		print(f"{exc}. Run with --engine none to build a score without sound.")
		sys.exit(1)

	if options.engine == "midi":
		print("done.\n")

	session = scoreline.session.Session(player=player, options=options)

	scoreline.repl.Console(session).run()


if __name__ == "__main__":
	main()
