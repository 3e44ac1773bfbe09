import dataclasses
import logging
import os
import typing

import yaml


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "scoreline.yaml"

ENGINES = ("midi", "none")


@dataclasses.dataclass(frozen=True)
class PlaybackOptions:

	"""
	How a turn's new events are auditioned.

	Attributes:
		engine: ``"midi"`` to play through a MIDI output port, ``"none"`` to
			only log what would be played.
		load_instruments: Send program changes for instruments before their
			first notes play.
		background: Render on a daemon thread so the next line can be typed
			while the previous one is still sounding.
		output_device: MIDI output port name. When omitted, the only available
			port is used, or the user is asked to pick one.
	"""

	engine: str = "midi"
	load_instruments: bool = True
	background: bool = True
	output_device: typing.Optional[str] = None

	def __post_init__ (self) -> None:

		if self.engine not in ENGINES:
			raise ValueError(f"Unknown playback engine {self.engine!r} (expected one of: {', '.join(ENGINES)})")

	@classmethod
	def from_config (cls, config: typing.Dict[str, typing.Any]) -> "PlaybackOptions":

		"""
		Build options from the ``playback`` and ``midi`` sections of a config dict.
		"""

		playback = config.get('playback', {}) or {}
		midi = config.get('midi', {}) or {}

		return cls(
			engine = playback.get('engine', cls.engine),
			load_instruments = bool(playback.get('load_instruments', cls.load_instruments)),
			background = bool(playback.get('background', cls.background)),
			output_device = midi.get('device_name', cls.output_device)
		)


def load_config (config_path: str = DEFAULT_CONFIG_PATH) -> typing.Dict[str, typing.Any]:

	"""
	Load configuration from a YAML file.

	A missing file is not an error; the defaults apply.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		config = yaml.safe_load(f)

	if config is None:
		return {}

	if not isinstance(config, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping, got {type(config).__name__}")

	return config
