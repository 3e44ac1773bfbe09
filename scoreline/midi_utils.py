import logging
import sys
import typing

import mido


logger = logging.getLogger(__name__)


def list_output_names () -> typing.List[str]:

	"""
	Return the MIDI output port names mido can see, or an empty list if the backend cannot be queried.
	"""

	try:
		return list(mido.get_output_names())
	except Exception as e:
		logger.error(f"Failed to list MIDI outputs: {e}")
		return []


def _prompt_choice (outputs: typing.List[str]) -> str:

	"""
	Ask the user to pick one of several output ports on the console.
	"""

	print("\nAvailable MIDI output devices:\n")
	for i, name in enumerate(outputs, 1):
		print(f"  {i}. {name}")
	print()

	while True:
		try:
			choice = int(input(f"Select a device (1-{len(outputs)}): "))
			if 1 <= choice <= len(outputs):
				break
		except ValueError:
			pass
		print(f"Enter a number between 1 and {len(outputs)}.")

	selected_name = outputs[choice - 1]

	print(f"\nTip: To skip this prompt, pass the device name directly:\n")
	print(f"  scoreline --device \"{selected_name}\"\n")

	return selected_name


def select_output_device (device_name: typing.Optional[str] = None, interactive: typing.Optional[bool] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Select and open a MIDI output device.

	If `device_name` is given, only that device is opened.  Otherwise the only
	available device is used; with several devices the user is asked to choose
	when stdin is a terminal, and the first one is used when it is not (piped
	input must not block on a prompt).

	Returns:
		A tuple of (device_name, midi_out_object) or (None, None) on failure.
	"""

	outputs = list_output_names()
	logger.info(f"Available MIDI outputs: {outputs}")

	if not outputs:
		logger.error("No MIDI output devices found.")
		return None, None

	if device_name is not None:

		if device_name not in outputs:
			logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
			return None, None

		selected_name = device_name

	elif len(outputs) == 1:
		selected_name = outputs[0]
		logger.info(f"One MIDI output found - using '{selected_name}'")

	else:
		if interactive is None:
			interactive = sys.stdin.isatty()

		if interactive:
			selected_name = _prompt_choice(outputs)
		else:
			selected_name = outputs[0]
			logger.warning(f"Several MIDI outputs found and no terminal to ask on - using '{selected_name}'")

	try:
		midi_out = mido.open_output(selected_name)
	except Exception as e:
		logger.error(f"Failed to open MIDI output '{selected_name}': {e}")
		return None, None

	logger.info(f"Opened MIDI output: {selected_name}")

	return selected_name, midi_out
