"""General MIDI Level 1 drum notes for the built-in instrument ids.

The MIDI playback adapter uses ``GM_DRUM_MAP`` to turn an instrument id such as
``"kick"`` into a note number on channel 10 (0-indexed channel 9).  Ids that are
not in the map fall back to ``DEFAULT_NOTE``.
"""

import typing


GM_DRUM_CHANNEL = 9

KICK_1 = 36
SIDE_STICK = 37
SNARE_1 = 38
HAND_CLAP = 39
LOW_FLOOR_TOM = 41
HI_HAT_CLOSED = 42
HI_HAT_PEDAL = 44
LOW_TOM = 45
HI_HAT_OPEN = 46
HIGH_MID_TOM = 48
CRASH_1 = 49
RIDE_1 = 51
COWBELL = 56
HIGH_BONGO = 60
SHAKER = 70					# GM "Maracas"
CLAVES = 75


DEFAULT_NOTE = SIDE_STICK


GM_DRUM_MAP: typing.Dict[str, int] = {
	"kick": KICK_1,
	"snare": SNARE_1,
	"hihat": HI_HAT_CLOSED,
	"clap": HAND_CLAP,
	"tom": LOW_TOM,
	"openhat": HI_HAT_OPEN,
	"bass": LOW_FLOOR_TOM,
	"perc": SHAKER,
	"pedalhat": HI_HAT_PEDAL,
	"hightom": HIGH_MID_TOM,
	"crash": CRASH_1,
	"ride": RIDE_1,
	"cowbell": COWBELL,
	"bongo": HIGH_BONGO,
	"shaker": SHAKER,
	"claves": CLAVES,
	"rim": SIDE_STICK,
}


def note_for (instrument_id: str) -> int:

	"""Return the GM note for an instrument id, or ``DEFAULT_NOTE`` when unmapped."""

	return GM_DRUM_MAP.get(instrument_id, DEFAULT_NOTE)
