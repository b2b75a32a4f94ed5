import logging
import random
import typing

import stepgrid.constants


logger = logging.getLogger(__name__)


TEMPLATE_LENGTH = 16


# Literal one-bar templates, one slot per sixteenth note.
FILL_TEMPLATES: typing.Dict[str, typing.List[int]] = {
	"kick-4floor":    [1,0,0,0, 1,0,0,0, 1,0,0,0, 1,0,0,0],
	"kick-2step":     [1,0,0,0, 0,0,0,0, 1,0,0,0, 0,0,0,0],
	"kick-broken":    [1,0,0,0, 0,0,1,0, 0,1,0,0, 0,0,1,0],
	"kick-offbeat":   [0,0,1,0, 0,0,1,0, 0,0,1,0, 0,0,1,0],
	"hat-8ths":       [1,0,1,0, 1,0,1,0, 1,0,1,0, 1,0,1,0],
	"hat-16ths":      [1,1,1,1, 1,1,1,1, 1,1,1,1, 1,1,1,1],
	"hat-shuffle":    [1,0,1,0, 1,1,1,0, 1,0,1,0, 1,1,1,0],
	"hat-trap":       [1,0,1,0, 1,1,1,1, 1,0,1,0, 1,1,1,1],
	"snare-backbeat": [0,0,0,0, 1,0,0,0, 0,0,0,0, 1,0,0,0],
	"snare-halftime": [0,0,0,0, 0,0,0,0, 1,0,0,0, 0,0,0,0],
	"snare-clap":     [0,0,0,0, 1,0,0,1, 0,0,0,0, 1,0,0,0],
	"poly-3over4":    [1,0,0,0,0, 1,0,0,0,0, 1,0,0,0,0,0],
}

# Templates generated rather than written out: name -> Euclidean hit count.
EUCLIDEAN_TEMPLATES: typing.Dict[str, int] = {
	"poly-5over4": 5,
}

# Hit probability per instrument class for randomize.
DENSITY_BY_INSTRUMENT: typing.Dict[str, float] = {
	"kick": 0.25,
	"bass": 0.25,
	"snare": 0.2,
	"clap": 0.2,
	"hihat": 0.4,
	"openhat": 0.4,
	"pedalhat": 0.4,
	"perc": 0.5,
	"shaker": 0.5,
}

DEFAULT_DENSITY = 0.3


def generate_euclidean_sequence (hits: int, steps: int) -> typing.List[bool]:

	"""
	Distribute ``hits`` onsets as evenly as possible across ``steps`` slots.

	Slot ``i`` falls in bucket ``floor(hits * i / steps)``; a slot is active when
	it is the first slot or its bucket differs from the previous slot's.  The
	first slot is always an onset when ``hits > 0``.

	Out-of-range parameters are clamped rather than rejected: ``steps <= 0``
	gives an empty list, ``hits <= 0`` gives a silent row and ``hits > steps``
	is treated as ``hits == steps``.

	Example:
		```python
		generate_euclidean_sequence(4, 16)
		# [True, False, False, False, True, False, False, False, ...]
		```
	"""

	if steps <= 0:
		return []

	if hits <= 0:
		return [False] * steps

	hits = min(hits, steps)

	buckets = [(hits * i) // steps for i in range(steps)]

	return [i == 0 or buckets[i] != buckets[i - 1] for i in range(steps)]


def generate_every_n_sequence (interval: int, steps: int) -> typing.Optional[typing.List[bool]]:

	"""Activate every ``interval``-th step starting at step 0.

	Returns None for a non-positive interval so callers treat it like an unknown template.
	"""

	if interval <= 0:
		return None

	return [step % interval == 0 for step in range(steps)]


def tile_template (template: typing.List[int], steps: int) -> typing.List[bool]:

	"""Repeat (or cut) a literal template to ``steps`` slots."""

	return [bool(template[step % len(template)]) for step in range(steps)]


def _parse_count (pattern_type: str) -> typing.Optional[int]:

	"""Read the integer after the first dash of names like ``every-4`` or ``euclidean-5``."""

	_, _, suffix = pattern_type.partition("-")

	try:
		return int(suffix)
	except ValueError:
		return None


def resolve_fill (pattern_type: str, steps: int = stepgrid.constants.DEFAULT_STEP_COUNT) -> typing.Optional[typing.List[bool]]:

	"""
	Turn a fill name into a row of ``steps`` activations.

	Supported names are the keys of ``FILL_TEMPLATES`` and
	``EUCLIDEAN_TEMPLATES``, ``every-N`` (every Nth step) and ``euclidean-H``
	(H hits spread across the row).  Unknown or unparseable names return None;
	the caller leaves the track untouched.
	"""

	if pattern_type in FILL_TEMPLATES:
		return tile_template(FILL_TEMPLATES[pattern_type], steps)

	if pattern_type in EUCLIDEAN_TEMPLATES:
		return generate_euclidean_sequence(EUCLIDEAN_TEMPLATES[pattern_type], steps)

	if pattern_type.startswith("every-"):
		interval = _parse_count(pattern_type)
		if interval is not None:
			return generate_every_n_sequence(interval, steps)

	elif pattern_type.startswith("euclidean-"):
		hits = _parse_count(pattern_type)
		if hits is not None:
			return generate_euclidean_sequence(hits, steps)

	logger.debug(f"Unknown fill pattern {pattern_type!r}")

	return None


def density_for_instrument (instrument_id: str) -> float:

	"""Return the randomize hit probability for an instrument id."""

	return DENSITY_BY_INSTRUMENT.get(instrument_id, DEFAULT_DENSITY)


def generate_random_sequence (steps: int, density: float, rng: random.Random) -> typing.List[bool]:

	"""
	Draw each step independently, active with probability ``density``.

	Parameters:
		steps: Number of slots to generate
		density: Chance of each slot being active (0.0-1.0)
		rng: Random number generator instance

	Example:
		```python
		row = stepgrid.sequence_utils.generate_random_sequence(16, 0.4, random.Random(7))
		```
	"""

	return [rng.random() < density for _ in range(steps)]


def sequence_to_indices (sequence: typing.Sequence[bool]) -> typing.List[int]:

	"""Extract step indices where hits occur in a binary sequence."""

	return [i for i, v in enumerate(sequence) if v]
