"""Constants for stepgrid.

This package contains:

- ``stepgrid.constants`` - Session dimensions, tempo limits, scheduler timing and
  default track bindings (defined here)
- ``stepgrid.constants.gm_drums`` - General MIDI drum notes keyed by instrument id
"""

# Session dimensions

DEFAULT_TRACK_COUNT = 8
DEFAULT_STEP_COUNT = 16
DEFAULT_PATTERN_COUNT = 4

# Tempo

MIN_BPM = 60
MAX_BPM = 200
DEFAULT_BPM = 120
STEPS_PER_BEAT = 4						# each step is a sixteenth note

# Scheduler timing (seconds)

LOOKAHEAD_SECONDS = 0.1					# horizon queued ahead of the playback clock
SCHEDULE_INTERVAL_SECONDS = 0.025		# polling cadence of the scheduler pass

# Track controls

DEFAULT_VOLUME = 0.7

DEFAULT_INSTRUMENTS = ['kick', 'snare', 'hihat', 'clap', 'tom', 'openhat', 'bass', 'perc']
DEFAULT_TRACK_NAMES = ['Kick', 'Snare', 'Hi-Hat', 'Clap', 'Tom', 'Open HH', 'Bass', 'Perc']

# Persistence

STORAGE_KEY_PREFIX = "sequencer_"
AUTOSAVE_SLOT = "autosave"
