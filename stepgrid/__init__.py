"""
stepgrid - a lookahead step-sequencer core for Python.

stepgrid turns a grid of on/off steps into precisely timed instrument
triggers. It owns the timing and the pattern data, and leaves sound to a
playback collaborator that accepts "play instrument X at time T with
volume V".

- **Lookahead scheduling.** A cooperative asyncio pass dispatches every
  step that falls within a short horizon of the playback clock, stamped
  with the step's own time, so polling jitter never reaches the audio.
- **Pattern banks.** Several switchable grids (4 x 8 tracks x 16 steps by
  default) share one set of track controls: instrument, name, volume,
  mute and solo.
- **Transport.** Play, pause and stop with resume from the paused step.
- **Generators.** Euclidean rhythms, a catalog of canned fills
  (``kick-4floor``, ``hat-trap``, ``snare-backbeat``, ...), ``every-N``
  and density-weighted randomization.
- **Persistence.** JSON snapshots with upgrading of older, narrower
  documents.
- **Adapters.** MIDI playback via ``mido`` and an OSC bridge via
  ``python-osc``.

Minimal example:

    ```python
    import asyncio
    import stepgrid

    async def main ():
        seq = stepgrid.Sequencer(stepgrid.MidiPlayback(), initial_bpm=124)
        seq.store.fill_track(0, "kick-4floor")
        seq.store.fill_track(2, "euclidean-7")
        seq.on_event("step_change", lambda step: print(step))
        seq.play()
        await asyncio.sleep(8)
        seq.stop()

    asyncio.run(main())
    ```

Package-level exports: ``Sequencer``, ``PatternStore``, ``MidiPlayback``.
"""

import stepgrid.pattern
import stepgrid.playback
import stepgrid.sequencer


Sequencer = stepgrid.sequencer.Sequencer
PatternStore = stepgrid.pattern.PatternStore
MidiPlayback = stepgrid.playback.MidiPlayback
