# midi/parser.py
import io
import os
from bisect import bisect_right
from typing import List, Tuple, Union
import mido
from notes.model import Note
from errors import DecodeFailure

DRUM_CH = 9  # GM: ch10(索引9)為打擊，唱盤打不出來
DEFAULT_TEMPO = 500000  # default 120 bpm

MidiSource = Union[str, os.PathLike, bytes, bytearray]

def _open(source: MidiSource) -> mido.MidiFile:
    try:
        if isinstance(source, (bytes, bytearray)):
            return mido.MidiFile(file=io.BytesIO(bytes(source)))
        return mido.MidiFile(source)
    except (OSError, EOFError, ValueError, KeyError, IndexError, TypeError) as e:
        raise DecodeFailure(f"Unreadable MIDI input: {e}") from e

class _TempoMap:
    """tick → seconds using every set_tempo in the file, whichever track holds it."""
    def __init__(self, mid: mido.MidiFile):
        self.tpb = mid.ticks_per_beat
        changes = []
        for track in mid.tracks:
            tick = 0
            for msg in track:
                tick += msg.time
                if msg.type == 'set_tempo':
                    changes.append((tick, msg.tempo))
        changes.sort(key=lambda c: c[0])
        self.ticks = [0]
        self.tempos = [DEFAULT_TEMPO]
        self.seconds = [0.0]
        for tick, tempo in changes:
            if tick == self.ticks[-1]:
                self.tempos[-1] = tempo
                continue
            sec = self.seconds[-1] + mido.tick2second(tick - self.ticks[-1], self.tpb, self.tempos[-1])
            self.ticks.append(tick)
            self.tempos.append(tempo)
            self.seconds.append(sec)

    def to_seconds(self, tick: int) -> float:
        i = bisect_right(self.ticks, tick) - 1
        return self.seconds[i] + mido.tick2second(tick - self.ticks[i], self.tpb, self.tempos[i])

def _track_notes(track: mido.MidiTrack, tempo_map: _TempoMap) -> List[Note]:
    tick = 0
    active = {}
    notes: List[Note] = []
    for msg in track:
        tick += msg.time
        if msg.is_meta:
            continue
        if msg.type == 'note_on' and msg.velocity > 0:
            active[(msg.channel, msg.note)] = (tempo_map.to_seconds(tick), msg.velocity)
        elif msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
            key = (msg.channel, msg.note)
            if key in active:
                st, vel = active.pop(key)
                notes.append(Note(pitch=msg.note, start=st, end=tempo_map.to_seconds(tick), velocity=vel, channel=msg.channel))
    # close dangling
    end = tempo_map.to_seconds(tick)
    for (ch, p), (st, vel) in active.items():
        notes.append(Note(pitch=p, start=st, end=end, velocity=vel, channel=ch))
    notes.sort(key=lambda n: (n.start, n.pitch))
    return [n for n in notes if n.channel != DRUM_CH]

def parse_midi_tracks(source: MidiSource) -> List[List[Note]]:
    """Notes per track, percussion channel removed. Raises DecodeFailure."""
    mid = _open(source)
    try:
        tempo_map = _TempoMap(mid)
        return [_track_notes(t, tempo_map) for t in mid.tracks]
    except (ValueError, KeyError, AttributeError) as e:
        raise DecodeFailure(f"Malformed MIDI input: {e}") from e

def parse_midi_to_notes(source: MidiSource) -> Tuple[List[Note], float]:
    notes: List[Note] = []
    for track in parse_midi_tracks(source):
        notes.extend(track)
    total = max((n.end for n in notes), default=0.0)
    return notes, total
