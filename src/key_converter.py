#!/usr/bin/env python3
"""
key_converter.py - Converts key presses into hiragana / katakana
キー入力をひらがな・カタカナに変換する

================================================================================
STATE MACHINE / 状態マシン
================================================================================

In TRANSLITERATE mode every accepted key press is appended to the recorded
sequence, and the WHOLE recorded sequence is looked up in the chord table:

TRANSLITERATEモードでは、受け付けたキー入力を記録列に追加し、
記録列「全体」を変換テーブルで検索する:

    recorded=[]        K  →  [K]        no match  → PENDING
    recorded=[K]       A  →  [K, A]     "か"      → PRODUCED("か"), cleared
    recorded=[]        Q  →  (not accepted)       → REJECTED, unchanged

At most 4 key presses are kept. A fifth one pushes out the oldest, so a user
who mistyped can simply keep typing:

最大4打鍵まで保持する。5打鍵目は最も古い打鍵を押し出すので、
打ち間違えてもそのまま入力を続けられる:

    [B, C, D, F] + G  →  [C, D, F, G]

In PASSTHROUGH mode every key press produces its own character.
PASSTHROUGHモードでは各キー入力がそのままの文字を出力する。

================================================================================
HOST INTEGRATION / ホスト側の使い方
================================================================================

    emission = converter.record_chord(Chord.from_char(typed))
    if emission.is_produced:   insert emission.text
    elif emission.is_rejected: let the editor insert the key itself
    status_bar = converter.current_sequence_label()

    Backspace: if not converter.undo_last(): delete a character as usual
    Escape:    converter.clear()

================================================================================
"""

import logging
from collections import deque
from dataclasses import dataclass

from chord_table import MAX_CHORD_SEQUENCE_LENGTH, Chord, ChordTable, sequence_label

logger = logging.getLogger(__name__)

MODE_PASSTHROUGH = 'passthrough'
MODE_TRANSLITERATE = 'transliterate'
INPUT_MODE_NAMES = (MODE_PASSTHROUGH, MODE_TRANSLITERATE)

# Keys that can start or continue a kana; independent of the loaded tables
ACCEPTED_KEYS = frozenset('BCDFGHJKMNRPSTWZAIEUOY')
ACCEPTED_CHORDS = frozenset(
    [Chord(key, shift) for key in ACCEPTED_KEYS for shift in (False, True)]
    + [Chord('.', False)]
)

EMISSION_PRODUCED = 'produced'
EMISSION_PENDING = 'pending'
EMISSION_REJECTED = 'rejected'


@dataclass(frozen=True)
class Emission:
    """Result of one key press: produced text, pending, or rejected."""
    status: str
    text: str = ''

    @classmethod
    def produced(cls, text):
        return cls(EMISSION_PRODUCED, text)

    @property
    def is_produced(self):
        return self.status == EMISSION_PRODUCED

    @property
    def is_pending(self):
        return self.status == EMISSION_PENDING

    @property
    def is_rejected(self):
        return self.status == EMISSION_REJECTED


PENDING = Emission(EMISSION_PENDING)
REJECTED = Emission(EMISSION_REJECTED)


class KeyConverter:
    """
    Key press to kana converter for one input session.

    Attributes:
        table: The ChordTable used for TRANSLITERATE mode
    """

    def __init__(self, table=None, mode=MODE_TRANSLITERATE):
        self.table = table if table is not None else ChordTable()
        self._recorded = deque(maxlen=MAX_CHORD_SEQUENCE_LENGTH)
        self._mode = MODE_TRANSLITERATE
        self.set_mode(mode)

    @property
    def mode(self):
        return self._mode

    @property
    def recorded(self):
        return tuple(self._recorded)

    def set_mode(self, mode):
        """Switch mode; any recorded key presses are dropped."""
        if mode not in INPUT_MODE_NAMES:
            raise ValueError(f'Unknown input mode: {mode}')
        logger.debug(f'KeyConverter mode: {self._mode} -> {mode}')
        self._mode = mode
        self.clear()

    def clear(self):
        self._recorded.clear()

    def is_accepted_chord(self, chord):
        if self._mode == MODE_PASSTHROUGH:
            return True
        return chord in ACCEPTED_CHORDS

    def record_chord(self, chord):
        """
        Process one key press.
        キー入力を1つ処理する。

        Returns:
            Emission: Emission.produced(text) when a kana is complete,
                      PENDING while more keys are needed,
                      REJECTED when the key is not used for kana input
                      (the recorded keys are left untouched)
        """
        if self._mode == MODE_PASSTHROUGH:
            return Emission.produced(chord.text)

        if not self.is_accepted_chord(chord):
            return REJECTED

        # deque(maxlen=...) drops the oldest key press on overflow
        self._recorded.append(chord)
        text = self.table.lookup(self._recorded)
        if text is None:
            logger.debug(f'KeyConverter pending: "{self.current_sequence_label()}"')
            return PENDING

        logger.debug(f'KeyConverter: "{self.current_sequence_label()}" -> "{text}"')
        self._recorded.clear()
        return Emission.produced(text)

    def undo_last(self):
        """
        Remove the last recorded key press.

        Returns:
            bool: False when nothing was recorded, in which case the caller
                  should fall back to its ordinary delete behavior
        """
        if not self._recorded:
            return False
        self._recorded.pop()
        return True

    def current_sequence_label(self):
        """The recorded keys as shown in the status bar, e.g. "K, Y"."""
        return sequence_label(self._recorded)
