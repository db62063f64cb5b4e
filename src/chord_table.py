#!/usr/bin/env python3
"""
chord_table.py - Loader for the key-sequence to kana tables
キー列からかなへの変換テーブルの読み込み

================================================================================
TABLE FORMAT / テーブル形式
================================================================================

Two plain text tables are shipped: hiragana_keys.txt (keys typed without
Shift) and katakana_keys.txt (the same keys typed with Shift held).

2つのテキストテーブルを同梱: hiragana_keys.txt（Shiftなしで打つキー）と
katakana_keys.txt（Shiftを押しながら打つ同じキー）。

    ; comment line / コメント行
    ka   304b            →  K, A              → "か"
    kya  304d,3083       →  K, Y, A           → "きゃ"

The first field is the key command, one character per key press. The second
field is a comma separated list of hexadecimal code points forming the output.

================================================================================
"""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

COMMENT_PREFIX = ';'
MAX_CHORD_SEQUENCE_LENGTH = 4


class ChordTableUnavailableError(OSError):
    """A table file is missing or cannot be read."""


@dataclass(frozen=True)
class Chord:
    """
    One key press: the key symbol ("K", ".") and whether Shift was held.

    `literal` is the character actually typed, when known; it is not part of
    the chord's identity.
    """
    key: str
    shift: bool = False
    literal: str = field(default='', compare=False, repr=False)

    @classmethod
    def from_char(cls, char):
        """
        Chord for a typed character; an upper-case letter means Shift was held.

            >>> Chord.from_char('k')
            Chord(key='K', shift=False)
            >>> Chord.from_char('K')
            Chord(key='K', shift=True)

        Characters whose upper case is not a single character ("ß" -> "SS")
        keep their own key symbol.
        """
        if char.isalpha() and char.isupper():
            return cls(char, True, char)
        key = char.upper()
        if len(key) != 1:
            key = char
        return cls(key, False, char)

    @property
    def text(self):
        """The literal character this key press would type."""
        if self.literal:
            return self.literal
        return self.key if self.shift else self.key.lower()

    @property
    def label(self):
        return f'Shift+{self.key}' if self.shift else self.key


def sequence_label(chords):
    """Render chords the way key sequences are usually shown: "K, Shift+A"."""
    return ', '.join(chord.label for chord in chords)


class ChordTable:
    """
    Read-only mapping from chord sequences to output text.

    When the same sequence is bound twice, the first binding is kept.
    """

    def __init__(self, bindings=None):
        self._bindings = {}
        for chords, text in bindings or ():
            self.add(chords, text)

    def add(self, chords, text):
        chords = tuple(chords)
        if chords in self._bindings:
            logger.debug(f'Duplicate binding for "{sequence_label(chords)}" ignored')
            return False
        self._bindings[chords] = text
        return True

    def lookup(self, chords):
        """Return the text bound to exactly this sequence, or None."""
        return self._bindings.get(tuple(chords))

    def __len__(self):
        return len(self._bindings)

    def __contains__(self, chords):
        return tuple(chords) in self._bindings

    def items(self):
        return self._bindings.items()


def parse_table_line(line, shift):
    """
    Parse one table line.

    Args:
        line: A line of the table file
        shift: True for the katakana (Shift) table

    Returns:
        tuple: (chords, text), or (None, None) for comments, blank lines and
               lines that cannot be used
    """
    line = line.strip()
    if not line or line.startswith(COMMENT_PREFIX):
        return None, None

    fields = line.split()
    if len(fields) != 2:
        logger.debug(f'Skipping table line with {len(fields)} fields: {line}')
        return None, None
    key_command, code_points = fields

    if len(key_command) > MAX_CHORD_SEQUENCE_LENGTH:
        logger.debug(f'Skipping key command longer than {MAX_CHORD_SEQUENCE_LENGTH} keys: {key_command}')
        return None, None

    text = ''
    for part in code_points.split(','):
        try:
            text += chr(int(part, 16))
        except ValueError:
            # not a hex code point (or out of the Unicode range); drop it
            continue
    if not text:
        logger.debug(f'Skipping table line without output: {line}')
        return None, None

    chords = tuple(Chord(c.upper(), shift) for c in key_command)
    return chords, text


def read_table(path, shift):
    """
    Read every binding of one table file.

    Returns:
        list: (chords, text) tuples in file order

    Raises:
        ChordTableUnavailableError: The file is missing or unreadable
    """
    bindings = []
    try:
        with open(path, encoding='utf-8') as f:
            for line in f:
                chords, text = parse_table_line(line, shift)
                if chords is not None:
                    bindings.append((chords, text))
    except (OSError, UnicodeDecodeError) as e:
        raise ChordTableUnavailableError(f'Cannot read chord table: {path} - {e}') from e
    logger.debug(f'Read {len(bindings)} bindings from {path}')
    return bindings


def load(hiragana_path, katakana_path):
    """
    Load the unshifted (hiragana) and shifted (katakana) tables.

    A table that cannot be read is skipped with a warning; the result then
    holds whatever did load, possibly nothing.

    Returns:
        ChordTable
    """
    table = ChordTable()
    for path, shift in ((hiragana_path, False), (katakana_path, True)):
        try:
            for chords, text in read_table(path, shift):
                table.add(chords, text)
        except ChordTableUnavailableError as e:
            logger.warning(f'{e}; continuing without it')
    if len(table) == 0:
        logger.warning('No chord bindings loaded - kana input will never produce text')
    else:
        logger.info(f'Loaded {len(table)} chord bindings')
    return table
