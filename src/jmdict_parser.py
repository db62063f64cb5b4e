#!/usr/bin/env python3
"""
jmdict_parser.py - Reader for the JMdict XML file
JMdict XMLファイルの読み込み

================================================================================
GRAMMAR / 文法
================================================================================

Only the following part of the JMdict DTD is read; every other element is
skipped silently so newer releases of the file still load:

JMdict DTDの以下の部分のみを読む。それ以外の要素は黙って読み飛ばすので、
新しい版のファイルも読み込める:

    entry
      ├── ent_seq
      ├── k_ele   { keb, ke_inf*, ke_pri* }
      ├── r_ele   { reb, re_nokanji?, re_restr?, re_inf?, re_pri* }
      └── sense   { pos*, gloss*, lsource*, field*, misc*, dial*, s_inf* }

See http://www.edrdg.org/jmdict/jmdict_dtd_h.html

================================================================================
HOW IT WORKS / 動作原理
================================================================================

The file is walked ONCE with a forward-only cursor over start/end events.
Each block has its own reader which consumes events until it sees the end
tag of its own element:

ファイルは開始/終了イベントの前進のみのカーソルで一度だけ走査される。
各ブロックは専用のリーダーを持ち、自身の終了タグまでイベントを消費する:

    read() ──► parse()
                 └── _read_entry()           until </entry>
                       ├── _read_kanji_element()    until </k_ele>
                       ├── _read_reading_element()  until </r_ele>
                       └── _read_sense()            until </sense>

A finished <entry> is dropped from the lxml tree right away, so memory stays
bounded by a single entry even for the full 50MB+ dictionary.

================================================================================
"""

import gzip
import logging
import os

from lxml import etree

from jmdict import JMdict, JMdictEntry, Kanji, LoanwordSource, Reading, Sense

logger = logging.getLogger(__name__)

# XML tag names
TAG_ENTRY = 'entry'
TAG_SEQUENCE_NUMBER = 'ent_seq'
TAG_KANJI_ELEMENT = 'k_ele'
TAG_KANJI_PHRASE = 'keb'
TAG_KANJI_INFO = 'ke_inf'
TAG_KANJI_PRIORITY = 'ke_pri'
TAG_READING_ELEMENT = 'r_ele'
TAG_READING_PHRASE = 'reb'
TAG_READING_NO_KANJI = 're_nokanji'
TAG_READING_RESTRICTION = 're_restr'
TAG_READING_INFO = 're_inf'
TAG_READING_PRIORITY = 're_pri'
TAG_SENSE = 'sense'
TAG_PART_OF_SPEECH = 'pos'
TAG_GLOSS = 'gloss'
TAG_LOANWORD_SOURCE = 'lsource'
TAG_FIELD_OF_APPLICATION = 'field'
TAG_MISC = 'misc'
TAG_DIALECT = 'dial'
TAG_INFO = 's_inf'

# lsource attributes
ATTRIBUTE_TYPE = 'ls_type'
ATTRIBUTE_WASEIEIGO = 'ls_wasei'

DEFAULT_LOANWORD_LANGUAGE = 'full'

GZIP_MAGIC = b'\x1f\x8b'


class LexiconNotFoundError(FileNotFoundError):
    """The lexicon file does not exist."""


class LexiconUnreadableError(OSError):
    """The lexicon file exists but cannot be opened."""


class MalformedLexiconError(ValueError):
    """The lexicon file is not well-formed XML."""


class _EventCursor:
    """
    Forward-only cursor over the (event, element) pairs of the XML stream.
    Every reader below advances the same cursor.
    """

    def __init__(self, source):
        self._events = etree.iterparse(
            source,
            events=('start', 'end'),
            load_dtd=True,
            no_network=True,
            huge_tree=True,
        )

    def __iter__(self):
        return self

    def __next__(self):
        return next(self._events)


def _read_element_text(cursor, elem):
    """Consume events up to the end of `elem` and return its text."""
    depth = 1
    for event, _ in cursor:
        depth += 1 if event == 'start' else -1
        if depth == 0:
            break
    return elem.text or ''


def _read_kanji_element(cursor):
    text = ''
    info = []
    priorities = []
    for event, elem in cursor:
        if event == 'end':
            if elem.tag == TAG_KANJI_ELEMENT:
                break
            continue
        if elem.tag == TAG_KANJI_PHRASE:
            text = _read_element_text(cursor, elem)
        elif elem.tag == TAG_KANJI_INFO:
            info.append(_read_element_text(cursor, elem))
        elif elem.tag == TAG_KANJI_PRIORITY:
            priorities.append(_read_element_text(cursor, elem))
    return Kanji(text=text, info=tuple(info), priorities=tuple(priorities))


def _read_reading_element(cursor):
    text = ''
    no_kanji = None
    restriction = None
    info = None
    priorities = []
    for event, elem in cursor:
        if event == 'end':
            if elem.tag == TAG_READING_ELEMENT:
                break
            continue
        if elem.tag == TAG_READING_PHRASE:
            text = _read_element_text(cursor, elem)
        elif elem.tag == TAG_READING_NO_KANJI:
            no_kanji = _read_element_text(cursor, elem)
        elif elem.tag == TAG_READING_RESTRICTION:
            restriction = _read_element_text(cursor, elem)
        elif elem.tag == TAG_READING_INFO:
            info = _read_element_text(cursor, elem)
        elif elem.tag == TAG_READING_PRIORITY:
            priorities.append(_read_element_text(cursor, elem))
    return Reading(text=text, no_kanji=no_kanji, restriction=restriction,
                   info=info, priorities=tuple(priorities))


def _read_loanword_source(cursor, elem):
    language = DEFAULT_LOANWORD_LANGUAGE
    wasei = None
    if ATTRIBUTE_TYPE in elem.attrib:
        language = elem.get(ATTRIBUTE_TYPE)
    if ATTRIBUTE_WASEIEIGO in elem.attrib:
        wasei = elem.get(ATTRIBUTE_WASEIEIGO)
    # The element text always replaces the language, attribute or not.
    # FIXME: ls_type ("full"/"part") says how much of the word is borrowed and
    # belongs in `description`; the text is the source word, not a language.
    language = _read_element_text(cursor, elem)
    return LoanwordSource(language=language, wasei=wasei)


def _read_sense(cursor):
    fields = {
        TAG_PART_OF_SPEECH: [],
        TAG_GLOSS: [],
        TAG_FIELD_OF_APPLICATION: [],
        TAG_MISC: [],
        TAG_DIALECT: [],
        TAG_INFO: [],
    }
    loanword_sources = []
    for event, elem in cursor:
        if event == 'end':
            if elem.tag == TAG_SENSE:
                break
            continue
        if elem.tag == TAG_LOANWORD_SOURCE:
            loanword_sources.append(_read_loanword_source(cursor, elem))
        elif elem.tag in fields:
            fields[elem.tag].append(_read_element_text(cursor, elem))
    return Sense(
        parts_of_speech=tuple(fields[TAG_PART_OF_SPEECH]),
        glosses=tuple(fields[TAG_GLOSS]),
        loanword_sources=tuple(loanword_sources),
        fields_of_application=tuple(fields[TAG_FIELD_OF_APPLICATION]),
        misc=tuple(fields[TAG_MISC]),
        dialect=tuple(fields[TAG_DIALECT]),
        notes=tuple(fields[TAG_INFO]),
    )


def _read_entry(cursor):
    sequence_id = ''
    kanji = []
    readings = []
    senses = []
    for event, elem in cursor:
        if event == 'end':
            if elem.tag == TAG_ENTRY:
                break
            continue
        if elem.tag == TAG_SEQUENCE_NUMBER:
            sequence_id = _read_element_text(cursor, elem)
        elif elem.tag == TAG_KANJI_ELEMENT:
            kanji.append(_read_kanji_element(cursor))
        elif elem.tag == TAG_READING_ELEMENT:
            readings.append(_read_reading_element(cursor))
        elif elem.tag == TAG_SENSE:
            senses.append(_read_sense(cursor))
    return JMdictEntry(sequence_id=sequence_id, kanji=tuple(kanji),
                       readings=tuple(readings), senses=tuple(senses))


def parse(source):
    """
    Parse JMdict XML from `source` and return the list of entries.
    JMdict XMLを解析し、エントリのリストを返す。

    Either every entry is returned or an exception is raised; a partially
    read list is never returned.

    Args:
        source: A file path or a binary file object

    Returns:
        list: JMdictEntry objects in file order

    Raises:
        MalformedLexiconError: The stream is not well-formed XML
    """
    entries = []
    cursor = _EventCursor(source)
    try:
        for event, elem in cursor:
            if event != 'start' or elem.tag != TAG_ENTRY:
                continue
            entries.append(_read_entry(cursor))
            # Drop the finished entry (and anything before it) from the tree
            elem.clear()
            while elem.getprevious() is not None:
                del elem.getparent()[0]
    except etree.XMLSyntaxError as e:
        logger.error(f'Malformed lexicon after {len(entries)} entries: {e}')
        raise MalformedLexiconError(str(e)) from e
    return entries


def _open_lexicon(path):
    """Open the file in binary mode, decompressing gzip files transparently."""
    with open(path, 'rb') as f:
        magic = f.read(2)
    if magic == GZIP_MAGIC:
        return gzip.open(path, 'rb')
    return open(path, 'rb')


def read(path):
    """
    Read the JMdict file at `path` (plain XML or gzip-compressed).

    Returns:
        JMdict: The loaded lexicon

    Raises:
        LexiconNotFoundError: `path` does not exist
        LexiconUnreadableError: `path` cannot be opened
        MalformedLexiconError: The file is not well-formed XML
    """
    if not os.path.exists(path):
        logger.error(f'Lexicon file not found: {path}')
        raise LexiconNotFoundError(f'Lexicon file not found: {path}')
    try:
        f = _open_lexicon(path)
    except OSError as e:
        logger.error(f'Failed to open lexicon file: {path} - {e}')
        raise LexiconUnreadableError(f'Failed to open lexicon file: {path}') from e
    with f:
        try:
            entries = parse(f)
        except (OSError, EOFError) as e:
            # truncated or corrupted gzip stream
            logger.error(f'Failed to read lexicon file: {path} - {e}')
            raise LexiconUnreadableError(f'Failed to read lexicon file: {path}') from e
    logger.info(f'Loaded lexicon: {path} ({len(entries)} entries)')
    return JMdict(entries)
