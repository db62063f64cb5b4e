#!/usr/bin/env python3
"""
jmdict.py - In-memory JMdict lexicon and reading search
JMdict辞書のメモリ上表現と読み検索

================================================================================
OVERVIEW / 概要
================================================================================

JMdict is the Japanese-multilingual dictionary distributed as one large XML
file. jmdict_parser.py turns that file into the records defined here:

JMdictは巨大なXMLファイルとして配布される日英辞書。jmdict_parser.py が
そのファイルをここで定義されるレコードに変換する:

    JMdictEntry
      ├── sequence_id            "1234567"
      ├── kanji    : (Kanji, ...)     漢字表記（表示優先順）
      ├── readings : (Reading, ...)   読み（かな）
      └── senses   : (Sense, ...)     意味・訳語
                          └── loanword_sources : (LoanwordSource, ...)

All records are frozen; once the store is built, it is only read.
全レコードは不変。ストアが構築された後は読み取り専用。

================================================================================
SEARCH ORDER / 検索結果の並び順
================================================================================

search_by_reading() keeps the entries whose reading equals the text, then:

    1. entries WITH kanji before entries WITHOUT kanji
       漢字表記を持つエントリが先
    2. more priority tags on the first reading first
       最初の読みの優先度タグが多いものが先
    3. ties keep the dictionary order (stable sort)
       同順位は辞書の順序を維持

search_by_gloss() is the English side: entries with a gloss equal to the
text (or starting / ending with it), in dictionary order, each entry once.
訳語での検索は search_by_gloss()。辞書順で、各エントリは一度だけ。

================================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Kanji:
    """A kanji spelling (k_ele) of an entry."""
    text: str
    info: Tuple[str, ...] = ()
    # news1/2, ichi1/2, spec1/2, gai1/2, nfXX; only the count is used
    priorities: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Reading:
    """A kana reading (r_ele) of an entry."""
    text: str
    no_kanji: Optional[str] = None
    restriction: Optional[str] = None
    info: Optional[str] = None
    priorities: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LoanwordSource:
    language: str = 'full'
    description: str = ''
    wasei: Optional[str] = None


@dataclass(frozen=True)
class Sense:
    parts_of_speech: Tuple[str, ...] = ()
    glosses: Tuple[str, ...] = ()
    loanword_sources: Tuple[LoanwordSource, ...] = ()
    fields_of_application: Tuple[str, ...] = ()
    misc: Tuple[str, ...] = ()
    dialect: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class JMdictEntry:
    """One dictionary record, i.e. one <entry> block of the XML."""
    sequence_id: str
    kanji: Tuple[Kanji, ...] = ()
    readings: Tuple[Reading, ...] = ()
    senses: Tuple[Sense, ...] = ()

    def to_dict(self):
        """
        Return a plain mapping of this entry (used by the JSON cache).

        Empty fields are left out to keep the cache small.
        """
        data = {'seq': self.sequence_id}
        if self.kanji:
            data['k'] = [_drop_empty({
                'text': k.text,
                'info': list(k.info),
                'pri': list(k.priorities),
            }) for k in self.kanji]
        if self.readings:
            data['r'] = [_drop_empty({
                'text': r.text,
                'nokanji': r.no_kanji,
                'restr': r.restriction,
                'info': r.info,
                'pri': list(r.priorities),
            }) for r in self.readings]
        if self.senses:
            data['s'] = [_drop_empty({
                'pos': list(s.parts_of_speech),
                'gloss': list(s.glosses),
                'lsource': [_drop_empty({
                    'lang': ls.language,
                    'desc': ls.description,
                    'wasei': ls.wasei,
                }) for ls in s.loanword_sources],
                'field': list(s.fields_of_application),
                'misc': list(s.misc),
                'dial': list(s.dialect),
                'inf': list(s.notes),
            }) for s in self.senses]
        return data

    @classmethod
    def from_dict(cls, data):
        """Build an entry back from the mapping produced by to_dict()."""
        kanji = tuple(Kanji(
            text=k.get('text', ''),
            info=tuple(k.get('info', ())),
            priorities=tuple(k.get('pri', ())),
        ) for k in data.get('k', ()))
        readings = tuple(Reading(
            text=r.get('text', ''),
            no_kanji=r.get('nokanji'),
            restriction=r.get('restr'),
            info=r.get('info'),
            priorities=tuple(r.get('pri', ())),
        ) for r in data.get('r', ()))
        senses = tuple(Sense(
            parts_of_speech=tuple(s.get('pos', ())),
            glosses=tuple(s.get('gloss', ())),
            loanword_sources=tuple(LoanwordSource(
                language=ls.get('lang', ''),
                description=ls.get('desc', ''),
                wasei=ls.get('wasei'),
            ) for ls in s.get('lsource', ())),
            fields_of_application=tuple(s.get('field', ())),
            misc=tuple(s.get('misc', ())),
            dialect=tuple(s.get('dial', ())),
            notes=tuple(s.get('inf', ())),
        ) for s in data.get('s', ()))
        return cls(sequence_id=str(data['seq']), kanji=kanji, readings=readings, senses=senses)


def _drop_empty(mapping):
    # None and empty lists are dropped; empty strings are meaningful (e.g. <re_nokanji/>)
    return {k: v for k, v in mapping.items() if v is not None and v != []}


def _rank_key(entry):
    """
    Sort key for search results.

    Entries lacking kanji (or, which should not happen for a match, lacking
    any reading) share the last bucket and keep their input order there.
    """
    if not entry.kanji or not entry.readings:
        return (1, 0)
    return (0, -len(entry.readings[0].priorities))


def search_by_reading(entries, text):
    """
    Return the entries having a reading equal to `text`, best first.
    読みが `text` と完全一致するエントリを優先順に返す。

    No normalization is applied: katakana does not match hiragana and a
    partial reading does not match. An unmatched text yields an empty list.

    Args:
        entries: Iterable of JMdictEntry (typically JMdict.entries)
        text: The reading to look up (e.g., "にほん")

    Returns:
        list: Matching JMdictEntry objects (the same objects, not copies)
    """
    matches = [e for e in entries if any(r.text == text for r in e.readings)]
    matches.sort(key=_rank_key)
    logger.debug(f'search_by_reading("{text}") -> {len(matches)} entries')
    return matches


def _gloss_matches(gloss, text, starts_with, ends_with):
    if not starts_with and not ends_with:
        return gloss == text
    if starts_with and not gloss.startswith(text):
        return False
    if ends_with and not gloss.endswith(text):
        return False
    return True


def search_by_gloss(entries, text, starts_with=False, ends_with=False):
    """
    Return the entries having a gloss that matches `text`, in dictionary order.
    訳語が `text` に一致するエントリを辞書順に返す。

    With neither flag the gloss must equal `text`. `starts_with` and
    `ends_with` relax this to a prefix or suffix match; with both set the
    gloss must satisfy both. Matching is case sensitive. Each entry appears
    at most once however many of its glosses match.
    """
    matches = [
        e for e in entries
        if any(_gloss_matches(gloss, text, starts_with, ends_with)
               for sense in e.senses for gloss in sense.glosses)
    ]
    logger.debug(f'search_by_gloss("{text}", starts_with={starts_with}, ends_with={ends_with}) -> {len(matches)} entries')
    return matches


@dataclass
class JMdict:
    """
    The loaded lexicon. Holds every entry for the lifetime of the process;
    search results refer to the entries held here.
    """
    entries: Tuple[JMdictEntry, ...] = field(default_factory=tuple)

    def __post_init__(self):
        self.entries = tuple(self.entries)

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def search_by_reading(self, text):
        return search_by_reading(self.entries, text)

    def search_by_gloss(self, text, starts_with=False, ends_with=False):
        return search_by_gloss(self.entries, text, starts_with, ends_with)

    def get_stats(self):
        """
        Returns:
            dict: 'entry_count', 'kanji_count', 'reading_count', 'sense_count'
        """
        return {
            'entry_count': len(self.entries),
            'kanji_count': sum(len(e.kanji) for e in self.entries),
            'reading_count': sum(len(e.readings) for e in self.entries),
            'sense_count': sum(len(e.senses) for e in self.entries),
        }
