#!/usr/bin/env python3
# tests/test_jmdict.py - Unit tests for jmdict.py

import pytest
import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from jmdict import (
    JMdict,
    JMdictEntry,
    Kanji,
    LoanwordSource,
    Reading,
    Sense,
    search_by_gloss,
    search_by_reading,
)


def make_entry(seq, kanji=(), readings=(), pri=()):
    """Entry with the given kanji texts and readings; `pri` goes on the first reading"""
    reading_list = []
    for i, text in enumerate(readings):
        reading_list.append(Reading(text=text, priorities=tuple(pri) if i == 0 else ()))
    return JMdictEntry(
        sequence_id=seq,
        kanji=tuple(Kanji(text=k) for k in kanji),
        readings=tuple(reading_list),
    )


class TestSearchByReading:
    """Test suite for search_by_reading()"""

    def test_kanji_entry_sorts_first(self):
        """Test that an entry with kanji precedes one without"""
        a = make_entry('1', kanji=[], readings=['た'])
        b = make_entry('2', kanji=['田'], readings=['た'], pri=['news1'])

        result = search_by_reading([a, b], 'た')

        assert result == [b, a]

    def test_no_match_returns_empty_list(self):
        """Test that an unknown reading gives an empty list, not an error"""
        entries = [make_entry('1', kanji=['田'], readings=['た'])]

        assert search_by_reading(entries, 'ん') == []

    def test_empty_entries(self):
        """Test searching an empty lexicon"""
        assert search_by_reading([], 'た') == []

    def test_exact_match_only(self):
        """Test that partial readings and other scripts do not match"""
        entries = [
            make_entry('1', kanji=['日本'], readings=['にほん']),
            make_entry('2', kanji=['日'], readings=['に']),
        ]

        assert search_by_reading(entries, 'にほ') == []
        assert search_by_reading(entries, 'ニホン') == []
        assert [e.sequence_id for e in search_by_reading(entries, 'に')] == ['2']

    def test_matches_any_reading(self):
        """Test that a match on a later reading counts"""
        entry = make_entry('1', kanji=['日本'], readings=['にほん', 'にっぽん'])

        assert search_by_reading([entry], 'にっぽん') == [entry]

    def test_priority_count_descending(self):
        """Test that more priority tags on the first reading sort earlier"""
        low = make_entry('1', kanji=['箸'], readings=['はし'], pri=[])
        high = make_entry('2', kanji=['橋'], readings=['はし'], pri=['ichi1', 'news1', 'nf12'])
        mid = make_entry('3', kanji=['端'], readings=['はし'], pri=['spec1'])

        result = search_by_reading([low, high, mid], 'はし')

        assert [e.sequence_id for e in result] == ['2', '3', '1']

    def test_priority_uses_first_reading_only(self):
        """Test that priorities on the second reading are not counted"""
        first = JMdictEntry('1', kanji=(Kanji('甲'),), readings=(
            Reading('こう'),
            Reading('かぶと', priorities=('news1', 'ichi1')),
        ))
        second = JMdictEntry('2', kanji=(Kanji('高'),), readings=(
            Reading('こう', priorities=('news2',)),
        ))

        result = search_by_reading([first, second], 'こう')

        assert result == [second, first]

    def test_ties_keep_input_order(self):
        """Test that the sort is stable for equal priority counts"""
        entries = [
            make_entry(str(i), kanji=[f'字{i}'], readings=['じ'], pri=['news1'])
            for i in range(5)
        ]

        result = search_by_reading(entries, 'じ')

        assert [e.sequence_id for e in result] == ['0', '1', '2', '3', '4']

    def test_kanjiless_entries_keep_input_order(self):
        """Test that entries without kanji keep their order regardless of priorities"""
        a = make_entry('a', readings=['ね'], pri=[])
        b = make_entry('b', readings=['ね'], pri=['news1', 'ichi1'])
        c = make_entry('c', kanji=['根'], readings=['ね'])

        result = search_by_reading([a, b, c], 'ね')

        assert [e.sequence_id for e in result] == ['c', 'a', 'b']

    def test_returns_same_objects(self):
        """Test that results refer to the stored entries rather than copies"""
        entry = make_entry('1', kanji=['田'], readings=['た'])
        lexicon = JMdict([entry])

        assert lexicon.search_by_reading('た')[0] is entry


def make_glossed(seq, *senses):
    """Entry whose senses carry the given gloss lists"""
    return JMdictEntry(
        sequence_id=seq,
        readings=(Reading(f'よみ{seq}'),),
        senses=tuple(Sense(glosses=tuple(glosses)) for glosses in senses),
    )


class TestSearchByGloss:
    """Test suite for search_by_gloss()"""

    @pytest.fixture
    def entries(self):
        return [
            make_glossed('1', ['dog'], ['hound']),
            make_glossed('2', ['hot dog']),
            make_glossed('3', ['dogma']),
            make_glossed('4', ['cat']),
        ]

    def test_exact_match(self, entries):
        """Test that without flags only an equal gloss matches"""
        result = search_by_gloss(entries, 'dog')

        assert [e.sequence_id for e in result] == ['1']

    def test_starts_with(self, entries):
        result = search_by_gloss(entries, 'dog', starts_with=True)

        assert [e.sequence_id for e in result] == ['1', '3']

    def test_ends_with(self, entries):
        result = search_by_gloss(entries, 'dog', ends_with=True)

        assert [e.sequence_id for e in result] == ['1', '2']

    def test_starts_and_ends_with(self, entries):
        """Test that both flags together require both conditions"""
        result = search_by_gloss(entries, 'dog', starts_with=True, ends_with=True)

        assert [e.sequence_id for e in result] == ['1']

    def test_entry_listed_once(self):
        """Test that an entry matching in several senses appears once"""
        entry = make_glossed('1', ['dog', 'dog'], ['dog'])

        assert search_by_gloss([entry], 'dog') == [entry]

    def test_dictionary_order(self):
        """Test that results are not ranked"""
        plain = make_glossed('1', ['run'])
        ranked = JMdictEntry('2', kanji=(Kanji('走'),),
                             readings=(Reading('はしる', priorities=('ichi1',)),),
                             senses=(Sense(glosses=('run',)),))

        assert search_by_gloss([plain, ranked], 'run') == [plain, ranked]

    def test_case_sensitive(self, entries):
        assert search_by_gloss(entries, 'Dog') == []

    def test_no_match(self, entries):
        assert search_by_gloss(entries, 'bird', starts_with=True) == []

    def test_store_wrapper(self, entries):
        lexicon = JMdict(entries)

        assert [e.sequence_id for e in lexicon.search_by_gloss('hound')] == ['1']


class TestJMdict:
    """Test suite for the JMdict store"""

    def test_entries_become_tuple(self):
        """Test that the store keeps an immutable sequence"""
        lexicon = JMdict([make_entry('1', readings=['あ'])])

        assert isinstance(lexicon.entries, tuple)
        assert len(lexicon) == 1

    def test_empty_store(self):
        """Test the default empty store"""
        lexicon = JMdict()

        assert len(lexicon) == 0
        assert lexicon.search_by_reading('あ') == []

    def test_get_stats(self):
        """Test the element counts"""
        lexicon = JMdict([
            JMdictEntry('1', kanji=(Kanji('日本'), Kanji('日本国')),
                        readings=(Reading('にほん'),), senses=(Sense(), Sense())),
            JMdictEntry('2', readings=(Reading('あ'), Reading('ああ'))),
        ])

        stats = lexicon.get_stats()

        assert stats == {
            'entry_count': 2,
            'kanji_count': 2,
            'reading_count': 3,
            'sense_count': 2,
        }

    def test_entries_are_frozen(self):
        """Test that entries cannot be modified"""
        entry = make_entry('1', readings=['あ'])

        with pytest.raises(AttributeError):
            entry.sequence_id = '2'


class TestEntryDict:
    """Test suite for JMdictEntry.to_dict() / from_dict()"""

    @pytest.fixture
    def full_entry(self):
        return JMdictEntry(
            sequence_id='1080340',
            kanji=(Kanji('背広', info=('ateji',), priorities=('ichi1', 'news1')),),
            readings=(
                Reading('せびろ', priorities=('ichi1',)),
                Reading('セビロ', no_kanji='', info='ik'),
            ),
            senses=(Sense(
                parts_of_speech=('noun (common) (futsuumeishi)',),
                glosses=('business suit',),
                loanword_sources=(LoanwordSource(language='Savile Row', wasei='y'),),
                misc=('uk',),
            ),),
        )

    def test_round_trip(self, full_entry):
        """Test that from_dict() restores the entry"""
        assert JMdictEntry.from_dict(full_entry.to_dict()) == full_entry

    def test_empty_fields_dropped(self):
        """Test that empty fields are not written"""
        data = JMdictEntry('5').to_dict()

        assert data == {'seq': '5'}

    def test_empty_no_kanji_flag_kept(self, full_entry):
        """Test that an empty <re_nokanji/> flag survives (it is not None)"""
        data = full_entry.to_dict()

        assert data['r'][1]['nokanji'] == ''
        assert 'nokanji' not in data['r'][0]
