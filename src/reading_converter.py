#!/usr/bin/env python3
# reading_converter.py - Reading to kanji (読み→漢字) conversion candidates

import logging
import threading

import jmdict_parser
import util
from jmdict import JMdict

logger = logging.getLogger(__name__)


class ReadingConverter:
    """
    Builds the candidate list shown when the user converts a selected reading
    into kanji.

    The candidates are the kanji spellings of every entry matching the
    reading, in search order, followed by the reading itself so the user can
    always keep the kana:

        convert("にほん") → ["日本", "二本", "にほん"]

    The lexicon can be handed over already loaded, or loaded from a file in a
    background thread. Before loading completes, convert() returns the
    reading alone (passthrough).
    """

    def __init__(self, lexicon=None, lexicon_path=None, cache_path=None):
        """
        Args:
            lexicon: An already loaded JMdict
            lexicon_path: Path to JMdict XML, loaded in the background when
                          `lexicon` is not given
            cache_path: Optional JSON cache of the XML (see util.convert_jmdict_to_json);
                        used instead of the XML when it is not older than it
        """
        # ─── Thread Safety ───
        # The lexicon is published under the lock only once it is complete
        self._lock = threading.Lock()
        self._loaded = threading.Event()
        self._ready = False
        self._lexicon = JMdict()
        self._load_error = None

        self._reading = ''
        self._candidates = []
        self._selected_index = 0

        self._lexicon_path = lexicon_path
        self._cache_path = cache_path
        if lexicon is not None:
            self._lexicon = lexicon
            self._ready = True
            self._loaded.set()
        elif lexicon_path or cache_path:
            thread = threading.Thread(target=self._background_load, daemon=True)
            thread.start()
        else:
            logger.info('No lexicon given - conversion will use passthrough mode')
            self._ready = True
            self._loaded.set()

    def _background_load(self):
        """
        Background thread: load the lexicon from the cache or the XML file.
        Sets _ready = True when done, even on failure.
        """
        try:
            lexicon = self._load_lexicon()
            with self._lock:
                self._lexicon = lexicon
                self._ready = True
            logger.info(f'ReadingConverter background loading complete ({len(lexicon)} entries)')
        except (OSError, ValueError) as e:
            logger.error(f'ReadingConverter background loading failed: {e}')
            # Mark as ready anyway so we don't block forever
            with self._lock:
                self._load_error = e
                self._ready = True
        finally:
            self._loaded.set()

    def _load_lexicon(self):
        if util.is_cache_fresh(self._cache_path, self._lexicon_path):
            lexicon = util.load_jmdict_json(self._cache_path)
            if lexicon is not None:
                return lexicon
        if not self._lexicon_path:
            raise jmdict_parser.LexiconNotFoundError(f'No usable lexicon cache: {self._cache_path}')
        lexicon = jmdict_parser.read(self._lexicon_path)
        if self._cache_path:
            # missing or stale cache; refresh it for the next start
            util.save_jmdict_json(lexicon, self._cache_path)
        return lexicon

    def wait_until_ready(self, timeout=None):
        """
        Block until background loading is complete or `timeout` seconds pass.

        Returns:
            bool: True if ready
        """
        self._loaded.wait(timeout)
        return self.is_ready()

    def is_ready(self):
        with self._lock:
            return self._ready

    def get_load_error(self):
        with self._lock:
            return self._load_error

    def get_lexicon(self):
        with self._lock:
            return self._lexicon

    def search(self, reading):
        """Ranked entries for `reading` (empty before loading completes)."""
        if not self.is_ready():
            return []
        return self.get_lexicon().search_by_reading(reading)

    def convert(self, reading):
        """
        Build the candidate list for `reading` and select the first candidate.

        Returns:
            list: Candidate strings; the last one is always the reading itself
        """
        self._reading = reading
        self._selected_index = 0
        self._candidates = []

        if not self.is_ready():
            logger.debug(f'ReadingConverter.convert("{reading}") → not ready, passthrough')
        else:
            for entry in self.search(reading):
                for kanji in entry.kanji:
                    self._candidates.append(kanji.text)
        self._candidates.append(reading)
        logger.debug(f'ReadingConverter.convert("{reading}") → {len(self._candidates)} candidates')
        return self._candidates

    def get_candidates(self):
        return self._candidates

    def get_selected_candidate(self):
        """
        Returns:
            str or None: The selected candidate, or None if no conversion is active
        """
        if self._candidates and 0 <= self._selected_index < len(self._candidates):
            return self._candidates[self._selected_index]
        return None

    def select_candidate(self, index):
        if 0 <= index < len(self._candidates):
            self._selected_index = index
            return self._candidates[index]
        return None

    def next_candidate(self):
        """Move to the next candidate, wrapping around to the first."""
        if self._candidates:
            self._selected_index = (self._selected_index + 1) % len(self._candidates)
            return self._candidates[self._selected_index]
        return None

    def previous_candidate(self):
        """Move to the previous candidate, wrapping around to the last."""
        if self._candidates:
            self._selected_index = (self._selected_index - 1) % len(self._candidates)
            return self._candidates[self._selected_index]
        return None

    def reset(self):
        self._reading = ''
        self._candidates = []
        self._selected_index = 0
