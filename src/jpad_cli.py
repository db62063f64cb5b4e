#!/usr/bin/env python3
"""
jpad_cli.py - Command-line tool for the lexicon and the kana converter
辞書とかな変換のコマンドラインツール

================================================================================
USAGE / 使用方法
================================================================================

    # Look up a reading in the lexicon (JMdict XML or its JSON cache)
    # 読みで辞書を検索
    python jpad_cli.py lookup にほん
    python jpad_cli.py lookup にほん --lexicon ~/Downloads/JMdict_e.gz

    # Look up an English gloss (exact, or by prefix / suffix)
    # 英語の訳語で検索（完全一致、前方一致・後方一致）
    python jpad_cli.py lookup dog --gloss
    python jpad_cli.py lookup dog --gloss --starts-with

    # Convert JMdict XML into the JSON cache used at start-up
    # JMdict XMLを起動時に使うJSONキャッシュに変換
    python jpad_cli.py convert JMdict_e.gz --output jmdict.json

    # Feed keys through the kana converter ("-" undoes the last key)
    # キーをかな変換に通す（"-" は直前のキーを取り消す）
    python jpad_cli.py type kyouhaTENKI

================================================================================
"""

import argparse
import logging
import os
import sys

# Add src directory to path if needed
src_dir = os.path.dirname(os.path.abspath(__file__))
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

import jmdict_parser
import util
from chord_table import Chord
from key_converter import INPUT_MODE_NAMES, MODE_TRANSLITERATE, KeyConverter

logger = logging.getLogger(__name__)

UNDO_CHAR = '-'


def setup_logging(config, verbose=False):
    """Configure logging from the config, or DEBUG when verbose."""
    level = logging.DEBUG if verbose else util.get_logging_level(config)
    logging.basicConfig(
        level=level,
        format=util.LOG_FORMAT,
        datefmt='%H:%M:%S'
    )


def _load_lexicon(args, config):
    if args.lexicon:
        if args.lexicon.endswith('.json'):
            return util.load_jmdict_json(args.lexicon)
        return jmdict_parser.read(args.lexicon)
    cache_path = util.get_lexicon_cache_path(config)
    lexicon_path = util.get_lexicon_path(config)
    if util.is_cache_fresh(cache_path, lexicon_path):
        lexicon = util.load_jmdict_json(cache_path)
        if lexicon is not None:
            return lexicon
    if lexicon_path is None:
        return None
    return jmdict_parser.read(lexicon_path)


def format_entry(entry):
    """One entry as printable lines: 日本 【にほん】 then numbered glosses."""
    spellings = '; '.join(k.text for k in entry.kanji)
    readings = '; '.join(r.text for r in entry.readings)
    head = f'{spellings} 【{readings}】' if spellings else readings
    lines = [f'{head}  (#{entry.sequence_id})']
    for i, sense in enumerate(entry.senses, 1):
        pos = f'[{", ".join(sense.parts_of_speech)}] ' if sense.parts_of_speech else ''
        lines.append(f'  {i}. {pos}{"; ".join(sense.glosses)}')
    return lines


def cmd_lookup(args, config):
    """
    Search the lexicon by reading, or by English gloss with --gloss.
    読み、または --gloss で英語の訳語により辞書を検索。
    """
    try:
        lexicon = _load_lexicon(args, config)
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1
    if lexicon is None:
        print("ERROR: No lexicon available. Use --lexicon or set \"lexicon\" in config.json")
        return 1

    if args.gloss:
        entries = lexicon.search_by_gloss(args.text, args.starts_with, args.ends_with)
    else:
        if args.starts_with or args.ends_with:
            logger.warning("--starts-with and --ends-with only apply with --gloss")
        entries = lexicon.search_by_reading(args.text)
    if not entries:
        print(f"No entries for {args.text}")
        return 0
    for entry in entries[:args.limit]:
        for line in format_entry(entry):
            print(line)
    if len(entries) > args.limit:
        print(f"... {len(entries) - args.limit} more")
    return 0


def cmd_convert(args, config):
    """
    Convert JMdict XML to the JSON cache.
    JMdict XMLをJSONキャッシュに変換。
    """
    output_path = args.output or util.get_lexicon_cache_path(config)
    if not output_path:
        print("ERROR: No output path. Use --output or set \"lexicon_cache\" in config.json")
        return 1
    success, path, count = util.convert_jmdict_to_json(args.xml, output_path)
    if not success:
        print(f"ERROR: Failed to convert {args.xml}")
        return 1
    print(f"Wrote {count:,} entries to {path}")
    return 0


def cmd_type(args, config):
    """
    Feed typed characters through the key converter and print the result.
    入力文字をキー変換に通して結果を表示。
    """
    mode = args.mode or config.get('input_mode', MODE_TRANSLITERATE)
    if mode not in INPUT_MODE_NAMES:
        logger.warning(f'Unknown input mode {mode}; using {MODE_TRANSLITERATE}')
        mode = MODE_TRANSLITERATE
    converter = KeyConverter(util.get_chord_table(config), mode)

    output = ''
    for char in args.keys:
        if char == UNDO_CHAR:
            if not converter.undo_last():
                output = output[:-1]
            continue
        emission = converter.record_chord(Chord.from_char(char))
        if emission.is_produced:
            output += emission.text
        elif emission.is_rejected:
            output += char
        if args.verbose:
            print(f"  {char!r:6} {emission.status:9} [{converter.current_sequence_label()}]")

    print(output)
    pending = converter.current_sequence_label()
    if pending:
        print(f"(pending: {pending})")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description='Japanese text entry tools: lexicon lookup and kana input',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose output')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    lookup_parser = subparsers.add_parser('lookup', help='Search the lexicon by reading or gloss')
    lookup_parser.add_argument('text', help='Reading in kana (e.g., にほん), or a gloss with --gloss')
    lookup_parser.add_argument('-g', '--gloss', action='store_true',
                               help='Search English glosses instead of readings')
    lookup_parser.add_argument('--starts-with', action='store_true',
                               help='With --gloss: match glosses starting with the text')
    lookup_parser.add_argument('--ends-with', action='store_true',
                               help='With --gloss: match glosses ending with the text')
    lookup_parser.add_argument('-l', '--lexicon', help='JMdict XML or JSON cache (default: from config.json)')
    lookup_parser.add_argument('-n', '--limit', type=int, default=10,
                               help='Number of entries to show (default: 10)')

    convert_parser = subparsers.add_parser('convert', help='Convert JMdict XML to the JSON cache')
    convert_parser.add_argument('xml', help='Path to JMdict XML (plain or gzip)')
    convert_parser.add_argument('-o', '--output', default=None,
                                help='Output JSON path (default: ~/.config/jpad/<lexicon_cache>)')

    type_parser = subparsers.add_parser('type', help='Feed keys through the kana converter')
    type_parser.add_argument('keys', help=f'Typed characters; upper case means Shift, "{UNDO_CHAR}" undoes')
    type_parser.add_argument('-m', '--mode', choices=INPUT_MODE_NAMES, default=None,
                             help='Input mode (default: from config.json)')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    config, _ = util.get_config_data()
    setup_logging(config, args.verbose)

    if args.command == 'lookup':
        return cmd_lookup(args, config)
    elif args.command == 'convert':
        return cmd_convert(args, config)
    elif args.command == 'type':
        return cmd_type(args, config)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
