import codecs
import json
import logging
import os
import sys

import orjson
from gi.repository import GLib

import chord_table
import jmdict_parser
from jmdict import JMdict, JMdictEntry

logger = logging.getLogger(__name__)

NAME_TO_LOGGING_LEVEL = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}

LOG_FORMAT = '%(asctime)s %(levelname)-8s %(message)s'

LEXICON_CACHE_VERSION = 1


# ─── Paths ────────────────────────────────────────────────────────────

def get_package_name():
    '''
    returns 'jpad'
    '''
    return 'jpad'


def get_datadir():
    '''
    Return the path to the data directory (default config.json and the key
    tables). $JPAD_DATADIR wins; then the data/ directory of a source checkout;
    then the share/jpad directory of an installation.
    '''
    env_datadir = os.environ.get('JPAD_DATADIR')
    if env_datadir:
        return env_datadir
    source_datadir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'data')
    if os.path.isdir(source_datadir):
        return source_datadir
    return os.path.join(sys.prefix, 'share', get_package_name())


def get_default_config_path():
    '''
    Return the path to the default config file shipped with the data files.
    This is the config.json that gets copied to user's config dir on first run.
    '''
    return os.path.join(get_datadir(), 'config.json')


def get_user_config_dir():
    '''
    Return the path to the config directory under $HOME.
    Typically, it would be $HOME/.config/jpad
    '''
    return os.path.join(GLib.get_user_config_dir(), get_package_name())


def find_data_file(file_name):
    '''
    Return the path of `file_name` under the user config dir if it exists there,
    otherwise under the data dir. Absolute paths are returned unchanged.
    '''
    if os.path.isabs(file_name):
        return file_name
    user_path = os.path.join(get_user_config_dir(), file_name)
    if os.path.exists(user_path):
        return user_path
    return os.path.join(get_datadir(), file_name)


# ─── Configuration ────────────────────────────────────────────────────

def get_default_config_data():
    default_config_path = get_default_config_path()
    if not os.path.exists(default_config_path):
        logger.error(f'config.json is not found under {get_datadir()}. Please check that installation was done without problem!')
        return None
    with codecs.open(default_config_path, encoding='utf-8') as f:
        return json.load(f)


def get_config_data():
    '''
    Load config.json from $HOME/.config/jpad. When the file is not present
    (e.g., on first run), the default config.json is copied there.

    Missing keys and values whose type differs from the default are replaced
    by the default values.

    Returns:
        tuple: (config_data, warnings_string) where warnings_string is empty if no warnings
    '''
    configfile_path = os.path.join(get_user_config_dir(), 'config.json')
    default_config = get_default_config_data()
    if default_config is None:
        return {}, f'config.json is not found under {get_datadir()}'
    warnings = ""

    if not os.path.exists(configfile_path):
        warning_msg = f'config.json is not found under {get_user_config_dir()} . Copying the default config.json from {get_default_config_path()} ..'
        logger.warning(warning_msg)
        warnings = warning_msg
        try:
            os.makedirs(get_user_config_dir(), exist_ok=True)
            with open(configfile_path, 'w', encoding='utf-8') as f:
                json.dump(default_config, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error(f'Error copying config.json to {configfile_path}')
            logger.error(e)
        return default_config, warnings

    try:
        with codecs.open(configfile_path, encoding='utf-8') as f:
            config_data = json.load(f)
    except json.decoder.JSONDecodeError as e:
        logger.error(f'Error loading the config.json under {get_user_config_dir()}')
        logger.error(e)
        logger.error(f'Using (but not copying) the default config.json from {get_default_config_path()} ..')
        return default_config, warnings

    if not isinstance(config_data, dict):
        logger.error(f'config.json under {get_user_config_dir()} is not a JSON object. Using the default config.json ..')
        return default_config, warnings

    for k in default_config:
        if k not in config_data:
            warning_msg = f'The key "{k}" was not found in the config.json under {get_user_config_dir()} . Copying the default key-value'
            logger.warning(warning_msg)
            warnings += ("\n" if warnings else "") + warning_msg
            config_data[k] = default_config[k]
        if type(config_data[k]) != type(default_config[k]):
            warning_msg = f'Type mismatch found for the key "{k}" between config.json under {get_user_config_dir()} and default config.json. Replacing the value of this key with the value in default config.json'
            logger.warning(warning_msg)
            warnings += ("\n" if warnings else "") + warning_msg
            config_data[k] = default_config[k]

    return config_data, warnings


def save_config_data(config_data):
    '''
    Save config data to the user config directory.

    Returns:
        bool: True if save was successful, False otherwise
    '''
    configfile_path = os.path.join(get_user_config_dir(), 'config.json')
    try:
        os.makedirs(get_user_config_dir(), exist_ok=True)
        with open(configfile_path, 'w', encoding='utf-8') as f:
            json.dump(config_data, f, ensure_ascii=False, indent=2)
        logger.info(f'Configuration saved successfully to {configfile_path}')
        return True
    except OSError as e:
        logger.error(f'Error saving config.json to {configfile_path}')
        logger.error(e)
        return False


def get_logging_level(config):
    '''
    Return the logging level named by "logging_level" in the config.
    WARNING is used when the value is absent or not recognized.
    '''
    level = config.get('logging_level', 'WARNING')
    if level not in NAME_TO_LOGGING_LEVEL:
        logger.warning(f'Specified logging level {level} is not recognized. Using the default WARNING level.')
        level = 'WARNING'
    return NAME_TO_LOGGING_LEVEL[level]


# ─── Chord tables ─────────────────────────────────────────────────────

def get_chord_table(config):
    '''
    Load the hiragana/katakana key tables named in the config.
    Missing tables are logged and skipped (see chord_table.load).
    '''
    hiragana_path = find_data_file(config.get('hiragana_table', 'hiragana_keys.txt'))
    katakana_path = find_data_file(config.get('katakana_table', 'katakana_keys.txt'))
    return chord_table.load(hiragana_path, katakana_path)


# ─── Lexicon ──────────────────────────────────────────────────────────

def get_lexicon_path(config):
    lexicon = config.get('lexicon', '')
    if not lexicon:
        return None
    return find_data_file(os.path.expanduser(lexicon))


def get_lexicon_cache_path(config):
    cache_name = config.get('lexicon_cache', '')
    if not cache_name:
        return None
    return os.path.join(get_user_config_dir(), cache_name)


def convert_jmdict_to_json(xml_path, json_path):
    """
    Parse a JMdict XML file and write its entries as a JSON cache.

    Loading the cache is much faster than parsing the XML on every start.

    Args:
        xml_path: Path to JMdict XML (plain or gzip-compressed)
        json_path: Output path for the JSON cache

    Returns:
        tuple: (success: bool, output_path: str or None, entry_count: int)
    """
    try:
        lexicon = jmdict_parser.read(xml_path)
    except (OSError, ValueError) as e:
        logger.error(f'Failed to convert {xml_path}: {e}')
        return False, None, 0

    if not save_jmdict_json(lexicon, json_path):
        return False, None, 0
    return True, json_path, len(lexicon)


def save_jmdict_json(lexicon, json_path):
    '''
    Write the entries of `lexicon` to `json_path` with orjson.

    Returns:
        bool: True if the file was written
    '''
    data = {
        'version': LEXICON_CACHE_VERSION,
        'entries': [entry.to_dict() for entry in lexicon.entries],
    }
    try:
        output_dir = os.path.dirname(json_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        with open(json_path, 'wb') as f:
            f.write(orjson.dumps(data))
        logger.info(f'Wrote JSON lexicon: {json_path} ({len(lexicon)} entries)')
        return True
    except OSError as e:
        logger.error(f'Failed to write JSON lexicon: {e}')
        return False


def load_jmdict_json(json_path):
    """
    Load a JSON cache written by convert_jmdict_to_json().

    Returns:
        JMdict or None: None if the file is missing, broken or of another version
    """
    if not os.path.exists(json_path):
        logger.debug(f'JSON lexicon not found: {json_path}')
        return None
    try:
        with open(json_path, 'rb') as f:
            data = orjson.loads(f.read())
    except orjson.JSONDecodeError as e:
        logger.error(f'Failed to parse JSON lexicon: {json_path} - {e}')
        return None
    except OSError as e:
        logger.error(f'Failed to read JSON lexicon: {json_path} - {e}')
        return None

    if not isinstance(data, dict) or data.get('version') != LEXICON_CACHE_VERSION:
        logger.warning(f'Ignoring JSON lexicon with unexpected format: {json_path}')
        return None
    try:
        entries = [JMdictEntry.from_dict(e) for e in data.get('entries', [])]
    except (KeyError, TypeError, AttributeError) as e:
        logger.error(f'Invalid entry in JSON lexicon: {json_path} - {e}')
        return None
    logger.info(f'Loaded JSON lexicon: {json_path} ({len(entries)} entries)')
    return JMdict(entries)


def is_cache_fresh(cache_path, source_path):
    '''
    True if the cache exists and is not older than the source file.
    '''
    if not cache_path or not os.path.exists(cache_path):
        return False
    if not source_path or not os.path.exists(source_path):
        return True
    return os.path.getmtime(cache_path) >= os.path.getmtime(source_path)
