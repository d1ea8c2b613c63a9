"""Constants for the libtrack repository layout."""

import re
from string import hexdigits

DEFAULT_REPO_DIR = '.track-it'
DEFAULT_BRANCH = 'main'

HEAD_FILE = 'HEAD'
INDEX_FILE = 'index'
OBJECTS_SUBDIR = 'objects'
REFS_DIR = 'refs'
HEADS_DIR = 'heads'

SYMREF_PREFIX = 'ref: '

HASH_LENGTH = 64
HASH_CHARSET = frozenset(hexdigits.lower())

BRANCH_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')

IGNORE_FILE = '.track-itignore'
DEFAULT_IGNORE_PATTERNS = (
    '# Default Track-It ignore file',
    'node_modules/',
    '.DS_Store',
    '*.log',
    'dist/',
)
