"""Low-level access to the content-addressed object store.

Every object lives in a single file named after the SHA-256 hex digest of
its content, directly under the objects directory. Blobs hold the raw file
bytes; commits hold their canonical JSON serialization. Writing an object
that is already present is a no-op."""

import hashlib
import json
import logging
from pathlib import Path
from typing import BinaryIO

from .exceptions import CorruptObjectError, ObjectNotFoundError
from .objects import Blob, Commit

logger = logging.getLogger(__name__)


def hash_bytes(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def serialize_commit(commit: Commit) -> bytes:
    """Serialize a commit deterministically so equal commits always hash the same."""
    return json.dumps(commit.to_dict(), sort_keys=True, separators=(',', ':'),
                      ensure_ascii=False).encode('utf-8')


def hash_object(obj: Commit | Blob) -> str:
    """Return the hash identifying an object.

    :param obj: A commit, or a blob whose hash is already known.
    :return: The hex digest of the object."""
    match obj:
        case Blob():
            return obj.hash
        case Commit():
            return hash_bytes(serialize_commit(obj))
        case _:
            msg = f'Cannot hash object of type {type(obj)}'
            raise TypeError(msg)


def get_content_path(objects_dir: str | Path, content_hash: str) -> Path:
    return Path(objects_dir) / content_hash


def object_exists(objects_dir: str | Path, content_hash: str) -> bool:
    return bool(content_hash) and get_content_path(objects_dir, content_hash).is_file()


def open_content_for_reading(objects_dir: str | Path, content_hash: str) -> BinaryIO:
    """Open a stored object for reading.

    :raises ObjectNotFoundError: If no object with that hash is stored."""
    path = get_content_path(objects_dir, content_hash)
    if not content_hash or not path.is_file():
        msg = f'File with hash {content_hash} not found'
        raise ObjectNotFoundError(msg)

    return path.open('rb')


def open_content_for_writing(objects_dir: str | Path, content_hash: str) -> BinaryIO:
    path = get_content_path(objects_dir, content_hash)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path.open('wb')


def save_content(objects_dir: str | Path, content: bytes) -> str:
    """Store content under the hash of its bytes.

    :param objects_dir: The objects directory of the repository.
    :param content: The bytes to store.
    :return: The hex digest the content is stored under."""
    content_hash = hash_bytes(content)
    if object_exists(objects_dir, content_hash):
        logger.debug('Object %s already stored', content_hash[:8])
        return content_hash

    with open_content_for_writing(objects_dir, content_hash) as handle:
        handle.write(content)
    logger.debug('Stored object %s (%d bytes)', content_hash[:8], len(content))

    return content_hash


def save_file_content(objects_dir: str | Path, file: Path) -> Blob:
    """Store the content of a file as a blob.

    :raises ValueError: If the file does not exist."""
    if not file.is_file():
        msg = f'File {file} does not exist'
        raise ValueError(msg)

    return Blob(save_content(objects_dir, file.read_bytes()))


def load_content(objects_dir: str | Path, content_hash: str) -> bytes:
    """Load the bytes stored under a hash.

    :raises ObjectNotFoundError: If no object with that hash is stored."""
    with open_content_for_reading(objects_dir, content_hash) as handle:
        return handle.read()


def save_commit(objects_dir: str | Path, commit: Commit) -> str:
    """Store a commit and return its hash."""
    data = serialize_commit(commit)
    commit_hash = hash_bytes(data)
    if not object_exists(objects_dir, commit_hash):
        with open_content_for_writing(objects_dir, commit_hash) as handle:
            handle.write(data)

    return commit_hash


def load_commit(objects_dir: str | Path, commit_hash: str) -> Commit:
    """Load a commit by its hash.

    :raises ObjectNotFoundError: If no commit with that hash is stored.
    :raises CorruptObjectError: If the stored object is not a commit."""
    if not object_exists(objects_dir, commit_hash):
        msg = f'Commit {commit_hash} not found'
        raise ObjectNotFoundError(msg)

    data = load_content(objects_dir, commit_hash)
    try:
        return Commit.from_dict(json.loads(data.decode('utf-8')))
    except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
        msg = f'Object {commit_hash} is not a valid commit'
        raise CorruptObjectError(msg) from e
