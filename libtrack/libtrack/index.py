"""The staging index: the ordered list of files queued for the next commit."""

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from .exceptions import CorruptObjectError
from .objects import StagedFile

logger = logging.getLogger(__name__)


def read_index(index_file: Path) -> list[StagedFile]:
    """Read the staged files from the index file.

    :param index_file: The index file of the repository.
    :return: The staged files in order, or an empty list if the index file does not exist.
    :raises CorruptObjectError: If the index file is not a JSON list of path/hash entries."""
    if not index_file.exists():
        return []

    try:
        entries = json.loads(index_file.read_text(encoding='utf-8') or '[]')
        return [StagedFile.from_dict(entry) for entry in entries]
    except (ValueError, KeyError, TypeError) as e:
        msg = f'Invalid index file {index_file}'
        raise CorruptObjectError(msg) from e


def write_index(index_file: Path, staged: Sequence[StagedFile]) -> None:
    """Replace the content of the index file with the given staged files."""
    index_file.write_text(json.dumps([f.to_dict() for f in staged], indent=2), encoding='utf-8')
    logger.debug('Index persisted with %d entries', len(staged))


def upsert_entries(staged: Sequence[StagedFile], updates: Iterable[StagedFile]) -> list[StagedFile]:
    """Merge updates into a staged list keyed by path.

    An update for a path already staged replaces that entry in place; an update for a new
    path is appended. The order of the remaining entries is preserved."""
    result = list(staged)
    positions = {f.path: i for i, f in enumerate(result)}

    for update in updates:
        if update.path in positions:
            result[positions[update.path]] = update
        else:
            positions[update.path] = len(result)
            result.append(update)

    return result
