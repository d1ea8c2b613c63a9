"""Reading and writing references."""

from pathlib import Path

from .constants import HASH_CHARSET, HASH_LENGTH, HEADS_DIR, REFS_DIR, SYMREF_PREFIX
from .exceptions import RefError


class HashRef(str):
    """A reference holding a commit hash."""


class SymRef(str):
    """A symbolic reference naming another reference, e.g. 'refs/heads/main'."""

    def branch_name(self) -> str | None:
        """Return the branch name if this reference points under refs/heads, else None."""
        prefix = f'{REFS_DIR}/{HEADS_DIR}/'
        if self.startswith(prefix):
            return self[len(prefix):]
        return None


Ref = HashRef | SymRef


def is_hash(value: str) -> bool:
    return len(value) == HASH_LENGTH and all(c in HASH_CHARSET for c in value)


def branch_ref(branch: str) -> SymRef:
    """Create a symbolic reference for a branch name.

    :param branch: The name of the branch.
    :return: A SymRef object representing the branch reference."""
    return SymRef(f'{REFS_DIR}/{HEADS_DIR}/{branch}')


def read_ref(ref_file: Path) -> Ref | None:
    """Read a reference from a file.

    :param ref_file: The file holding the reference.
    :return: A SymRef for 'ref: ...' content, a HashRef for a hash, or None if the file is empty.
    :raises RefError: If the file does not exist or its content is not a valid reference."""
    try:
        content = ref_file.read_text(encoding='utf-8').strip()
    except OSError as e:
        msg = f'Cannot read reference file {ref_file}'
        raise RefError(msg) from e

    if not content:
        return None
    if content.startswith(SYMREF_PREFIX):
        return SymRef(content[len(SYMREF_PREFIX):].strip())
    if is_hash(content):
        return HashRef(content)

    msg = f'Invalid reference content in {ref_file}: {content!r}'
    raise RefError(msg)


def write_ref(ref_file: Path, ref: Ref | None) -> None:
    """Write a reference to a file, replacing its previous content.

    :param ref_file: The file to write.
    :param ref: The reference to store. None writes an empty reference."""
    match ref:
        case SymRef():
            content = f'{SYMREF_PREFIX}{ref}'
        case HashRef():
            content = str(ref)
        case None:
            content = ''
        case _:
            msg = f'Invalid reference type: {type(ref)}'
            raise RefError(msg)

    ref_file.write_text(content, encoding='utf-8')
