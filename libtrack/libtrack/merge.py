"""Merge helpers for libtrack."""

from collections import deque
from dataclasses import dataclass
from pathlib import Path

from merge3 import Merge3

from .diff import read_blob_text
from .objects import Commit
from .plumbing import load_commit
from .ref import HashRef


@dataclass
class MergeConflict:
    """A file changed differently on the two sides of a merge."""

    path: str
    current_content: str
    incoming_content: str


def _ancestors(objects_dir: str | Path, commit_hash: str):
    """Yield a commit and all of its ancestors, breadth first and without repetition."""
    seen: set[str] = set()
    queue = deque([commit_hash])

    while queue:
        current_hash = queue.popleft()
        if current_hash in seen:
            continue
        seen.add(current_hash)
        yield current_hash

        queue.extend(load_commit(objects_dir, current_hash).parents)


def find_common_ancestor_core(objects_dir: str | Path, hash1: str, hash2: str) -> HashRef | None:
    """Find the first ancestor of hash1 (itself included) that is also an ancestor of hash2.

    :raises ObjectNotFoundError: If a commit in either history cannot be loaded."""
    ancestors = set(_ancestors(objects_dir, hash2))

    for current_hash in _ancestors(objects_dir, hash1):
        if current_hash in ancestors:
            return HashRef(current_hash)

    return None


def detect_conflicts(objects_dir: str | Path, current_commit: Commit, incoming_commit: Commit) -> list[MergeConflict]:
    """List the files of the incoming commit that the current commit holds with different content.

    The content of both sides is loaded for every conflict.

    :raises ObjectNotFoundError: If a conflicting blob cannot be loaded."""
    current_files = current_commit.file_map()
    conflicts: list[MergeConflict] = []

    for record in incoming_commit.files:
        current_hash = current_files.get(record.path)
        if current_hash is not None and current_hash != record.hash:
            conflicts.append(MergeConflict(record.path,
                                           read_blob_text(objects_dir, current_hash),
                                           read_blob_text(objects_dir, record.hash)))

    return conflicts


def _lines(text: str) -> list[str]:
    lines = text.splitlines(keepends=True)
    if lines and not lines[-1].endswith(('\n', '\r')):
        lines[-1] += '\n'
    return lines


def format_conflict(conflict: MergeConflict, current_name: str, incoming_name: str) -> str:
    """Render a conflict as a two-way block with conflict markers.

    No common base is used, so both versions are shown in full. An empty side still gets
    its own empty section between the markers."""
    current_lines = _lines(conflict.current_content)
    incoming_lines = _lines(conflict.incoming_content)

    if current_lines and incoming_lines:
        merger = Merge3([], current_lines, incoming_lines)
        body = ''.join(merger.merge_lines(name_a=current_name, name_b=incoming_name))
    else:
        # merge3 takes an empty side as unchanged from the empty base and drops the markers
        body = ''.join([f'<<<<<<< {current_name}\n', *current_lines,
                        '=======\n', *incoming_lines,
                        f'>>>>>>> {incoming_name}\n'])

    return f'Conflict in file: {conflict.path}\n{body}'


def merge_message(from_branch: str, current_branch: str) -> str:
    return f"Merge branch '{from_branch}' into '{current_branch}'"
