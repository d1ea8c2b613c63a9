"""Line and file-set differences between blobs and commits."""

from dataclasses import dataclass
from pathlib import Path

from .plumbing import load_commit, load_content

UNCHANGED_PREFIX = '  '
REMOVED_PREFIX = '- '
ADDED_PREFIX = '+ '


@dataclass
class FileDiff:
    """The differences of a single file between two commits."""

    file_path: str
    differences: list[str]


def read_blob_text(objects_dir: str | Path, blob_hash: str) -> str:
    """Load blob content as text, replacing undecodable bytes.

    :raises ObjectNotFoundError: If the blob does not exist."""
    return load_content(objects_dir, blob_hash).decode('utf-8', errors='replace')


def diff_lines(lines1: list[str], lines2: list[str]) -> list[str]:
    """Compare two lists of lines position by position.

    Equal lines are kept as context. A line that changed at a given position is emitted
    as context, then removed, then added. Trailing lines present on one side only are
    emitted as removed or added."""
    differences: list[str] = []

    for i in range(max(len(lines1), len(lines2))):
        if i >= len(lines2):
            differences.append(REMOVED_PREFIX + lines1[i])
        elif i >= len(lines1):
            differences.append(ADDED_PREFIX + lines2[i])
        elif lines1[i] == lines2[i]:
            differences.append(UNCHANGED_PREFIX + lines1[i])
        else:
            differences.append(UNCHANGED_PREFIX + lines1[i])
            differences.append(REMOVED_PREFIX + lines1[i])
            differences.append(ADDED_PREFIX + lines2[i])

    return differences


def compare_blobs(objects_dir: str | Path, hash1: str, hash2: str) -> list[str]:
    """Generate a line diff between two stored blobs.

    :param objects_dir: The objects directory of the repository.
    :param hash1: The hash of the old blob.
    :param hash2: The hash of the new blob.
    :return: The diff lines, each prefixed with '  ', '- ' or '+ '.
    :raises ObjectNotFoundError: If either blob does not exist."""
    text1 = read_blob_text(objects_dir, hash1)
    text2 = read_blob_text(objects_dir, hash2)

    return diff_lines(text1.splitlines(), text2.splitlines())


def diff_commits(objects_dir: str | Path, commit_hash1: str, commit_hash2: str,
                 include_removed: bool = False) -> list[FileDiff]:
    """Generate the file differences between two commits.

    Files present in both commits with different content get a line diff, and files only
    present in the second commit get a single "+ New file: <path>" line. Files only present
    in the first commit are skipped unless `include_removed` is set, in which case they get
    a single "- Removed file: <path>" line.

    :raises ObjectNotFoundError: If a commit or a blob does not exist."""
    commit1 = load_commit(objects_dir, commit_hash1)
    commit2 = load_commit(objects_dir, commit_hash2)

    files1 = commit1.file_map()
    files2 = commit2.file_map()

    results: list[FileDiff] = []

    for record in commit1.files:
        other_hash = files2.get(record.path)
        if other_hash is not None and other_hash != record.hash:
            results.append(FileDiff(record.path, compare_blobs(objects_dir, record.hash, other_hash)))
        elif other_hash is None and include_removed:
            results.append(FileDiff(record.path, [f'{REMOVED_PREFIX}Removed file: {record.path}']))

    for record in commit2.files:
        if record.path not in files1:
            results.append(FileDiff(record.path, [f'{ADDED_PREFIX}New file: {record.path}']))

    return results
