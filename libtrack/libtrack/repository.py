"""libtrack repository management."""

import logging
import shutil
from collections.abc import Callable, Generator, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from functools import wraps
from itertools import islice
from pathlib import Path
from typing import Concatenate, ParamSpec, TypeVar

from .constants import (BRANCH_NAME_PATTERN, DEFAULT_BRANCH, DEFAULT_IGNORE_PATTERNS, DEFAULT_REPO_DIR, HEAD_FILE,
                        HEADS_DIR, IGNORE_FILE, INDEX_FILE, OBJECTS_SUBDIR, REFS_DIR)
from .diff import FileDiff, compare_blobs, diff_commits
from .exceptions import (BranchExistsError, BranchNotFoundError, CloneError, InvalidBranchNameError,
                         MergeConflictError, NoCommitsOnTargetError, NothingStagedError, RefError, RepositoryError,
                         RepositoryNotFoundError, SourceBranchNotFoundError)
from .ignore import IgnoreRules
from .index import read_index, upsert_entries, write_index
from .merge import detect_conflicts, find_common_ancestor_core, format_conflict, merge_message
from .objects import Blob, Commit, StagedFile
from .plumbing import load_commit, load_content, save_commit, save_content, save_file_content
from .ref import HashRef, Ref, SymRef, branch_ref, is_hash, read_ref, write_ref

logger = logging.getLogger(__name__)

P = ParamSpec('P')
R = TypeVar('R')


@dataclass
class LogEntry:
    """A class representing a log entry for a branch or commit history."""

    commit_ref: HashRef
    commit: Commit


def _now_millis() -> int:
    return int(datetime.now().timestamp() * 1000)


class Repository:
    """Represents a libtrack repository.

    This class provides methods to initialize a repository, stage files, manage branches,
    commit, diff and merge. Every path the repository touches is derived from the
    working directory it was created with."""

    def __init__(self, working_dir: Path | str, repo_dir: Path | str | None = None) -> None:
        """Initialize a Repository instance. The repository is not created on disk until `init()` is called.

        :param working_dir: The working directory where the repository will be located.
        :param repo_dir: The name of the repository directory within the working directory.
            Defaults to '.track-it'."""
        self.working_dir = Path(working_dir)

        if repo_dir is None:
            self.repo_dir = Path(DEFAULT_REPO_DIR)
        else:
            self.repo_dir = Path(repo_dir)

    def init(self, default_branch: str = DEFAULT_BRANCH) -> None:
        """Initialize a new repository in the working directory.

        Creates the objects and refs directories, an empty ref for the default branch, HEAD
        pointing at it, an empty index and, if missing, a default ignore file.

        :param default_branch: The name of the default branch to create. Defaults to 'main'.
        :raises InvalidBranchNameError: If the branch name is invalid.
        :raises RepositoryError: If the repository already exists."""
        validate_branch_name(default_branch)
        if self.exists():
            msg = f'Repository already exists at {self.repo_path()}'
            raise RepositoryError(msg)

        self.repo_path().mkdir(parents=True)
        self.objects_dir().mkdir()
        self.heads_dir().mkdir(parents=True)

        write_ref(self.heads_dir() / default_branch, None)
        write_ref(self.head_file(), branch_ref(default_branch))
        write_index(self.index_file(), [])

        ignore_file = self.ignore_file()
        if not ignore_file.exists():
            ignore_file.write_text('\n'.join(DEFAULT_IGNORE_PATTERNS) + '\n', encoding='utf-8')

        logger.info('Initialized repository at %s', self.repo_path())

    def exists(self) -> bool:
        """Check if the repository exists in the working directory.

        :return: True if the repository exists, False otherwise."""
        return self.repo_path().exists()

    def repo_path(self) -> Path:
        """Get the path to the repository directory.

        :return: The path to the repository directory."""
        return self.working_dir / self.repo_dir

    def objects_dir(self) -> Path:
        """Get the path to the objects directory within the repository.

        :return: The path to the objects directory."""
        return self.repo_path() / OBJECTS_SUBDIR

    def refs_dir(self) -> Path:
        """Get the path to the refs directory within the repository.

        :return: The path to the refs directory."""
        return self.repo_path() / REFS_DIR

    def heads_dir(self) -> Path:
        """Get the path to the heads directory within the repository.

        :return: The path to the heads directory."""
        return self.refs_dir() / HEADS_DIR

    def head_file(self) -> Path:
        """Get the path to the HEAD file within the repository.

        :return: The path to the HEAD file."""
        return self.repo_path() / HEAD_FILE

    def index_file(self) -> Path:
        """Get the path to the index file within the repository."""
        return self.repo_path() / INDEX_FILE

    def ignore_file(self) -> Path:
        """Get the path to the ignore file within the working directory."""
        return self.working_dir / IGNORE_FILE

    @staticmethod
    def requires_repo(func: Callable[Concatenate['Repository', P], R]) -> \
            Callable[Concatenate['Repository', P], R]:
        """Decorate a Repository method to ensure that the repository exists before executing the method.

        :param func: The method to decorate.
        :return: A wrapper function that checks for the repository's existence."""

        @wraps(func)
        def _verify_repo(self: 'Repository', *args: P.args, **kwargs: P.kwargs) -> R:
            if not self.exists():
                msg = f'Repository not initialized at {self.repo_path()}'
                raise RepositoryNotFoundError(msg)

            return func(self, *args, **kwargs)

        return _verify_repo

    @requires_repo
    def delete_repo(self) -> None:
        """Delete the entire repository, including all objects and refs.

        :raises RepositoryNotFoundError: If the repository does not exist."""
        shutil.rmtree(self.repo_path())

    # Objects

    @requires_repo
    def put_object(self, content: bytes) -> HashRef:
        """Store content in the object store.

        :param content: The bytes to store.
        :return: The hash the content is stored under.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        return HashRef(save_content(self.objects_dir(), content))

    @requires_repo
    def get_object(self, content_hash: str) -> bytes:
        """Load content from the object store.

        :raises ObjectNotFoundError: If no object with that hash is stored.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        return load_content(self.objects_dir(), content_hash)

    @requires_repo
    def get_commit(self, commit_hash: str) -> Commit:
        """Load a commit from the object store.

        :raises ObjectNotFoundError: If no commit with that hash is stored.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        return load_commit(self.objects_dir(), commit_hash)

    @requires_repo
    def save_file_content(self, file: Path) -> Blob:
        """Save the content of a file to the repository.

        :param file: The path to the file to save.
        :return: A Blob object representing the saved file content.
        :raises ValueError: If the file does not exist.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        return save_file_content(self.objects_dir(), file)

    # References

    @requires_repo
    def head_ref(self) -> SymRef:
        """Get the current HEAD reference of the repository.

        :return: The symbolic reference HEAD points to.
        :raises RepositoryError: If the HEAD file does not exist or does not hold a symbolic reference.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        head_file = self.head_file()
        if not head_file.exists():
            msg = 'HEAD ref file does not exist'
            raise RepositoryError(msg)

        ref = read_ref(head_file)
        if not isinstance(ref, SymRef):
            msg = f'HEAD does not point to a branch: {ref}'
            raise RepositoryError(msg)

        return ref

    @requires_repo
    def current_branch(self) -> str:
        """Get the name of the branch HEAD points to.

        :raises RepositoryError: If HEAD does not point to a branch.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        head_ref = self.head_ref()
        branch = head_ref.branch_name()
        if not branch:
            msg = f'HEAD does not point to a branch: {head_ref}'
            raise RepositoryError(msg)

        return branch

    @requires_repo
    def set_head(self, branch: str) -> None:
        """Point HEAD at a branch, without checking that the branch exists."""
        write_ref(self.head_file(), branch_ref(branch))

    @requires_repo
    def branch_exists(self, branch: str) -> bool:
        """Check if a branch exists in the repository.

        :param branch: The name of the branch to check.
        :return: True if the branch exists, False otherwise. Invalid branch names never exist.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        if not branch or not BRANCH_NAME_PATTERN.match(branch):
            return False

        return (self.heads_dir() / branch).is_file()

    @requires_repo
    def branches(self) -> list[str]:
        """Get a sorted list of all branch names in the repository.

        :return: A list of branch names.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        return sorted(x.name for x in self.heads_dir().iterdir() if x.is_file())

    @requires_repo
    def read_branch(self, branch: str) -> HashRef | None:
        """Read the commit a branch points to.

        :param branch: The name of the branch.
        :return: The commit hash, or None if the branch does not exist or has no commits.
        :raises RefError: If the branch ref does not hold a commit hash.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        if not self.branch_exists(branch):
            return None

        ref = read_ref(self.heads_dir() / branch)
        if isinstance(ref, SymRef):
            msg = f'Branch "{branch}" holds a symbolic reference: {ref}'
            raise RefError(msg)

        return ref

    @requires_repo
    def write_branch(self, branch: str, commit_ref: HashRef) -> None:
        """Point a branch at a commit, replacing its previous value.

        :raises InvalidBranchNameError: If the branch name is invalid.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        validate_branch_name(branch)
        write_ref(self.heads_dir() / branch, HashRef(commit_ref))

    @requires_repo
    def add_branch(self, branch: str, checkout: bool = False) -> None:
        """Add a new branch starting at the latest commit of the current branch.

        If the current branch has no commits yet, the new branch is created empty.

        :param branch: The name of the branch to add.
        :param checkout: Whether to point HEAD at the new branch.
        :raises InvalidBranchNameError: If the branch name is invalid.
        :raises BranchExistsError: If the branch already exists.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        validate_branch_name(branch)
        if self.branch_exists(branch):
            msg = f"Branch '{branch}' already exists"
            raise BranchExistsError(msg)

        start = self.latest_commit()
        write_ref(self.heads_dir() / branch, start)
        logger.info('Created branch %s at %s', branch, start or '(no commits)')

        if checkout:
            self.checkout(branch)

    @requires_repo
    def checkout(self, branch: str) -> None:
        """Point HEAD at an existing branch. The working directory is left untouched.

        :raises BranchNotFoundError: If the branch does not exist.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        if not self.branch_exists(branch):
            msg = f"Branch '{branch}' does not exist"
            raise BranchNotFoundError(msg)

        self.set_head(branch)
        logger.info('Switched to branch %s', branch)

    @requires_repo
    def latest_commit(self, branch: str | None = None) -> HashRef | None:
        """Get the latest commit of a branch.

        :param branch: The name of the branch. Defaults to the branch HEAD points to.
        :return: The commit hash, or None if the branch has no commits.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        return self.read_branch(branch or self.current_branch())

    @requires_repo
    def resolve_ref(self, ref: Ref | str | None) -> HashRef | None:
        """Resolve a reference to a HashRef, following symbolic references if necessary.

        :param ref: A HashRef, a SymRef, 'HEAD', a branch name or a commit hash.
        :return: The resolved HashRef or None if the reference points to no commit.
        :raises RefError: If the reference is invalid or cannot be resolved.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        match ref:
            case HashRef():
                return ref
            case SymRef():
                if ref.upper() == 'HEAD':
                    return self.latest_commit()
                branch = ref.branch_name()
                if branch is None:
                    msg = f'Invalid symbolic reference: {ref}'
                    raise RefError(msg)
                return self.read_branch(branch)
            case str():
                if ref.upper() == 'HEAD':
                    return self.latest_commit()
                if self.branch_exists(ref):
                    return self.read_branch(ref)
                if is_hash(ref):
                    return HashRef(ref)

                msg = f'Invalid reference: {ref}'
                raise RefError(msg)
            case None:
                return None
            case _:
                msg = f'Invalid reference type: {type(ref)}'
                raise RefError(msg)

    # Staging

    @requires_repo
    def staged(self) -> list[StagedFile]:
        """Get the files staged for the next commit, in staging order.

        :raises RepositoryNotFoundError: If the repository does not exist."""
        return read_index(self.index_file())

    @requires_repo
    def clear_index(self) -> None:
        write_index(self.index_file(), [])

    def _index_path(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self.working_dir.resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    @requires_repo
    def stage(self, paths: Iterable[Path | str]) -> list[StagedFile]:
        """Stage files for the next commit.

        Each file is stored in the object store and recorded in the index under its path
        relative to the working directory. A path that is already staged is replaced in
        place. Paths that do not name an existing file are logged and skipped.

        :param paths: The files to stage, absolute or relative to the working directory.
        :return: The staged files after the update.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        updates: list[StagedFile] = []

        for path in paths:
            file = Path(path)
            if not file.is_absolute():
                file = self.working_dir / file

            if not file.is_file():
                logger.warning('Skipping %s: file does not exist', path)
                continue

            blob = self.save_file_content(file)
            updates.append(StagedFile(self._index_path(file), blob.hash))

        staged = upsert_entries(self.staged(), updates)
        write_index(self.index_file(), staged)

        return staged

    @requires_repo
    def stage_all(self) -> list[StagedFile]:
        """Stage every file of the working directory that is not ignored.

        :return: The staged files after the update.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        repo_path = self.repo_path()
        candidates = sorted(path.relative_to(self.working_dir) for path in self.working_dir.rglob('*')
                            if path.is_file() and not path.is_relative_to(repo_path))

        rules = IgnoreRules(self.working_dir, IGNORE_FILE)
        return self.stage(rules.filter(candidates))

    # History

    @requires_repo
    def commit(self, message: str) -> HashRef:
        """Commit the staged files to the current branch.

        The new commit records every staged file and has the latest commit of the current
        branch, if any, as its parent. The branch is advanced and the index is cleared.

        :param message: The commit message.
        :return: The hash of the new commit.
        :raises ValueError: If the message is empty.
        :raises NothingStagedError: If no files are staged.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        if not message:
            msg = 'Commit message is required'
            raise ValueError(msg)

        staged = self.staged()
        if not staged:
            msg = 'Nothing staged to commit'
            raise NothingStagedError(msg)

        branch = self.current_branch()
        parent = self.latest_commit(branch)

        commit = Commit(_now_millis(), message, tuple(staged), (parent,) if parent else ())
        commit_ref = HashRef(save_commit(self.objects_dir(), commit))

        self.write_branch(branch, commit_ref)
        self.clear_index()
        logger.info('Committed %s on %s: %s', commit_ref[:8], branch, message)

        return commit_ref

    @requires_repo
    def log(self, tip: Ref | str | None = None, limit: int | None = None) -> Generator[LogEntry, None, None]:
        """Generate a log of commits in the repository, starting from the specified tip.

        Commits are yielded from the tip towards the root, following first parents.

        :param tip: The reference to the commit to start from. If None, defaults to the current branch.
        :param limit: The maximum number of entries to yield.
        :return: A generator yielding LogEntry objects representing the commits in the log.
        :raises ObjectNotFoundError: If a commit in the chain cannot be loaded.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        current_hash = self.latest_commit() if tip is None else self.resolve_ref(tip)
        count = 0

        while current_hash and (limit is None or count < limit):
            commit = load_commit(self.objects_dir(), current_hash)
            yield LogEntry(HashRef(current_hash), commit)
            count += 1

            current_hash = HashRef(commit.parent) if commit.parent else None

    @requires_repo
    def common_ancestor(self, branch1: str, branch2: str) -> HashRef | None:
        """Find the common ancestor of the latest commits of two branches.

        :return: The common ancestor, or None if either branch has no commits or the histories are unrelated.
        :raises ObjectNotFoundError: If a commit in either history cannot be loaded.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        commit_hash1 = self.latest_commit(branch1)
        commit_hash2 = self.latest_commit(branch2)
        if commit_hash1 is None or commit_hash2 is None:
            return None

        return find_common_ancestor_core(self.objects_dir(), commit_hash1, commit_hash2)

    # Diff and merge

    @requires_repo
    def diff_blobs(self, hash1: str, hash2: str) -> list[str]:
        """Generate a line diff between two stored blobs.

        :raises ObjectNotFoundError: If either blob does not exist.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        return compare_blobs(self.objects_dir(), hash1, hash2)

    @requires_repo
    def diff_commits(self, commit_ref1: Ref | str, commit_ref2: Ref | str,
                     include_removed: bool = False) -> Sequence[FileDiff]:
        """Generate a diff between two commits in the repository.

        :param commit_ref1: The reference to the old commit.
        :param commit_ref2: The reference to the new commit.
        :param include_removed: Whether to report files missing from the new commit.
        :return: The differences of every changed or added file.
        :raises RefError: If a reference cannot be resolved to a commit.
        :raises ObjectNotFoundError: If a commit or blob cannot be loaded.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        commit_hash1 = self.resolve_ref(commit_ref1)
        commit_hash2 = self.resolve_ref(commit_ref2)

        if commit_hash1 is None:
            msg = f'Cannot resolve reference {commit_ref1}'
            raise RefError(msg)
        if commit_hash2 is None:
            msg = f'Cannot resolve reference {commit_ref2}'
            raise RefError(msg)

        return diff_commits(self.objects_dir(), commit_hash1, commit_hash2, include_removed)

    @requires_repo
    def merge(self, from_branch: str) -> HashRef:
        """Merge another branch into the current branch.

        If a file of the other branch is also tracked by the current branch with different
        content, every such conflict is logged and the merge halts without touching refs
        or the index. Otherwise a merge commit holding the files of the current branch is
        recorded with the heads of both branches as parents, and the current branch is
        advanced to it.

        :param from_branch: The name of the branch to merge.
        :return: The hash of the merge commit.
        :raises NoCommitsOnTargetError: If the current branch has no commits.
        :raises SourceBranchNotFoundError: If the other branch does not exist or has no commits.
        :raises MergeConflictError: If conflicting files were found.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        current_branch = self.current_branch()
        current_hash = self.latest_commit(current_branch)
        if current_hash is None:
            msg = 'Cannot merge into a branch with no commits'
            raise NoCommitsOnTargetError(msg)

        from_hash = self.read_branch(from_branch)
        if from_hash is None:
            msg = f"Branch '{from_branch}' does not exist"
            raise SourceBranchNotFoundError(msg)

        ancestor = find_common_ancestor_core(self.objects_dir(), current_hash, from_hash)
        logger.debug('Common ancestor of %s and %s: %s', current_branch, from_branch, ancestor)

        current_commit = load_commit(self.objects_dir(), current_hash)
        from_commit = load_commit(self.objects_dir(), from_hash)

        conflicts = detect_conflicts(self.objects_dir(), current_commit, from_commit)
        if conflicts:
            for conflict in conflicts:
                logger.warning('%s', format_conflict(conflict, current_branch, from_branch))

            msg = f'Merge conflicts in: {", ".join(c.path for c in conflicts)}'
            raise MergeConflictError(msg, conflicts)

        parents = (current_hash,) if from_hash == current_hash else (current_hash, from_hash)
        merge_commit = Commit(_now_millis(), merge_message(from_branch, current_branch),
                              current_commit.files, parents)
        merge_ref = HashRef(save_commit(self.objects_dir(), merge_commit))

        self.write_branch(current_branch, merge_ref)
        logger.info("Merged branch '%s' into '%s' as %s", from_branch, current_branch, merge_ref[:8])

        return merge_ref

    # Clone

    @requires_repo
    def clone(self, destination: Path | str) -> 'Repository':
        """Copy the repository directory into an empty destination directory.

        :param destination: The working directory of the clone. Created if missing.
        :return: The cloned repository.
        :raises CloneError: If the destination is not an empty directory.
        :raises RepositoryNotFoundError: If the repository does not exist."""
        destination = Path(destination)
        if destination.exists():
            if not destination.is_dir() or any(destination.iterdir()):
                msg = f'Destination directory must be empty: {destination}'
                raise CloneError(msg)
        else:
            destination.mkdir(parents=True)

        clone = Repository(destination, self.repo_dir)
        shutil.copytree(self.repo_path(), clone.repo_path())
        logger.info('Cloned repository to %s', destination)

        return clone


def validate_branch_name(branch: str) -> None:
    """Check that a branch name is made of letters, digits, '_' and '-'.

    :raises InvalidBranchNameError: If the name is empty or contains other characters."""
    if not branch or not BRANCH_NAME_PATTERN.match(branch):
        msg = f'Invalid branch name: {branch!r}'
        raise InvalidBranchNameError(msg)


def format_log(entries: Iterable[LogEntry], limit: int | None = None) -> str:
    """Render log entries as text.

    When `limit` is given, at most that many entries are rendered and a final line notes
    that the history continues.

    :param entries: The entries to render, e.g. from `Repository.log()`.
    :param limit: The maximum number of entries to render."""
    entries = iter(entries)
    shown = list(entries if limit is None else islice(entries, limit))
    if not shown:
        return 'No commits found in the current repository.'

    blocks = []
    for entry in shown:
        date = datetime.fromtimestamp(entry.commit.timestamp / 1000).isoformat(sep=' ', timespec='seconds')
        blocks.append(f'commit {entry.commit_ref}\n'
                      f'Date: {date}\n'
                      f'\n'
                      f'    {entry.commit.message}\n'
                      f'\n'
                      f'Files changed: {len(entry.commit.files)}\n')

    if limit is not None and next(entries, None) is not None:
        blocks.append('... and more commits\n')

    return '\n'.join(blocks)
