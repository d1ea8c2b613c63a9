"""Exceptions raised by libtrack."""


class RepositoryError(Exception):
    """Exception raised for repository-related errors."""


class RepositoryNotFoundError(RepositoryError):
    """Exception raised when a repository is not found."""


class RefError(RepositoryError):
    """Exception raised when a reference cannot be read or resolved."""


class ObjectNotFoundError(RepositoryError):
    """Exception raised when no object with a given hash is stored."""


class CorruptObjectError(RepositoryError):
    """Exception raised when a stored object cannot be decoded."""


class InvalidBranchNameError(RepositoryError, ValueError):
    """Exception raised when a branch name is not made of letters, digits, '_' and '-'."""


class BranchExistsError(RepositoryError):
    """Exception raised when creating a branch that already exists."""


class BranchNotFoundError(RepositoryError):
    """Exception raised when a branch does not exist."""


class NothingStagedError(RepositoryError):
    """Exception raised when committing with an empty index."""


class NoCommitsOnTargetError(RepositoryError):
    """Exception raised when merging into a branch without commits."""


class SourceBranchNotFoundError(RepositoryError):
    """Exception raised when the branch being merged has no commits."""


class MergeConflictError(RepositoryError):
    """Exception raised when a merge halts on conflicting files.

    The conflicting files are available in `conflicts`."""

    def __init__(self, msg: str, conflicts: list) -> None:
        super().__init__(msg)
        self.conflicts = conflicts


class CloneError(RepositoryError):
    """Exception raised when a repository cannot be cloned."""
