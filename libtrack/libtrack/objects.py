"""Object types stored by libtrack."""

from collections.abc import Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Blob:
    """The content of a single file, identified by the hash of its bytes."""

    hash: str


@dataclass(frozen=True)
class StagedFile:
    """A file path and the hash of its content, as queued for or recorded in a commit."""

    path: str
    hash: str

    def to_dict(self) -> dict[str, str]:
        return {'path': self.path, 'hash': self.hash}

    @classmethod
    def from_dict(cls, data: dict) -> 'StagedFile':
        return cls(str(data['path']), str(data['hash']))


@dataclass(frozen=True)
class Commit:
    """A snapshot of every tracked file together with its message, time and parents.

    `timestamp` is in milliseconds since the epoch. `files` is the complete set of
    tracked files at commit time, not a delta from the parent. `parents` holds no
    entry for a root commit, one for a regular commit and two for a merge commit."""

    timestamp: int
    message: str
    files: tuple[StagedFile, ...]
    parents: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        # Accept any sequence but keep the instance hashable
        object.__setattr__(self, 'files', tuple(self.files))
        object.__setattr__(self, 'parents', tuple(self.parents))

    @property
    def parent(self) -> str | None:
        """The first parent of the commit, or None for a root commit."""
        return self.parents[0] if self.parents else None

    def file_map(self) -> dict[str, str]:
        """Map each tracked path to its content hash."""
        return {f.path: f.hash for f in self.files}

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp,
            'message': self.message,
            'files': [f.to_dict() for f in self.files],
            'parents': list(self.parents),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Commit':
        parents: Sequence[str]
        if 'parents' in data:
            parents = [str(p) for p in data['parents'] if p]
        else:
            # Records written with a single optional parent
            parents = [str(data['parent'])] if data.get('parent') else []

        return cls(int(data['timestamp']),
                   str(data['message']),
                   tuple(StagedFile.from_dict(f) for f in data['files']),
                   tuple(parents))
