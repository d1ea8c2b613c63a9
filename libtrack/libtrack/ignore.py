"""Gitignore-style filtering of paths before they are staged."""

import logging
from collections.abc import Iterable
from pathlib import Path

from pathspec import GitIgnoreSpec

logger = logging.getLogger(__name__)


def load_ignore_patterns(path: Path) -> list[str]:
    """Load patterns from an ignore file.

    Comments (lines starting with #) and empty lines are filtered out.

    :param path: Path to the ignore file.
    :return: The patterns in file order, or an empty list if the file does not exist."""
    if not path.is_file():
        return []

    patterns: list[str] = []
    for line in path.read_text(encoding='utf-8').splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        patterns.append(stripped)

    return patterns


class IgnoreRules:
    """The ignore patterns of a working directory.

    Paths are matched relative to `root`; paths outside of it are never ignored."""

    def __init__(self, root: Path | str, ignore_file: Path | str) -> None:
        self.root = Path(root)
        self.ignore_file = self.root / ignore_file
        self.patterns = load_ignore_patterns(self.ignore_file)
        self._spec = GitIgnoreSpec.from_lines(self.patterns)

    def _relative(self, path: Path | str) -> str | None:
        path = Path(path)
        if not path.is_absolute():
            return path.as_posix()
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return None

    def is_ignored(self, path: Path | str) -> bool:
        relative = self._relative(path)
        if relative is None:
            return False
        return self._spec.match_file(relative)

    def filter(self, paths: Iterable[Path | str]) -> list[Path | str]:
        """Return the paths that do not match any ignore pattern, in their original order."""
        kept = []
        for path in paths:
            if self.is_ignored(path):
                logger.debug('Ignoring %s', path)
                continue
            kept.append(path)
        return kept

    def add_patterns(self, patterns: Iterable[str]) -> list[str]:
        """Append new patterns to the ignore file.

        Patterns already present are skipped.

        :return: The patterns that were actually added."""
        added = []
        for pattern in patterns:
            pattern = pattern.strip()
            if pattern and pattern not in self.patterns and pattern not in added:
                added.append(pattern)

        if added:
            existing = self.ignore_file.read_text(encoding='utf-8') if self.ignore_file.exists() else ''
            if existing and not existing.endswith('\n'):
                existing += '\n'
            self.ignore_file.write_text(existing + '\n'.join(added) + '\n', encoding='utf-8')
            self.patterns.extend(added)
            self._spec = GitIgnoreSpec.from_lines(self.patterns)

        return added
