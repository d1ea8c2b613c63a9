"""libtrack: a minimal content-addressed version control library."""

from .objects import Blob, Commit, StagedFile

__all__ = ['Blob', 'Commit', 'StagedFile']
