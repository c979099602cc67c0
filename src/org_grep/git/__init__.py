"""In-memory git cloning and read-only working trees."""

from .clone import CloneEngine, RepositoryReference
from .working_tree import EphemeralWorkingTree, FileSystemEntry

__all__ = [
    "CloneEngine",
    "EphemeralWorkingTree",
    "FileSystemEntry",
    "RepositoryReference",
]
