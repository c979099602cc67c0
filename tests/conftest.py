"""
Shared pytest fixtures for org-grep tests.

Working trees are built from plain dictionaries into an in-memory dulwich
object store, so no test touches the network or the filesystem.
"""

import stat
from typing import Callable, Dict, Tuple, Union

import pytest
from dulwich.object_store import MemoryObjectStore
from dulwich.objects import Blob, Commit, Tree

from org_grep.git.working_tree import EphemeralWorkingTree

SYMLINK_MODE = stat.S_IFLNK
GITLINK_MODE = 0o160000
FILE_MODE = 0o100644

# A hex object id that is never stored
MISSING_SHA = b"0123456789abcdef0123456789abcdef01234567"

# file content, nested directory, or (mode, content) for special entries
TreeSpec = Dict[str, Union[bytes, "TreeSpec", Tuple[int, bytes]]]


class Missing:
    """Marks an entry whose object is absent from the store."""

    def __init__(self, is_dir: bool):
        self.is_dir = is_dir


def store_tree(store: MemoryObjectStore, spec: TreeSpec) -> bytes:
    """Add a tree described by ``spec`` to ``store`` and return its id."""
    tree = Tree()
    for name, value in spec.items():
        if isinstance(value, Missing):
            mode = stat.S_IFDIR if value.is_dir else FILE_MODE
            tree.add(name.encode("utf-8"), mode, MISSING_SHA)
            continue
        if isinstance(value, dict):
            tree.add(name.encode("utf-8"), stat.S_IFDIR, store_tree(store, value))
            continue
        if isinstance(value, tuple):
            mode, data = value
        else:
            mode, data = FILE_MODE, value
        if mode == GITLINK_MODE:
            tree.add(name.encode("utf-8"), mode, MISSING_SHA)
            continue
        blob = Blob.from_string(data)
        store.add_object(blob)
        tree.add(name.encode("utf-8"), mode, blob.id)
    store.add_object(tree)
    return tree.id


def store_commit(store: MemoryObjectStore, spec: TreeSpec) -> bytes:
    """Add a single root commit of ``spec`` to ``store`` and return its id."""
    commit = Commit()
    commit.tree = store_tree(store, spec)
    commit.author = commit.committer = b"Test <test@example.com>"
    commit.author_time = commit.commit_time = 1700000000
    commit.author_timezone = commit.commit_timezone = 0
    commit.encoding = b"UTF-8"
    commit.message = b"snapshot\n"
    store.add_object(commit)
    return commit.id


@pytest.fixture
def make_tree() -> Callable[..., EphemeralWorkingTree]:
    """Factory fixture building an EphemeralWorkingTree from a spec dict."""

    def _make(spec: TreeSpec, repository: str = "R") -> EphemeralWorkingTree:
        store = MemoryObjectStore()
        return EphemeralWorkingTree(repository, store, store_tree(store, spec))

    return _make
