"""
Read-only virtual filesystem over a commit held in an in-memory object store.

The tree never touches the host filesystem. Directory listings and file
contents are resolved on demand from git tree and blob objects.
"""

import logging
import posixpath
import stat
from dataclasses import dataclass
from typing import List, Optional, Tuple

from dulwich.object_store import BaseObjectStore
from dulwich.objects import S_ISGITLINK, Blob, Tree

logger = logging.getLogger(__name__)

# Symlink chains longer than this are treated as unreadable
MAX_SYMLINK_HOPS = 8

_PATH_ENCODING = "utf-8"
_PATH_ERRORS = "surrogateescape"


@dataclass(frozen=True)
class FileSystemEntry:
    """A single entry of a working tree directory."""

    path: str
    is_dir: bool

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)


def _encode(path: str) -> bytes:
    return path.encode(_PATH_ENCODING, _PATH_ERRORS)


def _decode(path: bytes) -> str:
    return path.decode(_PATH_ENCODING, _PATH_ERRORS)


class EphemeralWorkingTree:
    """Working tree of a single repository snapshot, backed by memory only.

    Instances are bound to one repository and released once its walk is
    done. Any access after :meth:`release` raises ``RuntimeError``.
    """

    def __init__(self, repository: str, object_store: BaseObjectStore, tree_id: bytes):
        self.repository = repository
        self._object_store: Optional[BaseObjectStore] = object_store
        self._tree_id = tree_id

    def __enter__(self) -> "EphemeralWorkingTree":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else "open"
        return f"<EphemeralWorkingTree {self.repository!r} {state}>"

    @property
    def released(self) -> bool:
        return self._object_store is None

    def release(self) -> None:
        """Drop the object store so its memory can be reclaimed."""
        if self._object_store is not None:
            logger.debug(f"Releasing working tree of {self.repository}")
        self._object_store = None

    def _store(self) -> BaseObjectStore:
        if self._object_store is None:
            raise RuntimeError(f"working tree of {self.repository!r} was released")
        return self._object_store

    def _lookup(self, path: str) -> Tuple[int, bytes]:
        """Resolve a tree-relative path to its (mode, object id)."""
        mode, sha = stat.S_IFDIR, self._tree_id
        if not path:
            return mode, sha

        store = self._store()
        for component in _encode(path).split(b"/"):
            if not component:
                continue
            if not stat.S_ISDIR(mode):
                raise NotADirectoryError(path)
            tree = store[sha]
            if not isinstance(tree, Tree):
                raise NotADirectoryError(path)
            try:
                mode, sha = tree[component]
            except KeyError:
                raise FileNotFoundError(path) from None
        return mode, sha

    def list_dir(self, path: str = "") -> List[FileSystemEntry]:
        """List the entries of a directory, sorted by name.

        Submodules appear as directories without entries, the way a
        checkout leaves them.

        Raises:
            FileNotFoundError: If the path does not exist
            NotADirectoryError: If the path is not a directory
            KeyError: If the tree object is missing from the store
        """
        mode, sha = self._lookup(path)
        if S_ISGITLINK(mode):
            return []
        if not stat.S_ISDIR(mode):
            raise NotADirectoryError(path)

        tree = self._store()[sha]
        if not isinstance(tree, Tree):
            raise NotADirectoryError(path)

        entries = []
        for item in tree.items():
            name = _decode(item.path)
            child = posixpath.join(path, name) if path else name
            is_dir = stat.S_ISDIR(item.mode) or S_ISGITLINK(item.mode)
            entries.append(FileSystemEntry(path=child, is_dir=is_dir))
        entries.sort(key=lambda entry: entry.name)
        return entries

    def read_bytes(self, path: str) -> bytes:
        """Return the content of a file, following symlinks inside the tree.

        Raises:
            FileNotFoundError: If the path or a symlink target does not exist
            IsADirectoryError: If the path resolves to a directory
            OSError: If a symlink chain is too long
            KeyError: If the blob is missing from the store
        """
        current = path
        for _ in range(MAX_SYMLINK_HOPS + 1):
            mode, sha = self._lookup(current)
            if stat.S_ISDIR(mode) or S_ISGITLINK(mode):
                raise IsADirectoryError(current)

            blob = self._store()[sha]
            if not isinstance(blob, Blob):
                raise IsADirectoryError(current)
            if not stat.S_ISLNK(mode):
                return blob.as_raw_string()

            target = _decode(blob.as_raw_string())
            if target.startswith("/"):
                raise FileNotFoundError(f"{path}: symlink leaves the working tree")
            current = posixpath.normpath(posixpath.join(posixpath.dirname(current), target))
            if current == ".." or current.startswith("../"):
                raise FileNotFoundError(f"{path}: symlink leaves the working tree")
        raise OSError(f"{path}: too many levels of symbolic links")
