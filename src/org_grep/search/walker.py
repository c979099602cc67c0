"""Depth-first traversal of a working tree with per-entry error isolation."""

import io
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from dulwich.errors import FileFormatException

from ..errors import DirReadError, FileReadError, RecoverableError
from ..git.working_tree import EphemeralWorkingTree, FileSystemEntry
from .matcher import looks_binary, scan_lines

# Receives the tree-relative file path and the values of one match
FileEmit = Callable[[str, List[str]], None]
FailureHandler = Callable[[RecoverableError], None]

# Failures that only affect the directory or file being read
_READ_ERRORS = (OSError, KeyError, ValueError, FileFormatException)


@dataclass
class WalkOutcome:
    """What a walk visited, matched, and failed to read."""

    directories: int = 0
    files: int = 0
    binary_files: int = 0
    matches: int = 0
    failures: List[RecoverableError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class TreeWalker:
    """Walks a working tree and matches every file against one pattern.

    Entries are visited in name order; a directory is fully walked before
    its next sibling. An unreadable directory or file is recorded and
    skipped without affecting the rest of the tree.
    """

    def __init__(self, pattern: "re.Pattern[str]", include_binary: bool = False):
        self.pattern = pattern
        self.include_binary = include_binary

    def walk(
        self,
        tree: EphemeralWorkingTree,
        emit: FileEmit,
        on_failure: Optional[FailureHandler] = None,
    ) -> WalkOutcome:
        """Walk the whole tree from its root. Always returns normally."""
        outcome = WalkOutcome()

        def fail(error: RecoverableError) -> None:
            outcome.failures.append(error)
            if on_failure is not None:
                on_failure(error)

        try:
            root = tree.list_dir("")
        except _READ_ERRORS as e:
            fail(DirReadError("", e))
            return outcome

        outcome.directories += 1
        self._walk_entries(tree, root, emit, outcome, fail)
        return outcome

    def _walk_entries(
        self,
        tree: EphemeralWorkingTree,
        entries: List[FileSystemEntry],
        emit: FileEmit,
        outcome: WalkOutcome,
        fail: FailureHandler,
    ) -> None:
        for entry in entries:
            if entry.is_dir:
                try:
                    children = tree.list_dir(entry.path)
                except _READ_ERRORS as e:
                    fail(DirReadError(entry.path, e))
                    continue
                outcome.directories += 1
                self._walk_entries(tree, children, emit, outcome, fail)
                continue

            try:
                content = tree.read_bytes(entry.path)
            except _READ_ERRORS as e:
                fail(FileReadError(entry.path, e))
                continue

            outcome.files += 1
            if not self.include_binary and looks_binary(content):
                outcome.binary_files += 1
                continue

            path = entry.path
            outcome.matches += scan_lines(
                io.BytesIO(content), self.pattern, lambda values: emit(path, values)
            )
