"""Turns scan progress and recoverable failures into log records."""

import logging
from typing import TYPE_CHECKING

from .config import TRACE
from .errors import CloneError, RecoverableError
from .git.clone import RepositoryReference
from .search.walker import WalkOutcome

if TYPE_CHECKING:
    from .orchestrator import ScanSummary

logger = logging.getLogger(__name__)


class ScanReporter:
    """Receives scan events. The base implementation ignores them."""

    def repository_started(self, reference: RepositoryReference) -> None:
        pass

    def clone_failed(self, reference: RepositoryReference, error: CloneError) -> None:
        pass

    def walk_failed(self, reference: RepositoryReference, error: RecoverableError) -> None:
        pass

    def repository_finished(
        self, reference: RepositoryReference, outcome: WalkOutcome
    ) -> None:
        pass

    def run_finished(self, summary: "ScanSummary") -> None:
        pass


class LoggingScanReporter(ScanReporter):
    """Reports scan events through the logging module."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def repository_started(self, reference: RepositoryReference) -> None:
        self.log.info(f"Searching: {reference.display_name}")

    def clone_failed(self, reference: RepositoryReference, error: CloneError) -> None:
        self.log.warning(f"Error in {reference.display_name!r}: {error}")

    def walk_failed(self, reference: RepositoryReference, error: RecoverableError) -> None:
        self.log.warning(f"[{reference.display_name}] {error}")

    def repository_finished(
        self, reference: RepositoryReference, outcome: WalkOutcome
    ) -> None:
        self.log.debug(
            f"Finished {reference.display_name}: {outcome.files} files in "
            f"{outcome.directories} directories, {outcome.matches} matches"
        )
        if outcome.binary_files:
            self.log.log(
                TRACE,
                f"Skipped {outcome.binary_files} binary files in {reference.display_name}",
            )

    def run_finished(self, summary: "ScanSummary") -> None:
        self.log.info(
            f"Searched {summary.repositories - summary.failed_repositories} of "
            f"{summary.repositories} repositories: {summary.matches} matches "
            f"in {summary.files} files, {summary.warnings} warnings"
        )
