"""
Sequential clone -> walk -> match -> emit pipeline over many repositories.

Repositories are processed strictly in listing order, one at a time. A
failure confined to a repository, directory or file is reported and the run
continues; only setup failures (configuration, credentials, listing) end it.
"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, Optional, Protocol, TextIO

from .config import SearchConfig
from .credentials import HostCredential, HubCredentialResolver
from .errors import CloneError
from .git.clone import CloneEngine, RepositoryReference
from .git.working_tree import EphemeralWorkingTree
from .github_client import GitHubRepositoryLister
from .output import CsvOutputSink, OutputSchema
from .reporting import LoggingScanReporter, ScanReporter
from .search.walker import TreeWalker, WalkOutcome

logger = logging.getLogger(__name__)


class Cloner(Protocol):
    def clone(self, reference: RepositoryReference) -> EphemeralWorkingTree: ...


class RepositoryLister(Protocol):
    def list_repositories(self, organization: str = "") -> list: ...

    def close(self) -> None: ...


@dataclass
class ScanSummary:
    """Totals of a finished run."""

    repositories: int = 0
    failed_repositories: int = 0
    files: int = 0
    matches: int = 0
    warnings: int = 0


class ScanOrchestrator:
    """Drives every repository through clone, walk and output."""

    def __init__(
        self,
        cloner: Cloner,
        walker: TreeWalker,
        sink: CsvOutputSink,
        reporter: Optional[ScanReporter] = None,
    ):
        self.cloner = cloner
        self.walker = walker
        self.sink = sink
        self.reporter = reporter or LoggingScanReporter()

    def scan_repository(self, reference: RepositoryReference) -> WalkOutcome:
        """Clone and walk one repository, releasing its tree afterwards.

        Raises:
            CloneError: If the repository can not be cloned
        """
        tree = self.cloner.clone(reference)
        with tree:
            emit = partial(self.sink.write, reference.display_name)
            return self.walker.walk(
                tree, emit, on_failure=partial(self.reporter.walk_failed, reference)
            )

    def run(self, repositories: Iterable[RepositoryReference]) -> ScanSummary:
        """Search every repository in order. Never fails for a single repository."""
        self.sink.write_header()
        summary = ScanSummary()

        for reference in repositories:
            summary.repositories += 1
            self.reporter.repository_started(reference)
            try:
                outcome = self.scan_repository(reference)
            except CloneError as e:
                summary.failed_repositories += 1
                summary.warnings += 1
                self.reporter.clone_failed(reference, e)
                continue

            summary.files += outcome.files
            summary.matches += outcome.matches
            summary.warnings += len(outcome.failures)
            self.reporter.repository_finished(reference, outcome)

        self.reporter.run_finished(summary)
        return summary


def run_search(
    config: SearchConfig,
    stream: TextIO,
    resolver: Optional[HubCredentialResolver] = None,
    lister_factory: Optional[Callable[[str, HostCredential, float], RepositoryLister]] = None,
    cloner_factory: Optional[Callable[[HostCredential], Cloner]] = None,
    reporter: Optional[ScanReporter] = None,
) -> ScanSummary:
    """Run a complete search as configured, writing records to ``stream``.

    Setup happens in a fixed order and stops at the first failure: the
    pattern is compiled, the credential resolved, the repositories listed.
    Only then is the header written and the first repository cloned.

    Raises:
        ConfigError: If the pattern does not compile
        AuthError: If no credential exists for the host
        ListError: If the repositories can not be listed
    """
    pattern = config.compile_pattern()
    logger.info(f"Pattern: {pattern.pattern}")

    resolver = resolver or HubCredentialResolver()
    credential = resolver.resolve(config.host)

    lister_factory = lister_factory or GitHubRepositoryLister
    lister = lister_factory(
        config.api_base_url(credential.protocol), credential, config.http_timeout
    )
    try:
        repositories = lister.list_repositories(config.organization)
    finally:
        lister.close()

    schema = OutputSchema.from_pattern(pattern)
    sink = CsvOutputSink(stream, schema, delimiter=config.delimiter)
    cloner = (cloner_factory or CloneEngine)(credential)
    walker = TreeWalker(pattern, include_binary=config.include_binary)
    orchestrator = ScanOrchestrator(cloner, walker, sink, reporter)
    return orchestrator.run(repositories)
