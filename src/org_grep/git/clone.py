"""
Shallow, in-memory cloning of remote repositories.

Every clone fetches only the commit at the remote HEAD (depth 1) into a
memory-backed object store. Nothing is written to the host filesystem.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from dulwich.client import GitClient, get_transport_and_path
from dulwich.objects import Commit
from dulwich.repo import MemoryRepo

from ..credentials import HostCredential
from ..errors import CloneError
from .working_tree import EphemeralWorkingTree

logger = logging.getLogger(__name__)

CLONE_DEPTH = 1

_AUTH_SCHEMES = ("http", "https")

TransportFactory = Callable[..., Tuple[GitClient, str]]


@dataclass(frozen=True)
class RepositoryReference:
    """A repository to search, identified by its clone URL."""

    clone_url: str

    @property
    def display_name(self) -> str:
        return self.clone_url

    def __str__(self) -> str:
        return self.clone_url


def _wants_head(refs: Dict[bytes, bytes], depth: Optional[int] = None) -> List[bytes]:
    """Only fetch the commit the remote HEAD points at."""
    head = refs.get(b"HEAD")
    return [head] if head else []


class CloneEngine:
    """Produces one ephemeral working tree per repository."""

    def __init__(
        self,
        credential: Optional[HostCredential] = None,
        transport_factory: TransportFactory = get_transport_and_path,
    ):
        self.credential = credential
        self._transport_factory = transport_factory

    def _transport(self, url: str) -> Tuple[GitClient, str]:
        kwargs: Dict[str, Any] = {}
        if self.credential is not None and urlparse(url).scheme in _AUTH_SCHEMES:
            kwargs["username"] = self.credential.user
            kwargs["password"] = self.credential.token
        return self._transport_factory(url, **kwargs)

    def clone(self, reference: RepositoryReference) -> EphemeralWorkingTree:
        """Clone the latest snapshot of a repository into memory.

        Args:
            reference: Repository to clone

        Returns:
            Working tree of the remote HEAD commit

        Raises:
            CloneError: For malformed URLs, transport or authentication
                failures, missing or empty repositories
        """
        url = reference.clone_url
        logger.debug(f"Cloning {url} (depth {CLONE_DEPTH})")

        repo = MemoryRepo()
        try:
            client, path = self._transport(url)
            result = client.fetch(
                path, repo, determine_wants=_wants_head, depth=CLONE_DEPTH
            )
        except Exception as e:
            raise CloneError(url, e) from e

        head = result.refs.get(b"HEAD")
        if not head:
            raise CloneError(url, LookupError("remote repository is empty"))

        try:
            commit = repo.object_store[head]
        except KeyError as e:
            raise CloneError(url, LookupError("HEAD commit was not fetched")) from e
        if not isinstance(commit, Commit):
            raise CloneError(url, TypeError(f"HEAD is a {commit.type_name.decode()}"))

        logger.debug(f"Cloned {url} at {head.decode()}")
        return EphemeralWorkingTree(url, repo.object_store, commit.tree)
