"""GitHub REST API client used to enumerate repositories."""

import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from . import __version__
from .credentials import HostCredential
from .errors import ConfigError, ListError
from .git.clone import RepositoryReference

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class GitHubRepositoryLister:
    """Lists the repositories of a user or organization.

    Works against api.github.com and GitHub Enterprise ``/api/v3/`` bases.
    """

    def __init__(
        self,
        base_url: str,
        credential: HostCredential,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        try:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=timeout,
                headers={
                    "Accept": "application/vnd.github+json",
                    "Authorization": f"token {credential.token}",
                    "User-Agent": f"org-grep/{__version__}",
                },
                follow_redirects=True,
                transport=transport,
            )
        except httpx.InvalidURL as e:
            raise ConfigError(f"can not create client for {self.base_url!r}", str(e)) from e

    def __enter__(self) -> "GitHubRepositoryLister":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str, params: Optional[dict] = None) -> httpx.Response:
        try:
            response = self._client.get(url, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ListError("error listing repositories", str(e)) from e

        if response.status_code >= 400:
            detail = _error_message(response)
            raise ListError(
                "error listing repositories",
                f"GET {response.request.url}: {response.status_code} {detail}",
            )
        return response

    def list_repositories(self, organization: str = "") -> List[RepositoryReference]:
        """Return every repository of ``organization`` in API order.

        An empty organization lists the repositories of the authenticated
        user. All result pages are followed.

        Raises:
            ListError: On transport errors, error statuses or malformed bodies
        """
        if organization:
            path = f"users/{quote(organization, safe='')}/repos"
        else:
            path = "user/repos"

        repositories: List[RepositoryReference] = []
        url: Optional[str] = path
        params: Optional[dict] = {"per_page": PAGE_SIZE}
        while url:
            response = self._get(url, params=params)
            repositories.extend(_parse_page(response))
            url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            params = None

        logger.debug(f"Listed {len(repositories)} repositories")
        return repositories


def _parse_page(response: httpx.Response) -> List[RepositoryReference]:
    try:
        items = response.json()
    except ValueError as e:
        raise ListError("error listing repositories", f"invalid JSON: {e}") from e

    if not isinstance(items, list):
        raise ListError("error listing repositories", "expected a list of repositories")

    references = []
    for item in items:
        clone_url = item.get("clone_url") if isinstance(item, dict) else None
        if not clone_url:
            logger.debug(f"Ignoring repository entry without clone_url: {item!r}")
            continue
        references.append(RepositoryReference(clone_url=clone_url))
    return references


def _error_message(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase
