"""Credential lookup from the ``hub`` command line tool's configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml  # type: ignore
from pydantic import BaseModel, Field

from .errors import AuthError

logger = logging.getLogger(__name__)

# Username sent with token authentication when none is configured
DEFAULT_TOKEN_USER = "x-access-token"


class HostCredential(BaseModel):
    """Authenticated identity for a single GitHub host."""

    host: str = Field(..., description="Host the credential belongs to")
    user: str = Field(..., description="Login name")
    token: str = Field(..., description="OAuth or personal access token")
    protocol: str = Field(default="https", description="Protocol for API and git")

    def __repr__(self) -> str:
        return f"HostCredential(host={self.host!r}, user={self.user!r}, protocol={self.protocol!r})"


def default_hub_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Location of the hub configuration file (``$HUB_CONFIG`` or ~/.config/hub)."""
    environ = os.environ if environ is None else environ
    configured = environ.get("HUB_CONFIG")
    if configured:
        return Path(configured).expanduser()
    config_home = environ.get("XDG_CONFIG_HOME")
    base = Path(config_home).expanduser() if config_home else Path.home() / ".config"
    return base / "hub"


class HubCredentialResolver:
    """Maps a host name to the credential hub stored for it.

    ``GITHUB_TOKEN`` (and optionally ``GITHUB_USER``) in the environment take
    precedence over the configuration file, as they do for hub itself.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.environ = os.environ if environ is None else environ
        self.config_path = config_path or default_hub_config_path(self.environ)

    def _load_hosts(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            logger.debug(f"No hub configuration at {self.config_path}")
            return {}

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise AuthError(f"can not read hub configuration {self.config_path}", str(e)) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise AuthError(f"unexpected hub configuration format in {self.config_path}")
        return data

    def _host_entries(self, host: str) -> List[Dict[str, Any]]:
        entries = self._load_hosts().get(host) or []
        if isinstance(entries, dict):
            entries = [entries]
        return [entry for entry in entries if isinstance(entry, dict)]

    def resolve(self, host: str) -> HostCredential:
        """Find the credential for a host.

        Raises:
            AuthError: If no token is configured for the host
        """
        entries = self._host_entries(host)
        entry = entries[0] if entries else {}

        token = self.environ.get("GITHUB_TOKEN") or entry.get("oauth_token")
        if not token:
            raise AuthError(
                f"can not find authentication for {host!r}. "
                'Install "hub" and authenticate.'
            )

        user = self.environ.get("GITHUB_USER") or entry.get("user") or DEFAULT_TOKEN_USER
        protocol = entry.get("protocol") or "https"
        logger.debug(f"Using credential of {user} for {host}")
        return HostCredential(host=host, user=str(user), token=str(token), protocol=str(protocol))
