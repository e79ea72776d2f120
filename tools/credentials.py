"""
DigitalOcean API token discovery.

The token is looked up in a fixed order, first non-empty match wins:
1. DIGITALOCEAN_TOKEN environment variable
2. DO_TOKEN environment variable
3. ~/.dotoken
4. DIGITALOCEAN_TOKEN= or DO_TOKEN= line in the project .env file
5. ~/.config/digitalocean/token

Missing or unreadable files are skipped. By default the chain is walked on
every call; a TTL cache can be enabled explicitly.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Mapping, Optional

from dotenv import dotenv_values

from policies import SERVER_CONFIG

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS = ("DIGITALOCEAN_TOKEN", "DO_TOKEN")
DOTFILE_NAME = ".dotoken"
PROJECT_ENV_FILE = ".env"
CONFIG_TOKEN_PATH = Path(".config") / "digitalocean" / "token"


def _clean(value: Optional[str]) -> Optional[str]:
    """Strip a candidate token; blank counts as absent."""
    if value is None:
        return None
    # token files may start with a UTF-8 byte-order mark
    value = value.replace("\ufeff", "").strip()
    return value or None


def from_environment(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Read the token from a single environment variable."""
    return _clean(environ.get(name))


def from_file(path: Path) -> Optional[str]:
    """Read the whole file as the token."""
    try:
        if not path.is_file():
            return None
        return _clean(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Skipping unreadable token file {path}: {e}")
        return None


def from_env_file(path: Path, keys: tuple[str, ...] = TOKEN_ENV_VARS) -> Optional[str]:
    """Read the token from KEY=value lines of a dotenv file."""
    try:
        if not path.is_file():
            return None
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Skipping unreadable env file {path}: {e}")
        return None

    for key in keys:
        token = _clean(values.get(key))
        if token:
            return token
    return None


@dataclass
class TokenLocation:
    """One place consulted when searching for a token."""

    description: str
    lookup: Callable[[], Optional[str]]


@dataclass
class CachedToken:
    """A resolved token with its expiry."""

    value: str
    expires_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at


class CredentialResolver:
    """
    Resolves the DigitalOcean API token from the environment and filesystem.

    Usage:
        resolver = CredentialResolver()
        token = resolver.resolve()
        if token is None:
            ...  # tell the user where a token can be configured
    """

    def __init__(
        self,
        home: Optional[Path] = None,
        project_root: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        cache_ttl_seconds: Optional[int] = None,
    ):
        """
        Initialize the resolver.

        Args:
            home: User home directory (defaults to Path.home())
            project_root: Directory holding the project .env (defaults to cwd)
            environ: Environment mapping (defaults to os.environ)
            cache_ttl_seconds: Cache resolved tokens for this long. Defaults
                to the policy value; 0 or None disables caching.
        """
        self.home = Path(home) if home is not None else Path.home()
        self.project_root = Path(project_root) if project_root is not None else Path.cwd()
        self.environ = environ if environ is not None else os.environ

        if cache_ttl_seconds is None:
            cache_ttl_seconds = SERVER_CONFIG.get("credentials", {}).get("cache_ttl_seconds")
        self.cache_ttl_seconds = cache_ttl_seconds or 0
        self._cached: Optional[CachedToken] = None

    @property
    def locations(self) -> list[TokenLocation]:
        """Token locations in priority order."""
        dotfile = self.home / DOTFILE_NAME
        env_file = self.project_root / PROJECT_ENV_FILE
        config_file = self.home / CONFIG_TOKEN_PATH

        locations = [
            TokenLocation(
                f"{name} environment variable",
                lambda name=name: from_environment(self.environ, name),
            )
            for name in TOKEN_ENV_VARS
        ]
        locations.append(TokenLocation(str(dotfile), lambda: from_file(dotfile)))
        locations.append(
            TokenLocation(
                f"{' or '.join(TOKEN_ENV_VARS)} in {env_file}",
                lambda: from_env_file(env_file),
            )
        )
        locations.append(TokenLocation(str(config_file), lambda: from_file(config_file)))
        return locations

    def describe_locations(self) -> list[str]:
        """Human-readable list of every place a token can be configured."""
        return [location.description for location in self.locations]

    def resolve(self) -> Optional[str]:
        """
        Find the first configured token.

        Returns:
            The token, or None if no location holds one
        """
        if self._cached is not None and not self._cached.is_expired:
            return self._cached.value

        for location in self.locations:
            token = location.lookup()
            if token:
                logger.debug(f"Using DigitalOcean token from {location.description}")
                self._remember(token)
                return token

        logger.info("No DigitalOcean token found in any configured location")
        return None

    def resolve_token(self, explicit: Optional[str] = None) -> Optional[str]:
        """Prefer a caller-supplied token, falling back to resolve()."""
        return _clean(explicit) or self.resolve()

    def clear_cache(self) -> None:
        self._cached = None

    def _remember(self, token: str) -> None:
        if self.cache_ttl_seconds <= 0:
            return
        self._cached = CachedToken(
            value=token,
            expires_at=datetime.utcnow() + timedelta(seconds=self.cache_ttl_seconds),
        )
