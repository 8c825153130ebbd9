"""GitHub App credentials: app JWTs and cached installation tokens.

The app signs a short-lived RS256 JWT with its private key and exchanges it
for an installation access token scoped to one installation. Installation
tokens live for 60 minutes on GitHub's side; we cache them for less than
that so a cached token is always still valid when served.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx
import jwt
from pydantic import BaseModel

from docmirror.config.models import GitHubAppConfig
from docmirror.errors import CredentialError
from docmirror.logging_setup import mask_token
from docmirror.vcs.models import InstallationInfo

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
_ACCEPT = "application/vnd.github+json"
_API_VERSION = "2022-11-28"


def _json_body(response: httpx.Response, what: str):
    try:
        return response.json()
    except ValueError as e:
        raise CredentialError(
            f"{what} was not valid JSON: {response.text[:200]}",
            status_code=response.status_code,
        ) from e


class CachedToken(BaseModel):
    """An exchanged installation token and the epoch second it stops being served."""

    token: str
    expires_at: float


@runtime_checkable
class TokenCache(Protocol):
    """Storage for installation tokens keyed by installation id."""

    def get(self, installation_id: int) -> CachedToken | None: ...

    def set(self, installation_id: int, token: CachedToken) -> None: ...

    def delete(self, installation_id: int) -> None: ...


class InMemoryTokenCache:
    """Process-local TokenCache backed by a dict."""

    def __init__(self) -> None:
        self._entries: dict[int, CachedToken] = {}

    def get(self, installation_id: int) -> CachedToken | None:
        return self._entries.get(installation_id)

    def set(self, installation_id: int, token: CachedToken) -> None:
        self._entries[installation_id] = token

    def delete(self, installation_id: int) -> None:
        self._entries.pop(installation_id, None)


class InstallationTokenManager:
    """Mints and caches installation-scoped access tokens.

    One instance is shared by every task in the process. Regeneration is
    serialized per installation id, so concurrent callers that miss the
    cache at the same time trigger a single exchange and all receive the
    same token.
    """

    def __init__(
        self,
        app_id: str,
        *,
        private_key: str | None = None,
        private_key_path: str | None = None,
        api_url: str = GITHUB_API_URL,
        token_ttl: float = 55 * 60,
        jwt_ttl: int = 9 * 60,
        clock_skew: int = 60,
        timeout: float = 10.0,
        cache: TokenCache | None = None,
        clock: Callable[[], float] = time.time,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.app_id = app_id
        self._private_key = private_key
        self._private_key_path = private_key_path
        self.api_url = api_url.rstrip("/")
        self.token_ttl = token_ttl
        self.jwt_ttl = jwt_ttl
        self.clock_skew = clock_skew
        self.timeout = timeout
        self.cache: TokenCache = cache if cache is not None else InMemoryTokenCache()
        self._clock = clock
        self._transport = transport
        self._locks: dict[int, asyncio.Lock] = {}

    @classmethod
    def from_config(cls, config: GitHubAppConfig, **kwargs) -> InstallationTokenManager:
        """Build a manager from app config, reading the app id from the environment."""
        app_id = os.environ.get(config.app_id_env, "")
        if not app_id:
            raise CredentialError(
                f"GitHub App id not found. Set the {config.app_id_env} environment variable."
            )
        return cls(
            app_id,
            private_key_path=config.private_key_path,
            api_url=config.api_url,
            token_ttl=config.token_ttl_seconds,
            jwt_ttl=config.jwt_ttl_seconds,
            clock_skew=config.clock_skew_seconds,
            timeout=config.request_timeout,
            **kwargs,
        )

    # -- app JWT ---------------------------------------------------------------

    def _load_private_key(self) -> str:
        if self._private_key is not None:
            return self._private_key
        if not self._private_key_path:
            raise CredentialError("No GitHub App private key configured")
        path = Path(self._private_key_path)
        if not path.is_absolute():
            path = Path.cwd() / path
        try:
            self._private_key = path.read_text(encoding="utf-8")
        except OSError as e:
            raise CredentialError(f"Private key file not readable: {path}: {e}") from e
        return self._private_key

    def create_app_jwt(self) -> str:
        """Sign a JWT identifying the app itself.

        ``iat`` is backdated by the clock-skew margin and ``exp`` stays
        inside GitHub's 10 minute ceiling.
        """
        if not self.app_id:
            raise CredentialError("GitHub App id is not configured")
        key = self._load_private_key()
        now = int(self._clock())
        payload = {
            "iat": now - self.clock_skew,
            "exp": now + self.jwt_ttl,
            "iss": str(self.app_id),
        }
        try:
            return jwt.encode(payload, key, algorithm="RS256")
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise CredentialError(f"Failed to sign GitHub App JWT: {e}") from e

    # -- installation tokens ---------------------------------------------------

    def _lock_for(self, installation_id: int) -> asyncio.Lock:
        return self._locks.setdefault(installation_id, asyncio.Lock())

    def _cached(self, installation_id: int) -> str | None:
        entry = self.cache.get(installation_id)
        if entry is not None and entry.expires_at > self._clock():
            return entry.token
        return None

    async def get_token(self, installation_id: int) -> str:
        """Return a valid installation token, exchanging a new one if needed."""
        token = self._cached(installation_id)
        if token is not None:
            return token

        async with self._lock_for(installation_id):
            # Another caller may have refreshed while we waited
            token = self._cached(installation_id)
            if token is not None:
                return token

            self.cache.delete(installation_id)
            token = await self._exchange(installation_id)
            self.cache.set(
                installation_id,
                CachedToken(token=token, expires_at=self._clock() + self.token_ttl),
            )
            return token

    def invalidate(self, installation_id: int) -> None:
        """Evict the cached token so the next call mints a fresh one."""
        self.cache.delete(installation_id)
        logger.info("Invalidated cached token for installation %s", installation_id)

    async def _exchange(self, installation_id: int) -> str:
        app_jwt = self.create_app_jwt()
        url = f"{self.api_url}/app/installations/{installation_id}/access_tokens"
        logger.debug("Requesting installation token for %s", installation_id)
        try:
            async with self._client() as client:
                response = await client.post(url, headers=self._headers(f"Bearer {app_jwt}"))
        except httpx.HTTPError as e:
            raise CredentialError(f"Failed to get installation token: {e}") from e

        if response.status_code >= 400:
            raise CredentialError(
                f"Failed to get installation token: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        data = _json_body(response, "Installation token response")
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise CredentialError("Installation token response did not contain a token")
        logger.info(
            "Minted installation token %s for installation %s (github expiry %s)",
            mask_token(token),
            installation_id,
            data.get("expires_at"),
        )
        return token

    # -- app-level queries -----------------------------------------------------

    async def list_installations(self) -> list[InstallationInfo]:
        """List every installation of the app."""
        app_jwt = self.create_app_jwt()
        data = await self._get_json("/app/installations", f"Bearer {app_jwt}")
        return [
            InstallationInfo(
                id=item["id"],
                account_login=item.get("account", {}).get("login", ""),
                account_type=item.get("account", {}).get("type", "User"),
            )
            for item in data
        ]

    async def list_installation_repositories(self, installation_id: int) -> list[str]:
        """Full names of the repositories an installation can access."""
        token = await self.get_token(installation_id)
        names: list[str] = []
        page = 1
        while True:
            data = await self._get_json(
                f"/installation/repositories?per_page=100&page={page}", f"token {token}"
            )
            repos = data.get("repositories", [])
            names.extend(r["full_name"] for r in repos)
            if len(repos) < 100:
                return names
            page += 1

    async def find_installation_for_repo(self, owner: str, name: str) -> int | None:
        """Return the id of the first installation that can see owner/name."""
        full_name = f"{owner}/{name}".lower()
        for installation in await self.list_installations():
            try:
                repos = await self.list_installation_repositories(installation.id)
            except CredentialError:
                logger.warning(
                    "Skipping installation %s: could not list repositories",
                    installation.id,
                    exc_info=True,
                )
                continue
            if full_name in (r.lower() for r in repos):
                return installation.id
        logger.info("No installation found for %s/%s", owner, name)
        return None

    # -- http helpers ----------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _headers(self, authorization: str) -> dict[str, str]:
        return {
            "Authorization": authorization,
            "Accept": _ACCEPT,
            "X-GitHub-Api-Version": _API_VERSION,
        }

    async def _get_json(self, path: str, authorization: str):
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.api_url}{path}", headers=self._headers(authorization)
                )
        except httpx.HTTPError as e:
            raise CredentialError(f"GitHub App request failed: {e}") from e
        if response.status_code >= 400:
            raise CredentialError(
                f"GitHub App request {path} failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        return _json_body(response, f"GitHub App response for {path}")
