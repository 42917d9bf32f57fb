"""Signees — identities a release signature is checked against.

A signee is a ``(user, key id, source)`` triple.  Its public key is looked up
lazily, through a fixed table keyed by :class:`SigneeKind`:

* ``github`` lists the user's GPG keys from a GitHub-style API and picks the
  entry whose ``key_id`` matches and that has a verified email;
* ``keybase`` is reserved and always raises
  :class:`~releaseseal.errors.SigneeNotImplementedError`.

Lookups are single blocking HTTP calls with no caching and no retry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from releaseseal.errors import (
    KeyLookupError,
    KeyNotFoundError,
    KeyUnverifiedError,
    SigneeNotImplementedError,
    UnknownSigneeTypeError,
)
from releaseseal.models.manifest import ManifestSignee
from releaseseal.models.types import SigneeKind

logger = logging.getLogger(__name__)

DEFAULT_GITHUB_API_ENDPOINT = "https://api.github.com"

GITHUB_ACCEPT = "application/vnd.github.v3+json"


# ---------------------------------------------------------------------------
# GitHub key directory
# ---------------------------------------------------------------------------


class GPGEmail(BaseModel):
    """An email address attached to a GitHub GPG key."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    email: str = ""
    verified: bool = False


class GPGKey(BaseModel):
    """One entry of ``GET /users/{user}/gpg_keys``.

    Only the fields the resolver needs are modelled; the rest are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    key_id: str = ""
    raw_key: str = ""
    emails: list[GPGEmail] = Field(default_factory=list)

    @property
    def has_verified_email(self) -> bool:
        return any(email.verified for email in self.emails)


class GitHubKeyDirectory:
    """Looks up a user's public signing keys on a GitHub-style API.

    Parameters
    ----------
    endpoint:
        API root, e.g. ``https://api.github.com`` or a GitHub Enterprise URL.
    client:
        Optional ``httpx.Client``.  Injected in tests; created per lookup
        otherwise.
    timeout:
        Timeout in seconds for a lookup.  ``None`` waits indefinitely.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_GITHUB_API_ENDPOINT,
        *,
        client: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._client = client
        self._timeout = timeout

    def list_gpg_keys(self, user: str) -> list[GPGKey]:
        """Return every GPG key registered to *user*."""
        url = f"{self._endpoint}/users/{user}/gpg_keys"
        headers = {"Accept": GITHUB_ACCEPT}
        try:
            if self._client is not None:
                response = self._client.get(url, headers=headers)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise KeyLookupError(f"failed to list users gpg keys: {exc}") from exc

        try:
            payload = response.json()
            if not isinstance(payload, list):
                raise ValueError("expected a list of keys")
            return [GPGKey.model_validate(item) for item in payload]
        except (ValueError, ValidationError) as exc:
            raise KeyLookupError(f"failed to decode users gpg keys: {exc}") from exc

    def public_key(self, user: str, key_id: str) -> bytes:
        """Return the raw key material of *key_id* if it belongs to *user*.

        Raises
        ------
        KeyNotFoundError
            If no key with *key_id* is registered to *user*.
        KeyUnverifiedError
            If the key exists but none of its emails is verified.
        """
        for key in self.list_gpg_keys(user):
            if key.key_id != key_id:
                continue
            if not key.has_verified_email:
                raise KeyUnverifiedError(
                    f"gpg key: {key_id} is not verified for user: {user}"
                )
            logger.info("Resolved key %s for %s", key_id, user)
            return key.raw_key.encode("utf-8")
        raise KeyNotFoundError(f"gpg key: {key_id} not found for user: {user}")


# ---------------------------------------------------------------------------
# Signees
# ---------------------------------------------------------------------------


class Signee:
    """An identity whose public key can be fetched for verification.

    Parameters
    ----------
    user:
        Account name on the identity source.
    key:
        Key identifier the release claims to be signed with.
    kind:
        Identity source.  Unknown values are accepted here and rejected by
        :meth:`public_key`.
    directory:
        GitHub key directory to use; a default one is created when omitted.
    """

    def __init__(
        self,
        user: str,
        key: str,
        kind: SigneeKind | str,
        *,
        directory: GitHubKeyDirectory | None = None,
    ) -> None:
        self.user = user
        self.key = key
        self.kind = kind
        self._directory = directory

    @classmethod
    def from_manifest(
        cls, signee: ManifestSignee, *, directory: GitHubKeyDirectory | None = None
    ) -> Signee:
        return cls(signee.user, signee.key, signee.type, directory=directory)

    @property
    def directory(self) -> GitHubKeyDirectory:
        if self._directory is None:
            self._directory = GitHubKeyDirectory()
        return self._directory

    def public_key(self) -> bytes:
        """Fetch the signee's public key from its identity source."""
        resolver = _RESOLVERS.get(self.kind)  # type: ignore[call-overload]
        if resolver is None:
            raise UnknownSigneeTypeError(f"unknown signee type: {self.kind}")
        return resolver(self)

    def __repr__(self) -> str:
        kind = getattr(self.kind, "value", self.kind)
        return f"<{type(self).__name__} user={self.user!r} key={self.key!r} kind={kind!r}>"


class PinnedSignee(Signee):
    """A signee whose public key is already known locally.

    Used for offline verification against a key file, bypassing the
    identity source while keeping the manifest's claimed identity.
    """

    def __init__(
        self,
        user: str,
        key: str,
        kind: SigneeKind | str,
        public_key: bytes,
    ) -> None:
        super().__init__(user, key, kind)
        self._public_key = public_key

    @classmethod
    def from_file(cls, signee: ManifestSignee, path: Path) -> PinnedSignee:
        return cls(signee.user, signee.key, signee.type, Path(path).read_bytes())

    def public_key(self) -> bytes:
        return self._public_key


def _github_public_key(signee: Signee) -> bytes:
    return signee.directory.public_key(signee.user, signee.key)


def _keybase_public_key(signee: Signee) -> bytes:
    raise SigneeNotImplementedError("not implemented")


_RESOLVERS: dict[SigneeKind, Callable[[Signee], bytes]] = {
    SigneeKind.GITHUB: _github_public_key,
    SigneeKind.KEYBASE: _keybase_public_key,
}
