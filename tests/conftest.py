"""Shared test fixtures for releaseseal."""

from __future__ import annotations

import io
import shutil
import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest

from releaseseal.bridge import vault
from releaseseal.bridge.crypto_bridge import KeyPair, SigningConfig, generate_keypair
from releaseseal.core.artifact import Artifact, new_artifact, new_binary_artifact
from releaseseal.core.secrets import SecretHandle
from releaseseal.identity.signatory import Signatory
from releaseseal.identity.signee import PinnedSignee
from releaseseal.models.types import Architecture, ArtifactKind, OperatingSystem, SigneeKind

CONTENT = b"this is some content"

# Digests of CONTENT
CONTENT_DIGESTS = {
    "md5": "736db904ad222bf88ee6b8d103fceb8e",
    "sha1": "5ec1a3cb71c75c52cf23934b137985bd2499bd85",
    "sha256": "373993310775a34f5ad48aae265dac65c7abf420dfbaef62819e2cf5aafc64ca",
    "sha512": (
        "47bb28d146567b3be18d06d8468aaa8222183fe6b2a942b17b6a48bbc32bda72"
        "13f7dc1acf36677f7710cffa7add3f3656597630bf0d591f34145015f59724e1"
    ),
}

PROJECT = "myproject"
SIGNER_USER = "octocat"
PASSPHRASE = b"correct horse battery staple"


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def content() -> bytes:
    return CONTENT


@pytest.fixture
def content_digests() -> dict[str, str]:
    """Known md5/sha1/sha256/sha512 hex digests of the content fixture."""
    return dict(CONTENT_DIGESTS)


@pytest.fixture
def passphrase() -> bytes:
    return PASSPHRASE


# ---------------------------------------------------------------------------
# Keys and identities
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def key_config() -> SigningConfig:
    """RSA-2048 keys; generating at the default size is slow."""
    return SigningConfig(key_size=2048)


@pytest.fixture(scope="session")
def keypair(key_config: SigningConfig) -> KeyPair:
    """An OpenPGP signing identity shared by the whole session."""
    return generate_keypair("Test Signer", "release", "signer@example.com", key_config)


@pytest.fixture
def make_keypair(key_config: SigningConfig) -> Iterator[Callable[[str], KeyPair]]:
    """Factory fixture: throwaway identities, wiped after the test."""
    pairs: list[KeyPair] = []

    def _factory(name: str) -> KeyPair:
        pair = generate_keypair(name, config=key_config)
        pairs.append(pair)
        return pair

    yield _factory
    for pair in pairs:
        pair.private_key.destroy()


@pytest.fixture(scope="session")
def private_key_bytes(keypair: KeyPair) -> bytes:
    with keypair.private_key.open() as view:
        return view.tobytes()


@pytest.fixture
def signatory(private_key_bytes: bytes) -> Signatory:
    """A signatory over a fresh copy of the session key."""
    return Signatory(SecretHandle(private_key_bytes))


@pytest.fixture
def pinned_signee(keypair: KeyPair) -> PinnedSignee:
    return PinnedSignee(SIGNER_USER, keypair.key_id, SigneeKind.GITHUB, keypair.public_key)


@pytest.fixture
def sealed_key_file(tmp_dir: Path, private_key_bytes: bytes) -> Path:
    """The session private key sealed with PASSPHRASE at interactive cost."""
    path = tmp_dir / "signer.key"
    with SecretHandle(PASSPHRASE) as secret, SecretHandle(private_key_bytes) as message:
        path.write_bytes(vault.seal(secret, message, vault.INTERACTIVE_VAULT_CONFIG))
    return path


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


@pytest.fixture
def make_artifacts() -> Callable[..., list[Artifact]]:
    """Factory fixture: release notes plus one darwin/amd64 binary."""

    def _factory(content: bytes = CONTENT, project: str = PROJECT) -> list[Artifact]:
        return [
            new_artifact(io.BytesIO(content), project, ArtifactKind.RELEASE_NOTES),
            new_binary_artifact(
                io.BytesIO(content), project, OperatingSystem.DARWIN, Architecture.AMD64
            ),
        ]

    return _factory


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


def _gpg_keys_payload(key_id: str, raw_key: bytes, verified: bool = True) -> list[dict]:
    return [
        {
            "id": 3,
            "key_id": key_id,
            "raw_key": raw_key.decode("ascii"),
            "emails": [{"email": "signer@example.com", "verified": verified}],
            "can_sign": True,
        }
    ]


@pytest.fixture
def mock_client() -> Iterator[Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]]:
    """Factory fixture: an httpx client backed by a request handler."""
    clients: list[httpx.Client] = []

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _factory
    for client in clients:
        client.close()


@pytest.fixture
def github_keys_client(
    keypair: KeyPair, mock_client: Callable[..., httpx.Client]
) -> httpx.Client:
    """Serves the session key as SIGNER_USER's only verified GPG key."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == f"/users/{SIGNER_USER}/gpg_keys":
            return httpx.Response(200, json=_gpg_keys_payload(keypair.key_id, keypair.public_key))
        return httpx.Response(404, json={"message": "Not Found"})

    return mock_client(handler)


@pytest.fixture
def gpg_keys_payload() -> Callable[..., list[dict]]:
    """Factory fixture: a ``GET /users/{user}/gpg_keys`` body holding one key."""
    return _gpg_keys_payload


# ---------------------------------------------------------------------------
# Git
# ---------------------------------------------------------------------------


def _git(repo: Path, *args: str) -> None:
    subprocess.run(
        [
            "git",
            "-C", str(repo),
            "-c", "user.name=Test",
            "-c", "user.email=test@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        check=True,
        capture_output=True,
    )


@pytest.fixture
def git_repo(tmp_dir: Path) -> Path:
    """A repository whose ``master`` history yields v1.1.3.

    root (not counted) -> c1 -> c2 -> merge(feature: f1), i.e. three
    single-parent commits and one merge.
    """
    if shutil.which("git") is None:
        pytest.skip("git executable not found")
    repo = tmp_dir / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/master")
    _git(repo, "commit", "-q", "--allow-empty", "-m", "root")
    _git(repo, "commit", "-q", "--allow-empty", "-m", "c1")
    _git(repo, "checkout", "-q", "-b", "feature")
    _git(repo, "commit", "-q", "--allow-empty", "-m", "f1")
    _git(repo, "checkout", "-q", "master")
    _git(repo, "commit", "-q", "--allow-empty", "-m", "c2")
    _git(repo, "merge", "-q", "--no-ff", "-m", "merge feature", "feature")
    return repo
