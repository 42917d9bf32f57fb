"""Unit tests for fail-fast saver/deployer fan-out."""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from releaseseal.backends import Deployer, Loader, Saver
from releaseseal.backends.composite import DeployerChain, SaverChain
from releaseseal.backends.filesystem import FileSystemLoader, FileSystemSaver
from releaseseal.backends.github import GitHubDeployer
from releaseseal.errors import DeployError, StorageError
from releaseseal.models.manifest import Manifest, ManifestSignee
from releaseseal.models.types import SigneeKind


class _Recorder:
    """Records calls into a shared journal; optionally fails."""

    def __init__(self, name: str, journal: list[str], error: Exception | None = None) -> None:
        self.name = name
        self.journal = journal
        self.error = error

    def _call(self) -> None:
        self.journal.append(self.name)
        if self.error is not None:
            raise self.error

    def save(self, signature: bytes, manifest: Manifest, artifacts: Sequence) -> None:
        self._call()

    def deploy(self, signature: bytes, manifest: Manifest, artifacts: Sequence) -> None:
        self._call()


@pytest.fixture
def manifest() -> Manifest:
    return Manifest(
        name="myproject",
        version="v1.0.0",
        signee=ManifestSignee(user="octocat", key="k", type=SigneeKind.GITHUB),
    )


class TestProtocols:
    def test_filesystem_backends(self, tmp_dir):
        assert isinstance(FileSystemSaver(tmp_dir), Saver)
        assert isinstance(FileSystemLoader(tmp_dir), Loader)

    def test_github_deployer(self):
        assert isinstance(GitHubDeployer("o", "r", "t"), Deployer)


class TestSaverChain:
    def test_runs_in_order(self, manifest: Manifest):
        journal: list[str] = []
        chain = SaverChain([_Recorder("a", journal), _Recorder("b", journal)])
        chain.save(b"sig", manifest, [])
        assert journal == ["a", "b"]

    def test_stops_at_first_failure(self, manifest: Manifest):
        journal: list[str] = []
        error = StorageError("disk full")
        chain = SaverChain(
            [_Recorder("a", journal), _Recorder("b", journal, error), _Recorder("c", journal)]
        )
        with pytest.raises(StorageError) as info:
            chain.save(b"sig", manifest, [])
        assert info.value is error
        assert journal == ["a", "b"]

    def test_empty_chain_is_noop(self, manifest: Manifest):
        SaverChain().save(b"sig", manifest, [])


class TestDeployerChain:
    def test_runs_in_order(self, manifest: Manifest):
        journal: list[str] = []
        chain = DeployerChain([_Recorder("a", journal), _Recorder("b", journal)])
        chain.deploy(b"sig", manifest, [])
        assert journal == ["a", "b"]

    def test_first_error_propagates_unchanged(self, manifest: Manifest):
        journal: list[str] = []
        error = DeployError("upload failed")
        chain = DeployerChain([_Recorder("a", journal, error), _Recorder("b", journal)])
        with pytest.raises(DeployError) as info:
            chain.deploy(b"sig", manifest, [])
        assert info.value is error
        assert journal == ["a"]

    def test_failure_is_logged(self, manifest: Manifest, caplog: pytest.LogCaptureFixture):
        chain = DeployerChain([_Recorder("a", [], DeployError("boom"))])
        with pytest.raises(DeployError):
            chain.deploy(b"sig", manifest, [])
        assert "Deployer _Recorder failed for myproject_v1.0.0.manifest: boom" in caplog.text
