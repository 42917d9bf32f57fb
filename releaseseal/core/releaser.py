"""Release orchestrator — the central coordinator for a release.

The Releaser wires together the digester, versioner, signer, verifier and
the saver/deployer chains into a two-phase workflow:

* ``create`` digests every artifact, resolves the version and builds the
  manifest;
* ``finalize`` serializes and signs the manifest, then runs the saver chain
  followed by the deployer chain.

A :class:`LoadFinaliser` covers the other direction: load a stored release,
verify it, and deploy it somewhere else.

Lifecycle states follow ``VALID_TRANSITIONS``::

    NEW -> CREATED -> SIGNED -> VERIFIED | VERIFICATION_FAILED
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from releaseseal.backends.composite import DeployerChain, SaverChain
from releaseseal.core.signing import Signer, Verifier
from releaseseal.core.version import GitHistoryVersion, Versioner
from releaseseal.errors import IntegrityError, InvalidTransitionError, ReleaseError
from releaseseal.models.manifest import Manifest
from releaseseal.models.types import VALID_TRANSITIONS, DigestKind, ReleaseState

if TYPE_CHECKING:
    from releaseseal.backends import Deployer, Loader, Saver
    from releaseseal.core.artifact import Artifact
    from releaseseal.core.digest import Digester
    from releaseseal.identity.signatory import Signatory
    from releaseseal.identity.signee import Signee

logger = logging.getLogger(__name__)


class _Lifecycle:
    """Tracks and enforces release state transitions."""

    def __init__(self, initial: ReleaseState = ReleaseState.NEW) -> None:
        self._state = initial

    @property
    def state(self) -> ReleaseState:
        return self._state

    def _transition(self, target: ReleaseState) -> None:
        if target not in VALID_TRANSITIONS[self._state]:
            raise InvalidTransitionError(
                f"cannot move release from {self._state.value} to {target.value}"
            )
        logger.debug("Release state %s -> %s", self._state.value, target.value)
        self._state = target

    def _verify(self, verifier: Verifier, signee: Signee, signature: bytes,
                manifest: Manifest, artifacts: Sequence[Artifact]) -> list[str]:
        if self._state not in (
            ReleaseState.SIGNED,
            ReleaseState.VERIFIED,
            ReleaseState.VERIFICATION_FAILED,
        ):
            raise InvalidTransitionError(
                f"cannot verify a release in state {self._state.value}"
            )
        if self._state is ReleaseState.VERIFICATION_FAILED:
            self._transition(ReleaseState.SIGNED)
        try:
            identities = verifier.verify_release(signee, signature, manifest, artifacts)
        except IntegrityError:
            self._transition(ReleaseState.VERIFICATION_FAILED)
            raise
        self._transition(ReleaseState.VERIFIED)
        return identities


class Releaser(_Lifecycle):
    """Creates, signs, stores and deploys one release.

    Parameters
    ----------
    name:
        Project name; used in every normalised file name.
    versioner:
        Version source.  Defaults to the history of ``master`` in the
        current directory with major version 1.
    signer, verifier:
        Signing collaborators.  Default to the default signing config.
    savers, deployers:
        Backends run in order, fail-fast, by :meth:`save` / :meth:`deploy`.
    """

    def __init__(
        self,
        name: str,
        *,
        versioner: Versioner | None = None,
        signer: Signer | None = None,
        verifier: Verifier | None = None,
        savers: Iterable[Saver] = (),
        deployers: Iterable[Deployer] = (),
    ) -> None:
        super().__init__()
        self.name = name
        self.versioner = versioner or GitHistoryVersion(".", "master", 1)
        self.signer = signer or Signer()
        self.verifier = verifier or Verifier()
        self.savers = SaverChain(savers)
        self.deployers = DeployerChain(deployers)

        self._digester: Digester | None = None
        self._artifacts: list[Artifact] = []

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def add(self, digester: Digester, artifact: Artifact, *artifacts: Artifact) -> Releaser:
        """Set the digester and the artifacts of this release."""
        self._digester = digester
        self._artifacts = [artifact, *artifacts]
        return self

    @property
    def artifacts(self) -> list[Artifact]:
        return list(self._artifacts)

    def create(self, signee: Signee) -> tuple[Manifest, list[Artifact]]:
        """Digest every artifact, resolve the version and build the manifest.

        Digests are attached only once every artifact digested successfully.
        """
        if self._digester is None or not self._artifacts:
            raise ReleaseError("create failed: no artifacts added")

        computed = [self._digester.digest(a.content()) for a in self._artifacts]
        for artifact, digests in zip(self._artifacts, computed):
            artifact.set_digests(digests)

        version = self.versioner.version()
        manifest = Manifest.build(self.name, version, signee, self._artifacts)
        self._transition(ReleaseState.CREATED)
        logger.info(
            "Created release %s %s with %d artifacts", self.name, version, len(self._artifacts)
        )
        return manifest, list(self._artifacts)

    # ------------------------------------------------------------------
    # Sign, store, deploy
    # ------------------------------------------------------------------

    def sign(self, signatory: Signatory, data: bytes) -> bytes:
        signature = self.signer.sign(signatory, data)
        self._transition(ReleaseState.SIGNED)
        return signature

    def save(self, signature: bytes, manifest: Manifest, artifacts: Sequence[Artifact]) -> None:
        self.savers.save(signature, manifest, artifacts)

    def deploy(self, signature: bytes, manifest: Manifest, artifacts: Sequence[Artifact]) -> None:
        self.deployers.deploy(signature, manifest, artifacts)

    def finalize(
        self, signatory: Signatory, manifest: Manifest, artifacts: Sequence[Artifact]
    ) -> bytes:
        """Sign the manifest, then save and deploy the release.

        Returns the detached signature.  A failing backend stops the chain
        and its error propagates unchanged.
        """
        signature = self.sign(signatory, manifest.serialize())
        self.save(signature, manifest, artifacts)
        self.deploy(signature, manifest, artifacts)
        logger.info("Finalized release %s %s", manifest.name, manifest.version)
        return signature

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify_signature(self, signee: Signee, signed: bytes, signature: bytes) -> list[str]:
        return self.verifier.verify_signature(signee, signed, signature)

    def verify_digests(self, digests: dict[DigestKind, str], artifact: Artifact) -> None:
        self.verifier.verify_digests(digests, artifact.content())

    def verify(
        self,
        signee: Signee,
        signature: bytes,
        manifest: Manifest,
        artifacts: Sequence[Artifact],
    ) -> list[str]:
        """Verify signature and digests of a release this releaser signed."""
        return self._verify(self.verifier, signee, signature, manifest, artifacts)

    def __repr__(self) -> str:
        return f"<Releaser name={self.name!r} state={self.state.value!r}>"


class LoadFinaliser(_Lifecycle):
    """Loads a stored release, verifies it and deploys it.

    Parameters
    ----------
    loader:
        Where the release is read from.
    deployer, deployers:
        At least one deployer; run in order, fail-fast.
    verifier:
        Defaults to the default signing config.
    """

    def __init__(
        self,
        loader: Loader,
        deployer: Deployer,
        *deployers: Deployer,
        verifier: Verifier | None = None,
    ) -> None:
        super().__init__()
        self.loader = loader
        self.verifier = verifier or Verifier()
        self.deployers = DeployerChain([deployer, *deployers])

    def load(self) -> tuple[bytes, Manifest, list[Artifact]]:
        signature, manifest, artifacts = self.loader.load()
        self._transition(ReleaseState.SIGNED)
        return signature, manifest, artifacts

    def verify(
        self,
        signee: Signee,
        signature: bytes,
        manifest: Manifest,
        artifacts: Sequence[Artifact],
    ) -> list[str]:
        return self._verify(self.verifier, signee, signature, manifest, artifacts)

    def deploy(self, signature: bytes, manifest: Manifest, artifacts: Sequence[Artifact]) -> None:
        if self.state is not ReleaseState.VERIFIED:
            raise InvalidTransitionError(
                f"refusing to deploy a release in state {self.state.value}"
            )
        self.deployers.deploy(signature, manifest, artifacts)
