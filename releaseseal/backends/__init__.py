"""Backend protocols for storing, loading and delivering releases.

All savers and deployers receive the same three values: the detached
signature, the manifest it covers, and the artifacts the manifest lists.
Several backends are combined with :class:`~releaseseal.backends.composite.SaverChain`
and :class:`~releaseseal.backends.composite.DeployerChain`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from releaseseal.core.artifact import Artifact
    from releaseseal.models.manifest import Manifest


@runtime_checkable
class Saver(Protocol):
    """Persists a signed release.

    Implementations must tolerate an existing target (overwrite in place)
    and create any missing containing location.
    """

    def save(self, signature: bytes, manifest: Manifest, artifacts: Sequence[Artifact]) -> None:
        ...


@runtime_checkable
class Deployer(Protocol):
    """Delivers a signed release to its destination (a release host, a mirror)."""

    def deploy(self, signature: bytes, manifest: Manifest, artifacts: Sequence[Artifact]) -> None:
        ...


@runtime_checkable
class Loader(Protocol):
    """Reads a stored release back for verification."""

    def load(self) -> tuple[bytes, Manifest, list[Artifact]]:
        ...


__all__ = ["Deployer", "Loader", "Saver"]
