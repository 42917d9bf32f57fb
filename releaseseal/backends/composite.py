"""Ordered, fail-fast fan-out over several savers or deployers.

Backends run strictly in registration order.  The first backend that raises
stops the chain and its exception propagates unchanged; later backends are
not attempted.  There is no rollback, so a caller that sees an error must
assume the release may be partially stored or deployed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from releaseseal.backends import Deployer, Saver
    from releaseseal.core.artifact import Artifact
    from releaseseal.models.manifest import Manifest

logger = logging.getLogger(__name__)


def _backend_name(backend: object) -> str:
    return type(backend).__name__


class SaverChain:
    """Runs several savers in sequence, stopping at the first failure."""

    def __init__(self, savers: Iterable[Saver] = ()) -> None:
        self._savers: list[Saver] = list(savers)

    def save(self, signature: bytes, manifest: Manifest, artifacts: Sequence[Artifact]) -> None:
        for saver in self._savers:
            try:
                saver.save(signature, manifest, artifacts)
            except Exception as exc:
                logger.error(
                    "Saver %s failed for %s: %s", _backend_name(saver), manifest.normalised_name, exc
                )
                raise
            logger.debug("Saver %s stored %s", _backend_name(saver), manifest.normalised_name)


class DeployerChain:
    """Runs several deployers in sequence, stopping at the first failure."""

    def __init__(self, deployers: Iterable[Deployer] = ()) -> None:
        self._deployers: list[Deployer] = list(deployers)

    def deploy(self, signature: bytes, manifest: Manifest, artifacts: Sequence[Artifact]) -> None:
        for deployer in self._deployers:
            try:
                deployer.deploy(signature, manifest, artifacts)
            except Exception as exc:
                logger.error(
                    "Deployer %s failed for %s: %s",
                    _backend_name(deployer),
                    manifest.normalised_name,
                    exc,
                )
                raise
            logger.debug("Deployer %s delivered %s", _backend_name(deployer), manifest.normalised_name)
