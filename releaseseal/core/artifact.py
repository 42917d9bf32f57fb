"""Release artifacts — immutable content plus a naming strategy.

An artifact drains its content stream once at construction and keeps the
bytes in memory.  Digests are attached afterwards, either by the releaser
(computed) or by a loader (copied from a manifest).
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Mapping
from typing import IO

from releaseseal.errors import ArtifactReadError
from releaseseal.models.types import Architecture, ArtifactKind, DigestKind, OperatingSystem

logger = logging.getLogger(__name__)

NormaliseNameFn = Callable[[str], str]


def _read_content(content: IO[bytes]) -> bytes:
    try:
        data = content.read()
    except OSError as exc:
        raise ArtifactReadError(f"failed to read content: {exc}") from exc
    finally:
        try:
            content.close()
        except OSError as exc:
            raise ArtifactReadError(f"failed to close content: {exc}") from exc
    return bytes(data)


class Artifact:
    """A single release deliverable.

    Use :func:`new_artifact` or :func:`new_binary_artifact` rather than
    calling the constructor directly; they bind the right name normaliser.
    """

    def __init__(
        self,
        content: IO[bytes],
        kind: ArtifactKind,
        normalise: NormaliseNameFn,
    ) -> None:
        self._content = _read_content(content)
        self._kind = ArtifactKind(kind)
        self._normalise = normalise
        self._digests: dict[DigestKind, str] = {}

    @property
    def kind(self) -> ArtifactKind:
        return self._kind

    @property
    def size(self) -> int:
        return len(self._content)

    @property
    def digests(self) -> dict[DigestKind, str]:
        """The digest set; empty until :meth:`set_digests` is called."""
        return self._digests

    def set_digests(self, digests: Mapping[DigestKind, str]) -> None:
        """Replace the digest set.  No merging: a second call overwrites."""
        self._digests = dict(digests)

    def normalised_name(self, version: str) -> str:
        return self._normalise(version)

    def content(self) -> io.BytesIO:
        """Return a fresh readable view over the stored bytes."""
        return io.BytesIO(self._content)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self._kind.value!r} size={self.size}>"


class BinaryArtifact(Artifact):
    """An executable built for one operating system and CPU architecture."""

    def __init__(
        self,
        content: IO[bytes],
        project_name: str,
        os: OperatingSystem,
        arch: Architecture,
    ) -> None:
        self.os = OperatingSystem(os)
        self.arch = Architecture(arch)
        name = project_name.lower()
        super().__init__(
            content,
            ArtifactKind.BINARY,
            lambda version: (
                f"{name}_{version.lower()}-{self.os.value}.{self.arch.value}"
                f".{ArtifactKind.BINARY.value}"
            ),
        )


def new_artifact(content: IO[bytes], project_name: str, kind: ArtifactKind) -> Artifact:
    """Create a generic artifact named ``{project}_{version}.{kind}``."""
    kind = ArtifactKind(kind)
    name = project_name.lower()
    artifact = Artifact(
        content, kind, lambda version: f"{name}_{version.lower()}.{kind.value}"
    )
    logger.debug("Read %s artifact for %s (%d bytes)", kind.value, project_name, artifact.size)
    return artifact


def new_binary_artifact(
    content: IO[bytes],
    project_name: str,
    os: OperatingSystem,
    arch: Architecture,
) -> BinaryArtifact:
    """Create a binary artifact named ``{project}_{version}-{os}.{arch}.bin``."""
    artifact = BinaryArtifact(content, project_name, os, arch)
    logger.debug(
        "Read binary artifact for %s %s/%s (%d bytes)",
        project_name,
        artifact.os.value,
        artifact.arch.value,
        artifact.size,
    )
    return artifact
