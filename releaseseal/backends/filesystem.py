"""Filesystem release bundles.

Layout of a bundle directory::

    {directory}/
        myproject_v1.0.0.manifest                  — canonical manifest
        myproject_v1.0.0.manifest.asc              — detached signature
        myproject_v1.0.0-darwin.amd64.bin          — one file per artifact,
        myproject_v1.0.0.relnotes                    named by its normalised name

The loader finds the manifest and signature by glob, so a directory must hold
exactly one release.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

from releaseseal.core.artifact import Artifact, new_artifact, new_binary_artifact
from releaseseal.errors import ArtifactReadError, BundleLayoutError, ManifestError, StorageError
from releaseseal.models.manifest import Manifest, ManifestArtifact
from releaseseal.models.types import Architecture, ArtifactKind, OperatingSystem

logger = logging.getLogger(__name__)

MANIFEST_GLOB = "*.manifest"
SIGNATURE_GLOB = "*.manifest.asc"

# {project}_{version}-{os}.{arch}.bin
BINARY_NAME_PATTERN = re.compile(r"-(?P<os>[a-z0-9]+)\.(?P<arch>[a-z0-9]+)\.bin$")


def parse_binary_name(name: str) -> tuple[OperatingSystem, Architecture]:
    """Extract the OS and architecture from a binary artifact file name."""
    match = BINARY_NAME_PATTERN.search(name)
    if match is None:
        raise BundleLayoutError(f"not a binary artifact name: {name}")
    try:
        return OperatingSystem(match["os"]), Architecture(match["arch"])
    except ValueError as exc:
        raise BundleLayoutError(f"unknown platform in artifact name: {name}") from exc


class FileSystemSaver:
    """Writes a release bundle into a directory, overwriting existing files.

    Parameters
    ----------
    directory:
        Target directory.  Created (with parents) on save.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def save(self, signature: bytes, manifest: Manifest, artifacts: Sequence[Artifact]) -> None:
        target = self.directory.absolute()
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"failed to create directory: {target}: {exc}") from exc

        self._write(target, manifest.normalised_name, manifest.serialize())
        self._write(target, manifest.signature_name, signature)
        for artifact in artifacts:
            name = artifact.normalised_name(manifest.version)
            self._write(target, name, artifact.content().getvalue())

        logger.info(
            "Saved %s with %d artifacts to %s", manifest.normalised_name, len(artifacts), target
        )

    @staticmethod
    def _write(directory: Path, name: str, data: bytes) -> None:
        try:
            (directory / name).write_bytes(data)
        except OSError as exc:
            raise StorageError(f"failed to write content to file: {name}: {exc}") from exc


class FileSystemLoader:
    """Reads a release bundle written by :class:`FileSystemSaver`.

    Digests are copied from the manifest onto the rebuilt artifacts; they are
    not recomputed here.  Verification is the verifier's job.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def load(self) -> tuple[bytes, Manifest, list[Artifact]]:
        base = self.directory.absolute()

        manifest_path = self._single(base, MANIFEST_GLOB)
        try:
            manifest = Manifest.read(manifest_path.read_bytes())
        except ManifestError as exc:
            raise ManifestError(f"failed to load manifest: {exc}") from exc
        except OSError as exc:
            raise StorageError(f"failed to load manifest: {exc}") from exc

        signature_path = self._single(base, SIGNATURE_GLOB)
        try:
            signature = signature_path.read_bytes()
        except OSError as exc:
            raise StorageError(f"failed to load manifest signature: {exc}") from exc

        artifacts = [self._load_artifact(base, manifest, record) for record in manifest.artifacts]
        logger.info(
            "Loaded %s with %d artifacts from %s", manifest.normalised_name, len(artifacts), base
        )
        return signature, manifest, artifacts

    @staticmethod
    def _single(base: Path, pattern: str) -> Path:
        matches = sorted(base.glob(pattern))
        if len(matches) != 1:
            raise BundleLayoutError(
                f"found wrong number of matches for: {pattern}, expected: 1, got: {len(matches)}"
            )
        return matches[0]

    @staticmethod
    def _load_artifact(base: Path, manifest: Manifest, record: ManifestArtifact) -> Artifact:
        path = base / record.name
        if not path.is_file():
            raise BundleLayoutError(f"failed to load artifact: {record.name}")

        try:
            stream = path.open("rb")
        except OSError as exc:
            raise StorageError(f"failed to load artifact: {record.name}: {exc}") from exc
        try:
            if record.type is ArtifactKind.BINARY:
                os_, arch = parse_binary_name(record.name)
                artifact: Artifact = new_binary_artifact(stream, manifest.name, os_, arch)
            else:
                artifact = new_artifact(stream, manifest.name, record.type)
        except ArtifactReadError as exc:
            raise StorageError(f"failed to recreate artifact: {record.name}: {exc}") from exc
        finally:
            stream.close()

        if artifact.normalised_name(manifest.version) != record.name:
            raise BundleLayoutError(
                f"artifact name does not match manifest: {record.name}"
            )
        artifact.set_digests(record.digests)
        return artifact
