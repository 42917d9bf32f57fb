"""Release manifest — the document that gets signed.

A manifest names the release, its version, who is expected to have signed
it and, for every artifact, the normalised file name, kind and digests.
Serialization is canonical JSON, so ``Manifest.read(m.serialize())``
serializes back to the very same bytes.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import IO, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError

from releaseseal.core.hasher import canonical_json_bytes
from releaseseal.errors import ManifestError, UnknownSigneeTypeError
from releaseseal.models.types import ArtifactKind, DigestKind, SigneeKind

if TYPE_CHECKING:
    from releaseseal.core.artifact import Artifact
    from releaseseal.identity.signee import Signee


class ManifestSignee(BaseModel):
    """The identity a release signature is checked against."""

    model_config = ConfigDict(frozen=True)

    user: str
    key: str
    type: SigneeKind


class ManifestArtifact(BaseModel):
    """Per-artifact record: normalised name, kind and digest set."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ArtifactKind
    digests: dict[DigestKind, str] = {}


class Manifest(BaseModel):
    """Declarative, serializable record of a release."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    signee: ManifestSignee
    artifacts: list[ManifestArtifact] = []

    @classmethod
    def build(
        cls,
        project_name: str,
        version: str,
        signee: Signee,
        artifacts: Iterable[Artifact],
    ) -> Manifest:
        """Assemble a manifest from digested artifacts.

        Raises
        ------
        UnknownSigneeTypeError
            If the signee names an identity source that does not exist.
        """
        try:
            kind = SigneeKind(signee.kind)
        except ValueError:
            raise UnknownSigneeTypeError(f"unknown signee type: {signee.kind}") from None
        return cls(
            name=project_name,
            version=version,
            signee=ManifestSignee(user=signee.user, key=signee.key, type=kind),
            artifacts=[
                ManifestArtifact(
                    name=a.normalised_name(version),
                    type=a.kind,
                    digests=dict(a.digests),
                )
                for a in artifacts
            ],
        )

    @property
    def normalised_name(self) -> str:
        """File name of the stored manifest, e.g. ``myproject_v1.0.0.manifest``."""
        return f"{self.name.lower()}_{self.version.lower()}.manifest"

    @property
    def signature_name(self) -> str:
        """File name of the detached signature stored next to the manifest."""
        return f"{self.normalised_name}.asc"

    def serialize(self) -> bytes:
        """Return the canonical bytes of this manifest."""
        return canonical_json_bytes(self.model_dump(mode="json"))

    @classmethod
    def read(cls, source: bytes | IO[bytes]) -> Manifest:
        """Decode a manifest from bytes or a binary stream."""
        data = source if isinstance(source, (bytes, bytearray)) else source.read()
        try:
            return cls.model_validate(json.loads(data))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
            raise ManifestError(f"failed to read manifest: {exc}") from exc
