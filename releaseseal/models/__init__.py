"""releaseseal data models — pydantic v2 manifests and closed enumerations."""

from releaseseal.models.manifest import Manifest, ManifestArtifact, ManifestSignee
from releaseseal.models.types import (
    VALID_TRANSITIONS,
    Architecture,
    ArtifactKind,
    DigestKind,
    OperatingSystem,
    ReleaseState,
    SigneeKind,
)

__all__ = [
    # manifest
    "Manifest",
    "ManifestArtifact",
    "ManifestSignee",
    # types
    "Architecture",
    "ArtifactKind",
    "DigestKind",
    "OperatingSystem",
    "SigneeKind",
    "ReleaseState",
    "VALID_TRANSITIONS",
]
