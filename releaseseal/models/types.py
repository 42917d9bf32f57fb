"""Closed enumerations shared across the release pipeline."""

from __future__ import annotations

from enum import Enum


class ArtifactKind(str, Enum):
    """The kinds of deliverable a release can carry.

    The value doubles as the file extension of the normalised name.
    """

    RELEASE_NOTES = "relnotes"
    CHANGE_SET = "changeset"
    README = "readme"
    BINARY = "bin"
    DEB = "deb"
    RPM = "rpm"


class DigestKind(str, Enum):
    """Supported content-hash algorithms.

    MD5 and SHA-1 are kept so older manifests still verify; prefer SHA-256
    or SHA-512 when creating new releases.
    """

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"


class OperatingSystem(str, Enum):
    """Target operating systems for binary artifacts."""

    ANDROID = "android"
    DARWIN = "darwin"
    DRAGONFLY = "dragonfly"
    FREEBSD = "freebsd"
    LINUX = "linux"
    NETBSD = "netbsd"
    OPENBSD = "openbsd"
    PLAN9 = "plan9"
    SOLARIS = "solaris"
    WINDOWS = "windows"


class Architecture(str, Enum):
    """Target CPU architectures for binary artifacts."""

    X86 = "386"
    AMD64 = "amd64"
    ARM = "arm"
    ARM64 = "arm64"
    PPC64 = "ppc64"
    PPC64LE = "ppc64le"
    MIPS = "mips"
    MIPSLE = "mipsle"
    MIPS64 = "mips64"
    MIPS64LE = "mips64le"
    S390X = "s390x"


class SigneeKind(str, Enum):
    """Where a signee's public key is looked up."""

    GITHUB = "github"
    KEYBASE = "keybase"


class ReleaseState(str, Enum):
    """Lifecycle of a release from creation to verification."""

    NEW = "new"
    CREATED = "created"
    SIGNED = "signed"
    VERIFIED = "verified"
    VERIFICATION_FAILED = "verification_failed"


# A loaded release enters at SIGNED; a failed verification may be retried
# once the bundle is fixed, so VERIFICATION_FAILED can move back to SIGNED.
VALID_TRANSITIONS: dict[ReleaseState, set[ReleaseState]] = {
    ReleaseState.NEW: {ReleaseState.CREATED, ReleaseState.SIGNED},
    ReleaseState.CREATED: {ReleaseState.CREATED, ReleaseState.SIGNED},
    ReleaseState.SIGNED: {
        ReleaseState.SIGNED,
        ReleaseState.VERIFIED,
        ReleaseState.VERIFICATION_FAILED,
    },
    ReleaseState.VERIFIED: {ReleaseState.VERIFIED, ReleaseState.VERIFICATION_FAILED},
    ReleaseState.VERIFICATION_FAILED: {ReleaseState.SIGNED, ReleaseState.VERIFICATION_FAILED},
}
