"""Exception hierarchy for the release integrity pipeline.

Every error raised by releaseseal derives from :class:`ReleaseError`.  The
intermediate classes group failures by how a caller should react:

* :class:`InputError` — the caller supplied something unusable.  Fix the
  input; retrying is pointless.
* :class:`IntegrityError` — a digest, signature or signee key did not check
  out.  Never downgrade these to warnings.
* :class:`ExternalError` — a collaborator (filesystem, git, key directory,
  release host) failed.  The original exception is chained as ``__cause__``.
"""

from __future__ import annotations


class ReleaseError(RuntimeError):
    """Base class for all releaseseal errors."""


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputError(ReleaseError, ValueError):
    """Raised when the caller supplies invalid input."""


class NilStreamError(InputError):
    """Raised when a digest is requested over an absent stream."""


class EmptyDigestSetError(InputError):
    """Raised when a digester is built without any digest kinds."""


class UnsupportedDigestKindError(InputError):
    """Raised when a requested digest kind is not recognised."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"unsupported digester: {kind}")
        self.kind = kind


class BundleLayoutError(InputError):
    """Raised when a stored release bundle is missing files or is ambiguous."""


class ManifestError(InputError):
    """Raised when a manifest document cannot be decoded."""


class UnknownSigneeTypeError(InputError):
    """Raised when a signee names an identity source that does not exist."""


# ---------------------------------------------------------------------------
# Integrity
# ---------------------------------------------------------------------------


class IntegrityError(ReleaseError):
    """Raised when release content fails a cryptographic check."""


class NoDigestsError(IntegrityError):
    """Raised when an artifact record carries no digests to verify."""

    def __init__(self, message: str = "no digests provided") -> None:
        super().__init__(message)


class DigestMismatchError(IntegrityError):
    """Raised when a recomputed digest differs from the recorded one."""

    def __init__(self, kind: str, expected: str, actual: str, artifact: str = "") -> None:
        where = f" for artifact: {artifact}" if artifact else ""
        super().__init__(
            f"verification failed, hash mismatch{where}, "
            f"got: {actual}, expected: {expected}"
        )
        self.kind = kind
        self.expected = expected
        self.actual = actual
        self.artifact = artifact


class SignatureVerificationError(IntegrityError):
    """Raised when a detached signature does not verify."""


class KeyNotFoundError(IntegrityError):
    """Raised when a signee's key id is not registered with the directory."""


class KeyUnverifiedError(IntegrityError):
    """Raised when a signee's key has no verified contact address."""


class MissingArtifactError(IntegrityError):
    """Raised when a manifest names an artifact that was not supplied."""


# ---------------------------------------------------------------------------
# External dependencies
# ---------------------------------------------------------------------------


class ExternalError(ReleaseError):
    """Raised when a collaborator outside the core fails."""


class ArtifactReadError(ExternalError):
    """Raised when artifact content cannot be drained and closed."""


class DigestError(ExternalError):
    """Raised when a stream fails while being digested."""


class KeyLookupError(ExternalError):
    """Raised when the public key directory cannot be queried."""


class VersionResolutionError(ExternalError):
    """Raised when a version cannot be derived from repository history."""


class StorageError(ExternalError):
    """Raised when a release bundle cannot be written or read."""


class DeployError(ExternalError):
    """Raised when a release cannot be pushed to its destination."""


# ---------------------------------------------------------------------------
# Everything else
# ---------------------------------------------------------------------------


class SigningError(ReleaseError):
    """Raised when signing material is unusable or signing fails."""


class SigneeNotImplementedError(ReleaseError, NotImplementedError):
    """Raised for identity sources that are reserved but not implemented."""


class VaultError(ReleaseError):
    """Base class for at-rest encryption failures."""


class EncryptError(VaultError):
    """Raised when sealing fails."""

    def __init__(self, message: str = "encryption failed") -> None:
        super().__init__(message)


class DecryptError(VaultError):
    """Raised when a sealed message cannot be opened."""

    def __init__(self, message: str = "decryption failed") -> None:
        super().__init__(message)


class InvalidTransitionError(ReleaseError):
    """Raised when a release moves between lifecycle states out of order."""
