"""Sign and verify releases.

A release signature is a detached signature over the serialized manifest
only.  Artifact bytes are covered transitively: the manifest records their
digests, and verification recomputes them.  Forging a release therefore
requires defeating both the signature and every recorded digest.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import IO, TYPE_CHECKING

from releaseseal.bridge import crypto_bridge
from releaseseal.bridge.crypto_bridge import DEFAULT_CONFIG, SigningConfig
from releaseseal.core.digest import Digester
from releaseseal.errors import (
    DigestMismatchError,
    IntegrityError,
    MissingArtifactError,
    NoDigestsError,
    ReleaseError,
    SignatureVerificationError,
    SigningError,
)
from releaseseal.models.types import DigestKind

if TYPE_CHECKING:
    from releaseseal.core.artifact import Artifact
    from releaseseal.identity.signatory import Signatory
    from releaseseal.identity.signee import Signee
    from releaseseal.models.manifest import Manifest

logger = logging.getLogger(__name__)


class Signer:
    """Produces armored detached signatures with a signatory's key."""

    def __init__(self, config: SigningConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def sign(self, signatory: Signatory, data: bytes) -> bytes:
        try:
            return crypto_bridge.sign(signatory.private_key, data, self.config)
        except SigningError:
            raise
        except RuntimeError as exc:
            raise SigningError(f"failed to sign data: {exc}") from exc


class Verifier:
    """Checks release signatures and artifact digests."""

    def __init__(self, config: SigningConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def verify_signature(self, signee: Signee, signed: bytes, signature: bytes) -> list[str]:
        """Verify *signature* over *signed* with the signee's public key.

        The resolved key must carry the key id the signee claims.  Returns
        the identities embedded in the key.  Any failure to resolve the key
        or to verify the signature raises :class:`SignatureVerificationError`,
        chained to the cause.
        """
        try:
            public_key = signee.public_key()
        except ReleaseError as exc:
            raise SignatureVerificationError(
                f"failed to fetch signee's public key: {exc}"
            ) from exc
        try:
            key = crypto_bridge.read_public_key(public_key)
        except crypto_bridge.KeyFormatError as exc:
            raise SignatureVerificationError(
                f"failed to read signee's public key: {exc}"
            ) from exc
        if key.key_id.upper() != signee.key.upper():
            raise SignatureVerificationError(
                f"signee key {key.key_id} does not match manifest key {signee.key}"
            )
        try:
            identities = crypto_bridge.verify(public_key, signed, signature, self.config)
        except SignatureVerificationError as exc:
            raise SignatureVerificationError(f"failed to verify signature: {exc}") from exc
        logger.info("Signature verified for %s (%s)", signee.user, ", ".join(identities))
        return identities

    def verify_digests(
        self,
        digests: Mapping[DigestKind, str],
        stream: IO[bytes] | None,
        *,
        artifact: str = "",
    ) -> None:
        """Recompute exactly the recorded digest kinds and compare them.

        Raises
        ------
        NoDigestsError
            If *digests* is empty.
        DigestMismatchError
            On the first kind whose hex value differs.
        """
        if not digests:
            raise NoDigestsError()

        expected = dict(digests)
        ours = Digester(*expected).digest(stream)

        for kind, actual in list(ours.items()):
            if expected[kind] != actual:
                raise DigestMismatchError(kind.value, expected[kind], actual, artifact)
            del ours[kind]

        # Every recomputed kind comes from the recorded set, so nothing is left.
        if ours:
            raise IntegrityError("failed to verify all hashes we produced")

    def verify_release(
        self,
        signee: Signee,
        signature: bytes,
        manifest: Manifest,
        artifacts: Sequence[Artifact],
    ) -> list[str]:
        """Verify the manifest signature, then every artifact's digests."""
        identities = self.verify_signature(signee, manifest.serialize(), signature)

        by_name = {a.normalised_name(manifest.version): a for a in artifacts}
        for record in manifest.artifacts:
            artifact = by_name.get(record.name)
            if artifact is None:
                raise MissingArtifactError(f"artifact not supplied: {record.name}")
            self.verify_digests(record.digests, artifact.content(), artifact=record.name)
            logger.debug("Digests verified for %s", record.name)

        logger.info(
            "Release %s %s verified (%d artifacts)",
            manifest.name,
            manifest.version,
            len(manifest.artifacts),
        )
        return identities
