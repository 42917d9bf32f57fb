"""Crypto bridge — OpenPGP signing keys and detached signatures via PGPy.

Bridge boundary
---------------
The release core never touches key packets directly.  It calls three
operations exposed here:

1. :func:`generate_keypair` — a new OpenPGP signing identity.  The public
   half is an armored ``PGP PUBLIC KEY BLOCK`` carrying one user id
   (``Name (comment) <email>``); the private half is an armored
   ``PGP PRIVATE KEY BLOCK`` held in a
   :class:`~releaseseal.core.secrets.SecretHandle`.  The private key is not
   passphrase-protected by OpenPGP; it is sealed at rest by the vault.

2. :func:`sign` — an armored *detached* binary-document signature.

3. :func:`verify` — checks a detached signature against an armored public
   key, as published by GitHub's ``gpg_keys`` API, and returns the key's
   user ids.

Key ids are OpenPGP long key ids (the last 16 hex digits of the v4
fingerprint, uppercase), the same ids GitHub reports.

There is no process-wide crypto state: every call takes a
:class:`SigningConfig`.
"""

from __future__ import annotations

import logging
import warnings

import pgpy
from pgpy.constants import (
    CompressionAlgorithm,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)
from pgpy.errors import PGPError
from pydantic import BaseModel, ConfigDict

from releaseseal.core.secrets import SecretHandle
from releaseseal.errors import SignatureVerificationError, SigningError

logger = logging.getLogger(__name__)

PUBLIC_KEY_BLOCK = "PGP PUBLIC KEY BLOCK"
PRIVATE_KEY_BLOCK = "PGP PRIVATE KEY BLOCK"
SIGNATURE_BLOCK = "PGP SIGNATURE"

# Errors PGPy raises while parsing or using packets it does not like.
_PGP_ERRORS = (PGPError, ValueError, TypeError, KeyError, IndexError, NotImplementedError)


class KeyFormatError(ValueError):
    """Raised when an armored block or key is malformed."""


# ---------------------------------------------------------------------------
# Configuration and key types
# ---------------------------------------------------------------------------


class SigningConfig(BaseModel):
    """Explicit crypto configuration threaded into keygen/sign/verify calls.

    Parameters
    ----------
    hash:
        Hash algorithm used when signing.
    accepted_hashes:
        Hash algorithms a signature may use and still be accepted.
    key_size:
        RSA modulus size for newly generated keys.
    """

    model_config = ConfigDict(frozen=True)

    hash: str = "sha256"
    accepted_hashes: frozenset[str] = frozenset({"sha256", "sha384", "sha512"})
    key_size: int = 3072


DEFAULT_CONFIG = SigningConfig()


class PublicKey(BaseModel):
    """The parts of a decoded public key the release core cares about."""

    model_config = ConfigDict(frozen=True)

    algorithm: str
    identities: list[str]
    fingerprint: str
    key_id: str


class KeyPair(BaseModel):
    """A freshly generated signing identity."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    public_key: bytes  # armored public key block
    fingerprint: str
    key_id: str
    private_key: SecretHandle  # armored private key block


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------


def format_identity(name: str, comment: str = "", email: str = "") -> str:
    """Render a user id as ``Name (comment) <email>``."""
    parts = [name]
    if comment:
        parts.append(f"({comment})")
    if email:
        parts.append(f"<{email}>")
    return " ".join(parts)


def _armored_text(data: bytes, block_type: str) -> str:
    try:
        text = bytes(data).decode("ascii")
    except UnicodeDecodeError as exc:
        raise KeyFormatError("armored block is not ASCII") from exc
    if f"-----BEGIN {block_type}-----" not in text:
        raise KeyFormatError(f"expected armored {block_type}")
    return text


def _load_key(data: bytes, block_type: str) -> pgpy.PGPKey:
    text = _armored_text(data, block_type)
    try:
        key, _ = pgpy.PGPKey.from_blob(text)
    except _PGP_ERRORS as exc:
        raise KeyFormatError(f"malformed key: {exc}") from exc
    if not key.fingerprint:
        raise KeyFormatError("malformed key: no key packet")
    return key


def _fingerprint(key: pgpy.PGPKey) -> str:
    return str(key.fingerprint).replace(" ", "").upper()


def _identities(key: pgpy.PGPKey) -> list[str]:
    return [format_identity(uid.name, uid.comment or "", uid.email or "") for uid in key.userids]


def generate_keypair(
    name: str,
    comment: str = "",
    email: str = "",
    config: SigningConfig = DEFAULT_CONFIG,
) -> KeyPair:
    """Generate a new RSA signing identity with a single user id."""
    key = pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, config.key_size)
    key.add_uid(
        pgpy.PGPUID.new(name, comment=comment, email=email),
        usage={KeyFlags.Sign, KeyFlags.Certify},
        hashes=[HashAlgorithm.SHA512, HashAlgorithm.SHA384, HashAlgorithm.SHA256],
        ciphers=[SymmetricKeyAlgorithm.AES256],
        compression=[CompressionAlgorithm.Uncompressed],
    )

    public = str(key.pubkey).encode("ascii")
    private = SecretHandle(bytearray(str(key).encode("ascii")))
    key_id = key.fingerprint.keyid
    logger.info("Generated signing key %s for %s", key_id, format_identity(name, comment, email))
    return KeyPair(
        public_key=public, fingerprint=_fingerprint(key), key_id=key_id, private_key=private
    )


def read_public_key(data: bytes) -> PublicKey:
    """Decode an armored public key block."""
    key = _load_key(data, PUBLIC_KEY_BLOCK)
    return PublicKey(
        algorithm=key.key_algorithm.name,
        identities=_identities(key),
        fingerprint=_fingerprint(key),
        key_id=key.fingerprint.keyid,
    )


def _signing_key(private_key: SecretHandle) -> pgpy.PGPKey:
    with private_key.open() as view:
        try:
            key = _load_key(view.tobytes(), PRIVATE_KEY_BLOCK)
        except KeyFormatError as exc:
            # Parser messages may quote key material.
            raise SigningError(f"failed to read entity: {type(exc).__name__}") from None
    if key.is_public:
        raise SigningError("failed to read entity: not a private key")
    if key.is_protected:
        raise SigningError("failed to read entity: key is passphrase-protected")
    return key


# ---------------------------------------------------------------------------
# Sign / verify
# ---------------------------------------------------------------------------


def sign(private_key: SecretHandle, data: bytes, config: SigningConfig = DEFAULT_CONFIG) -> bytes:
    """Return an armored detached signature over *data*."""
    try:
        hash_algorithm = HashAlgorithm[config.hash.upper()]
    except KeyError:
        raise SigningError(f"unsupported signing hash: {config.hash}") from None

    key = _signing_key(private_key)
    try:
        signature = key.sign(bytes(data), hash=hash_algorithm)
    except _PGP_ERRORS as exc:
        raise SigningError(f"failed to sign data: {exc}") from exc

    logger.debug("Signed %d bytes with key %s", len(data), key.fingerprint.keyid)
    return str(signature).encode("ascii")


def verify(
    public_key: bytes,
    signed: bytes,
    signature: bytes,
    config: SigningConfig = DEFAULT_CONFIG,
) -> list[str]:
    """Verify a detached signature and return the signer's identities.

    Raises
    ------
    SignatureVerificationError
        If the key or signature is malformed, the signature was made by a
        different key, uses an unaccepted hash, or does not match *signed*.
    """
    try:
        key = _load_key(public_key, PUBLIC_KEY_BLOCK)
    except KeyFormatError as exc:
        raise SignatureVerificationError(f"failed to read armored keyring: {exc}") from exc

    try:
        parsed = pgpy.PGPSignature.from_blob(_armored_text(signature, SIGNATURE_BLOCK))
        signer = parsed.signer
        hash_name = parsed.hash_algorithm.name.lower()
    except (KeyFormatError, *_PGP_ERRORS) as exc:
        raise SignatureVerificationError(
            f"failed to read armored detached signature: {exc}"
        ) from exc

    if signer not in {key.fingerprint.keyid, *key.subkeys}:
        raise SignatureVerificationError(
            "failed to check armored detached signature: signature made by unknown entity"
        )
    if hash_name not in config.accepted_hashes:
        raise SignatureVerificationError(f"signature hash not accepted: {hash_name}")

    try:
        with warnings.catch_warnings():
            # Expiry and usage-flag warnings do not change the verdict.
            warnings.simplefilter("ignore")
            verified = bool(key.verify(bytes(signed), parsed))
    except _PGP_ERRORS as exc:
        raise SignatureVerificationError(
            f"failed to check armored detached signature: {exc}"
        ) from exc
    if not verified:
        raise SignatureVerificationError(
            "failed to check armored detached signature: signature does not match"
        )

    logger.debug("Verified signature by %s", key.fingerprint.keyid)
    return _identities(key)
