"""At-rest encryption for signing keys.

``seal`` derives a 32-byte key from a passphrase with scrypt and encrypts the
message with NaCl's secretbox (XSalsa20-Poly1305).  The sealed layout is::

    salt (32 bytes) || nonce (24 bytes) || ciphertext + MAC

Both the passphrase and the plaintext travel in
:class:`~releaseseal.core.secrets.SecretHandle` objects; ``open`` returns a
new handle that the caller must destroy.
"""

from __future__ import annotations

import logging

import nacl.pwhash
import nacl.secret
import nacl.utils
from nacl.exceptions import CryptoError
from pydantic import BaseModel, ConfigDict

from releaseseal.core.secrets import SecretHandle, wipe
from releaseseal.errors import DecryptError, EncryptError

logger = logging.getLogger(__name__)

KEY_SIZE = nacl.secret.SecretBox.KEY_SIZE
NONCE_SIZE = nacl.secret.SecretBox.NONCE_SIZE
SALT_SIZE = nacl.pwhash.scrypt.SALTBYTES
OVERHEAD = SALT_SIZE + NONCE_SIZE + nacl.secret.SecretBox.MACBYTES


class VaultConfig(BaseModel):
    """scrypt cost parameters.  Defaults match libsodium's "sensitive" level."""

    model_config = ConfigDict(frozen=True)

    opslimit: int = nacl.pwhash.scrypt.OPSLIMIT_SENSITIVE
    memlimit: int = nacl.pwhash.scrypt.MEMLIMIT_SENSITIVE


DEFAULT_VAULT_CONFIG = VaultConfig()

# Cheap parameters for tests and throwaway keys.
INTERACTIVE_VAULT_CONFIG = VaultConfig(
    opslimit=nacl.pwhash.scrypt.OPSLIMIT_INTERACTIVE,
    memlimit=nacl.pwhash.scrypt.MEMLIMIT_INTERACTIVE,
)


def _derive_key(passphrase: SecretHandle, salt: bytes, config: VaultConfig) -> SecretHandle:
    with passphrase.open() as view:
        password = bytearray(view)
    try:
        key = nacl.pwhash.scrypt.kdf(
            KEY_SIZE, bytes(password), salt, opslimit=config.opslimit, memlimit=config.memlimit
        )
    finally:
        wipe(password)
    return SecretHandle(bytearray(key))


def seal(
    passphrase: SecretHandle,
    message: SecretHandle,
    config: VaultConfig = DEFAULT_VAULT_CONFIG,
) -> bytes:
    """Encrypt *message* under a key derived from *passphrase*."""
    salt = nacl.utils.random(SALT_SIZE)
    try:
        with _derive_key(passphrase, salt, config) as key, key.open() as key_view:
            box = nacl.secret.SecretBox(key_view.tobytes())
            with message.open() as plaintext:
                sealed = box.encrypt(plaintext.tobytes())
    except (CryptoError, RuntimeError) as exc:
        raise EncryptError() from exc
    logger.debug("Sealed %d bytes", message.size)
    return salt + bytes(sealed)


def open(  # noqa: A001 — mirrors seal/open pairs in NaCl
    passphrase: SecretHandle,
    sealed: bytes,
    config: VaultConfig = DEFAULT_VAULT_CONFIG,
) -> SecretHandle:
    """Decrypt a message produced by :func:`seal`.

    Raises
    ------
    DecryptError
        If *sealed* is too short, was tampered with, or the passphrase is
        wrong.
    """
    if len(sealed) < OVERHEAD:
        raise DecryptError()
    salt, box_bytes = sealed[:SALT_SIZE], sealed[SALT_SIZE:]
    try:
        with _derive_key(passphrase, salt, config) as key, key.open() as key_view:
            box = nacl.secret.SecretBox(key_view.tobytes())
            plaintext = bytearray(box.decrypt(box_bytes))
    except (CryptoError, RuntimeError) as exc:
        raise DecryptError() from exc
    return SecretHandle(plaintext)
