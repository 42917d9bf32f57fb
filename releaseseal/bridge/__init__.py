"""Bridge layer between the release core and its cryptographic primitives.

Modules
-------
crypto_bridge
    OpenPGP key generation, armored detached signing and verification on
    top of PGPy.
vault
    Passphrase-based at-rest encryption (scrypt + secretbox) for private
    keys.
"""
