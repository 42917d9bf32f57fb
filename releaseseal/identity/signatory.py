"""Signatories — identities able to sign a release."""

from __future__ import annotations

from pathlib import Path

from releaseseal.bridge import vault
from releaseseal.core.secrets import SecretHandle


class Signatory:
    """Holds a private key in a :class:`SecretHandle`.

    The key is handed only to the signing operation.  Use the signatory as a
    context manager (or call :meth:`destroy`) to wipe it when done.
    """

    def __init__(self, private_key: SecretHandle) -> None:
        self._private_key = private_key

    @classmethod
    def from_sealed_file(
        cls,
        path: Path,
        passphrase: SecretHandle,
        config: vault.VaultConfig = vault.DEFAULT_VAULT_CONFIG,
    ) -> Signatory:
        """Unlock a private key written by ``releaseseal keygen``."""
        return cls(vault.open(passphrase, Path(path).read_bytes(), config))

    @property
    def private_key(self) -> SecretHandle:
        return self._private_key

    def destroy(self) -> None:
        self._private_key.destroy()

    def __enter__(self) -> Signatory:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.destroy()

    def __repr__(self) -> str:
        return f"<Signatory {self._private_key!r}>"
