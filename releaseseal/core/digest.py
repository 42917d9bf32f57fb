"""Multi-digest engine — every requested hash in a single pass.

The stream is read once, in chunks; each chunk is fed to every hash state
before the next chunk is read.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from typing import IO, Any

from releaseseal.errors import DigestError, EmptyDigestSetError, NilStreamError, UnsupportedDigestKindError
from releaseseal.models.types import DigestKind

CHUNK_SIZE = 64 * 1024

_HASHERS: dict[DigestKind, Callable[[], Any]] = {
    DigestKind.MD5: hashlib.md5,
    DigestKind.SHA1: hashlib.sha1,
    DigestKind.SHA256: hashlib.sha256,
    DigestKind.SHA512: hashlib.sha512,
}


class Digester:
    """Computes a fixed set of digests over byte streams.

    Parameters
    ----------
    kinds:
        Digest kinds to compute.  Duplicates are dropped, first occurrence
        wins the ordering.  Unknown kinds are accepted here and rejected when
        :meth:`digest` runs.
    """

    def __init__(self, *kinds: DigestKind | str) -> None:
        if not kinds:
            raise EmptyDigestSetError("at least one digest kind is required")
        self._kinds: list[DigestKind | str] = list(dict.fromkeys(kinds))

    @property
    def kinds(self) -> list[DigestKind | str]:
        return list(self._kinds)

    def digest(self, stream: IO[bytes] | None) -> dict[DigestKind, str]:
        """Return ``{kind: lowercase hex}`` for every configured kind.

        Raises
        ------
        NilStreamError
            If *stream* is ``None``.
        UnsupportedDigestKindError
            If any configured kind is unknown.  Nothing is returned.
        DigestError
            If reading the stream fails.
        """
        if stream is None:
            raise NilStreamError("reader is nil")

        states: dict[DigestKind, Any] = {}
        for kind in self._kinds:
            factory = _HASHERS.get(kind)  # type: ignore[call-overload]
            if factory is None:
                raise UnsupportedDigestKindError(str(getattr(kind, "value", kind)))
            states[DigestKind(kind)] = factory()

        try:
            while chunk := stream.read(CHUNK_SIZE):
                for state in states.values():
                    state.update(chunk)
        except OSError as exc:
            raise DigestError(f"failed to write content to digesters: {exc}") from exc

        return {kind: state.hexdigest() for kind, state in states.items()}
