"""Scoped handling of secret bytes (private keys, passphrases).

A :class:`SecretHandle` owns a private ``bytearray`` that is overwritten
with zeros when the handle is destroyed.  The bytes are reachable only
through :meth:`SecretHandle.open`, which yields a read-only ``memoryview``
that is released when the ``with`` block exits.  Handles refuse to be
copied, pickled or printed.

Python cannot promise that no other copy of a secret ever exists (parsers
and libraries may create temporaries), so callers should keep the window
between ``open`` and the end of the ``with`` block as small as possible.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)


class SecretDestroyedError(RuntimeError):
    """Raised when a destroyed handle is opened."""


class SecretHandle:
    """Owns secret bytes and wipes them on release.

    Parameters
    ----------
    data:
        The secret.  When a ``bytearray`` is passed, its contents are moved
        into the handle and the caller's buffer is zeroed.
    """

    __slots__ = ("_buf", "_destroyed")

    def __init__(self, data: bytes | bytearray) -> None:
        self._buf = bytearray(data)
        self._destroyed = False
        if isinstance(data, bytearray):
            wipe(data)

    @property
    def size(self) -> int:
        return len(self._buf)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @contextmanager
    def open(self) -> Iterator[memoryview]:
        """Yield a read-only view of the secret for the duration of the block."""
        if self._destroyed:
            raise SecretDestroyedError("secret handle has been destroyed")
        view = memoryview(self._buf).toreadonly()
        try:
            yield view
        finally:
            view.release()

    def destroy(self) -> None:
        """Zero the backing buffer.  Safe to call more than once."""
        if not self._destroyed:
            wipe(self._buf)
            self._destroyed = True
            logger.debug("Secret handle wiped (%d bytes)", len(self._buf))

    def __enter__(self) -> SecretHandle:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.destroy()

    def __del__(self) -> None:
        try:
            self.destroy()
        except Exception:  # noqa: BLE001 — interpreter shutdown
            pass

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else f"{len(self._buf)} bytes"
        return f"<SecretHandle {state}>"

    def __copy__(self) -> SecretHandle:
        raise TypeError("SecretHandle cannot be copied")

    def __deepcopy__(self, memo: dict[int, Any]) -> SecretHandle:
        raise TypeError("SecretHandle cannot be copied")

    def __reduce__(self) -> Any:
        raise TypeError("SecretHandle cannot be pickled")


def wipe(buf: bytearray) -> None:
    """Overwrite *buf* with zeros in place."""
    for i in range(len(buf)):
        buf[i] = 0
