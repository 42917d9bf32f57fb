"""Unit tests for SecretHandle — scoped, wipeable secret bytes."""

from __future__ import annotations

import copy
import pickle

import pytest

from releaseseal.core.secrets import SecretDestroyedError, SecretHandle, wipe


class TestSecretHandle:
    def test_open_yields_readonly_view(self):
        handle = SecretHandle(b"hunter2")
        with handle.open() as view:
            assert view.tobytes() == b"hunter2"
            with pytest.raises(TypeError):
                view[0] = 0

    def test_view_released_after_block(self):
        handle = SecretHandle(b"hunter2")
        with handle.open() as view:
            pass
        with pytest.raises(ValueError):
            view.tobytes()

    def test_bytearray_input_is_moved(self):
        source = bytearray(b"hunter2")
        handle = SecretHandle(source)
        assert source == bytearray(len(b"hunter2"))
        with handle.open() as view:
            assert view.tobytes() == b"hunter2"

    def test_destroy_wipes_buffer(self):
        handle = SecretHandle(b"hunter2")
        handle.destroy()
        assert handle.destroyed
        assert handle._buf == bytearray(7)

    def test_destroy_is_idempotent(self):
        handle = SecretHandle(b"x")
        handle.destroy()
        handle.destroy()
        assert handle.destroyed

    def test_open_after_destroy(self):
        handle = SecretHandle(b"x")
        handle.destroy()
        with pytest.raises(SecretDestroyedError):
            with handle.open():
                pass

    def test_context_manager_destroys(self):
        with SecretHandle(b"x") as handle:
            assert not handle.destroyed
        assert handle.destroyed

    def test_size(self):
        assert SecretHandle(b"12345").size == 5

    def test_repr_hides_contents(self):
        handle = SecretHandle(b"hunter2")
        assert "hunter2" not in repr(handle)
        assert "7 bytes" in repr(handle)
        handle.destroy()
        assert "destroyed" in repr(handle)

    def test_refuses_copy(self):
        handle = SecretHandle(b"x")
        with pytest.raises(TypeError):
            copy.copy(handle)
        with pytest.raises(TypeError):
            copy.deepcopy(handle)

    def test_refuses_pickle(self):
        with pytest.raises(TypeError):
            pickle.dumps(SecretHandle(b"x"))


class TestWipe:
    def test_zeroes_in_place(self):
        buf = bytearray(b"abc")
        wipe(buf)
        assert buf == bytearray(3)
