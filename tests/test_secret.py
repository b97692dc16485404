# Copyright (C) 2003-2007  Robey Pointer <robeypointer@gmail.com>
#
# This file is part of sshkeyfile.
#
# sshkeyfile is free software; you can redistribute it and/or modify it under
# the terms of the GNU Lesser General Public License as published by the Free
# Software Foundation; either version 2.1 of the License, or (at your option)
# any later version.
#
# sshkeyfile is distributed in the hope that it will be useful, but WITHOUT ANY
# WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS FOR
# A PARTICULAR PURPOSE.  See the GNU Lesser General Public License for more
# details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with sshkeyfile; if not, write to the Free Software Foundation, Inc.,
# 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301 USA.

"""
Tests for the wipeable secret buffer.
"""

import unittest

import pytest

from sshkeyfile.secret import SecretBuffer


class SecretBufferTest(unittest.TestCase):
    def test_copies_initial_data(self):
        data = bytearray(b"hunter2")
        secret = SecretBuffer(data)
        assert secret.buffer == data
        assert secret.buffer is not data
        assert len(secret) == 7
        assert secret[0] == ord("h")
        assert secret[:6] == b"hunter"

    def test_sized(self):
        secret = SecretBuffer(size=16)
        assert secret.buffer == bytearray(16)
        assert secret.wiped

    def test_wipe_keeps_length_and_storage(self):
        secret = SecretBuffer(b"hunter2")
        buf = secret.buffer
        secret.wipe()
        assert buf is secret.buffer
        assert buf == bytearray(7)
        assert secret.wiped

    def test_context_manager_wipes_on_exit(self):
        with SecretBuffer(b"hunter2") as secret:
            assert not secret.wiped
        assert secret.wiped

    def test_context_manager_wipes_on_error(self):
        with pytest.raises(RuntimeError):
            with SecretBuffer(b"hunter2") as secret:
                raise RuntimeError("boom")
        assert secret.wiped

    def test_context_manager_wipes_on_interrupt(self):
        with pytest.raises(KeyboardInterrupt):
            with SecretBuffer(b"hunter2") as secret:
                raise KeyboardInterrupt
        assert secret.wiped

    def test_adopt_takes_ownership(self):
        buf = bytearray(b"derived key")
        with SecretBuffer.adopt(buf) as secret:
            assert secret.buffer is buf
        assert buf == bytearray(len(b"derived key"))

    def test_adopt_requires_bytearray(self):
        with pytest.raises(TypeError):
            SecretBuffer.adopt(b"immutable")

    def test_del_wipes(self):
        buf = bytearray(b"hunter2")
        secret = SecretBuffer.adopt(buf)
        del secret
        assert buf == bytearray(7)

    def test_repr_hides_contents(self):
        assert repr(SecretBuffer(b"hunter2")) == "<SecretBuffer len=7>"
