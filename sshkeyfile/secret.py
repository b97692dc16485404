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
Wipeable storage for passphrases, derived keys and decrypted key material.
"""


class SecretBuffer:
    """
    A mutable byte buffer which is overwritten with zeros when it is no
    longer needed.

    Use it as a context manager so the wipe happens on every exit path,
    including exceptions::

        with SecretBuffer(passphrase) as secret:
            derive(secret.buffer, ...)

    Only the storage owned by this object is wiped. Immutable ``bytes`` or
    ``int`` copies made elsewhere (by hashing, by a crypto backend, by
    converting key numbers) are outside its reach.
    """

    def __init__(self, data=b"", size=None):
        if size is not None:
            self._buf = bytearray(size)
        else:
            self._buf = bytearray(data)

    @classmethod
    def adopt(cls, buf):
        """
        Take ownership of an existing `bytearray` without copying it.
        """
        if not isinstance(buf, bytearray):
            raise TypeError(f"Expected bytearray, got {type(buf)}")
        secret = cls()
        secret._buf = buf
        return secret

    @property
    def buffer(self):
        return self._buf

    @property
    def wiped(self):
        return not any(self._buf)

    def wipe(self):
        # same-length slice assignment writes over the existing storage
        self._buf[:] = bytes(len(self._buf))

    def __len__(self):
        return len(self._buf)

    def __getitem__(self, key):
        return self._buf[key]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.wipe()

    def __del__(self):
        buf = getattr(self, "_buf", None)
        if buf:
            buf[:] = bytes(len(buf))

    def __repr__(self):
        return f"<SecretBuffer len={len(self._buf)}>"
