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

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from sshkeyfile.message import Message
from sshkeyfile.pkey import PKey
from sshkeyfile.ssh_exception import FormatError, InvalidKeySize
from sshkeyfile.util import constant_time_bytes_eq

PUBLIC_KEY_LENGTH = 32
SECRET_KEY_LENGTH = 64


def _raw_public_bytes(verifying_key):
    return verifying_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


class Ed25519Key(PKey):
    """
    Representation of an `Ed25519 <https://ed25519.cr.yp.to/>`_ key.

    .. note::
        Ed25519 key support was added to OpenSSH in version 6.5.
    """

    name = "ssh-ed25519"

    def __init__(self, msg=None, data=None, vals=None):
        verifying_key = signing_key = None
        if msg is None and data is not None:
            msg = Message(data)
        if vals:
            signing_key, verifying_key = vals
        else:
            self._check_type(msg, self.name)
            verifying_key = self._read_public(msg)

        if signing_key is None and verifying_key is None:
            raise ValueError("need a key")

        self._signing_key = signing_key
        self._verifying_key = verifying_key or signing_key.public_key()

    @staticmethod
    def _read_public(msg):
        public = msg.get_binary()
        if len(public) != PUBLIC_KEY_LENGTH:
            raise InvalidKeySize(
                "Ed25519 public key must be 32 bytes, got {}".format(
                    len(public)
                )
            )
        try:
            return ed25519.Ed25519PublicKey.from_public_bytes(public)
        except ValueError as e:
            raise FormatError("Invalid Ed25519 public key: {}".format(e))

    @classmethod
    def generate(cls):
        """
        Generate a new private Ed25519 key.
        This factory function can be used to generate
        a new host key or authentication key.

        :returns: A new private key (`.Ed25519Key`) object
        """
        private_key = ed25519.Ed25519PrivateKey.generate()
        return Ed25519Key(vals=(private_key, private_key.public_key()))

    @property
    def public(self):
        """
        The 32 byte public key.
        """
        return _raw_public_bytes(self._verifying_key)

    @property
    def secret(self):
        """
        The 64 byte secret in OpenSSH layout (seed followed by the public
        key), or ``None`` for a public-only key.
        """
        if self._signing_key is None:
            return None
        seed = self._signing_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return seed + self.public

    def asbytes(self):
        m = Message()
        m.add_string(self.name)
        m.add_string(self.public)
        return m.asbytes()

    @property
    def _fields(self):
        return (self.get_name(), self.public)

    @property
    def _private_fields(self):
        return (self.secret,)

    def get_bits(self):
        return 256

    def can_sign(self):
        return self._signing_key is not None

    def sign_ssh_data(self, data, algorithm=None):
        self._require_private("sign with")
        m = Message()
        m.add_string(self.name)
        m.add_string(self._signing_key.sign(data))
        return m

    def verify_ssh_sig(self, data, msg):
        if msg.get_text() != self.name:
            return False

        try:
            self._verifying_key.verify(msg.get_binary(), data)
        except InvalidSignature:
            return False
        else:
            return True

    def _write_private_fields(self, msg):
        msg.add_string(self.public)
        msg.add_string(self.secret)

    @classmethod
    def _from_private_fields(cls, msg, key_type):
        verifying_key = cls._read_public(msg)
        public = _raw_public_bytes(verifying_key)
        key_data = msg.get_binary()
        if len(key_data) != SECRET_KEY_LENGTH:
            raise InvalidKeySize(
                "Ed25519 secret must be 64 bytes, got {}".format(len(key_data))
            )
        # The second half of the key data is yet another copy of the public
        # key...
        if not constant_time_bytes_eq(key_data[32:], public):
            raise FormatError("Ed25519 secret does not embed its public key")
        signing_key = ed25519.Ed25519PrivateKey.from_private_bytes(
            key_data[:32]
        )
        # ...and the seed must actually produce it.
        if _raw_public_bytes(signing_key.public_key()) != public:
            raise FormatError("Ed25519 seed does not derive its public key")
        return cls(vals=(signing_key, verifying_key))

    def _to_pyca_private_key(self):
        if not self.can_sign():
            raise ValueError("Ed25519 key has no private part")
        return self._signing_key

    def _to_pyca_public_key(self):
        return self._verifying_key
