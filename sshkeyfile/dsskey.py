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
DSS keys.
"""

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import dsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from sshkeyfile import util
from sshkeyfile.common import DEFAULT_DSS_BITS, zero_byte
from sshkeyfile.message import Message
from sshkeyfile.pkey import PKey
from sshkeyfile.ssh_exception import FormatError, InvalidKeySize


class DSSKey(PKey):
    """
    Representation of a DSS key which can be used to sign an verify SSH2
    data.
    """

    name = "ssh-dss"

    def __init__(self, msg=None, data=None, vals=None):
        self.p = None
        self.q = None
        self.g = None
        self.y = None
        self.x = None
        if (msg is None) and (data is not None):
            msg = Message(data)
        if vals is not None:
            self.p, self.q, self.g, self.y = vals
        else:
            self._check_type(msg, self.name)
            self.p = msg.get_mpint()
            self.q = msg.get_mpint()
            self.g = msg.get_mpint()
            self.y = msg.get_mpint()
        self._check_parameters()
        self.size = util.bit_length(self.p)

    def _check_parameters(self):
        # SSH signatures carry r and s as fixed 20 byte values, so only
        # FIPS 186-2 style parameters (160 bit q) are usable.
        if util.bit_length(self.q) != 160:
            raise InvalidKeySize(
                "DSA q must be 160 bits, got {}".format(
                    util.bit_length(self.q)
                )
            )
        if util.bit_length(self.p) < 1024:
            raise InvalidKeySize(
                "DSA p must be at least 1024 bits, got {}".format(
                    util.bit_length(self.p)
                )
            )
        if not 1 < self.g < self.p or not 1 < self.y < self.p:
            raise FormatError("Invalid DSA public key numbers")

    @classmethod
    def from_pyca_key(cls, key):
        numbers = key.private_numbers()
        params = numbers.public_numbers.parameter_numbers
        dss = cls(
            vals=(params.p, params.q, params.g, numbers.public_numbers.y)
        )
        dss.x = numbers.x
        return dss

    def asbytes(self):
        m = Message()
        m.add_string(self.name)
        m.add_mpint(self.p)
        m.add_mpint(self.q)
        m.add_mpint(self.g)
        m.add_mpint(self.y)
        return m.asbytes()

    @property
    def _fields(self):
        return (self.get_name(), self.p, self.q, self.g, self.y)

    @property
    def _private_fields(self):
        return (self.x,)

    def get_bits(self):
        return self.size

    def can_sign(self):
        return self.x is not None

    def _parameter_numbers(self):
        return dsa.DSAParameterNumbers(p=self.p, q=self.q, g=self.g)

    def _to_pyca_private_key(self):
        if not self.can_sign():
            raise ValueError("DSS key has no private part")
        return dsa.DSAPrivateNumbers(
            x=self.x,
            public_numbers=dsa.DSAPublicNumbers(
                y=self.y, parameter_numbers=self._parameter_numbers()
            ),
        ).private_key(backend=default_backend())

    def _to_pyca_public_key(self):
        return dsa.DSAPublicNumbers(
            y=self.y, parameter_numbers=self._parameter_numbers()
        ).public_key(backend=default_backend())

    def sign_ssh_data(self, data, algorithm=None):
        self._require_private("sign with")
        key = self._to_pyca_private_key()
        sig = key.sign(data, hashes.SHA1())
        r, s = decode_dss_signature(sig)

        m = Message()
        m.add_string(self.name)
        # apparently, in rare cases, r or s may be shorter than 20 bytes!
        rstr = util.deflate_long(r, 0)
        sstr = util.deflate_long(s, 0)
        if len(rstr) < 20:
            rstr = zero_byte * (20 - len(rstr)) + rstr
        if len(sstr) < 20:
            sstr = zero_byte * (20 - len(sstr)) + sstr
        m.add_string(rstr + sstr)
        return m

    def verify_ssh_sig(self, data, msg):
        kind = msg.get_text()
        if kind != self.name:
            return False
        sig = msg.get_binary()
        if len(sig) != 40:
            return False

        # pull out (r, s) which are NOT encoded as mpints
        sigR = util.inflate_long(sig[:20], 1)
        sigS = util.inflate_long(sig[20:], 1)

        signature = encode_dss_signature(sigR, sigS)

        key = dsa.DSAPublicNumbers(
            y=self.y, parameter_numbers=self._parameter_numbers()
        ).public_key(backend=default_backend())
        try:
            key.verify(signature, data, hashes.SHA1())
        except InvalidSignature:
            return False
        else:
            return True

    def _write_private_fields(self, msg):
        msg.add_mpint(self.p)
        msg.add_mpint(self.q)
        msg.add_mpint(self.g)
        msg.add_mpint(self.y)
        msg.add_mpint(self.x)

    @classmethod
    def _from_private_fields(cls, msg, key_type):
        p = msg.get_mpint()
        q = msg.get_mpint()
        g = msg.get_mpint()
        y = msg.get_mpint()
        x = msg.get_mpint()
        key = cls(vals=(p, q, g, y))
        if not 0 < x < q:
            raise FormatError("DSA private value out of range")
        if pow(g, x, p) != y:
            raise FormatError("DSA private key does not match its public key")
        key.x = x
        try:
            key._to_pyca_private_key()
        except (ValueError, UnsupportedAlgorithm) as e:
            raise FormatError("Invalid DSA private key: {}".format(e))
        return key

    @staticmethod
    def generate(bits=DEFAULT_DSS_BITS):
        """
        Generate a new private DSS key.  This factory function can be used to
        generate a new host key or authentication key.

        :param int bits: number of bits the generated key should be.
        :return: new `.DSSKey` private key
        """
        numbers = dsa.generate_private_key(
            bits, backend=default_backend()
        ).private_numbers()
        key = DSSKey(
            vals=(
                numbers.public_numbers.parameter_numbers.p,
                numbers.public_numbers.parameter_numbers.q,
                numbers.public_numbers.parameter_numbers.g,
                numbers.public_numbers.y,
            )
        )
        key.x = numbers.x
        return key
