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
RSA keys.
"""

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa, padding

from sshkeyfile.common import DEFAULT_RSA_BITS
from sshkeyfile.message import Message
from sshkeyfile.pkey import PKey
from sshkeyfile.ssh_exception import FormatError, InvalidKeySize

MIN_RSA_BITS = 1024


class RSAKey(PKey):
    """
    Representation of an RSA key which can be used to sign and verify SSH2
    data.
    """

    name = "ssh-rsa"
    HASHES = {
        "ssh-rsa": hashes.SHA1,
        "rsa-sha2-256": hashes.SHA256,
        "rsa-sha2-512": hashes.SHA512,
    }
    DEFAULT_SIGNATURE = "rsa-sha2-512"

    def __init__(self, msg=None, data=None, key=None):
        self.key = None
        if (msg is None) and (data is not None):
            msg = Message(data)
        if key is not None:
            self.key = key
            self._check_size(self.public_numbers.n)
        else:
            self._check_type(msg, self.name)
            e = msg.get_mpint()
            n = msg.get_mpint()
            self._check_size(n)
            try:
                self.key = rsa.RSAPublicNumbers(e=e, n=n).public_key(
                    default_backend()
                )
            except (ValueError, UnsupportedAlgorithm) as ex:
                raise FormatError("Invalid RSA public key: {}".format(ex))

    @classmethod
    def identifiers(cls):
        return list(cls.HASHES.keys())

    @staticmethod
    def _check_size(n):
        if n.bit_length() < MIN_RSA_BITS:
            raise InvalidKeySize(
                "RSA modulus of {} bits is below the {} bit minimum".format(
                    n.bit_length(), MIN_RSA_BITS
                )
            )

    @property
    def size(self):
        return self.key.key_size

    @property
    def public_numbers(self):
        if isinstance(self.key, rsa.RSAPrivateKey):
            return self.key.private_numbers().public_numbers
        else:
            return self.key.public_numbers()

    @property
    def _private_numbers(self):
        if isinstance(self.key, rsa.RSAPrivateKey):
            return self.key.private_numbers()
        return None

    @property
    def n(self):
        return self.public_numbers.n

    @property
    def e(self):
        return self.public_numbers.e

    @property
    def d(self):
        numbers = self._private_numbers
        return numbers.d if numbers is not None else None

    @property
    def p(self):
        numbers = self._private_numbers
        return numbers.p if numbers is not None else None

    @property
    def q(self):
        numbers = self._private_numbers
        return numbers.q if numbers is not None else None

    @property
    def iqmp(self):
        numbers = self._private_numbers
        return numbers.iqmp if numbers is not None else None

    def asbytes(self):
        m = Message()
        m.add_string(self.name)
        m.add_mpint(self.public_numbers.e)
        m.add_mpint(self.public_numbers.n)
        return m.asbytes()

    @property
    def _fields(self):
        return (self.get_name(), self.public_numbers.e, self.public_numbers.n)

    @property
    def _private_fields(self):
        return (self.d, self.iqmp, self.p, self.q)

    def get_bits(self):
        return self.size

    def can_sign(self):
        return isinstance(self.key, rsa.RSAPrivateKey)

    def sign_ssh_data(self, data, algorithm=None):
        self._require_private("sign with")
        if algorithm is None:
            algorithm = self.DEFAULT_SIGNATURE
        if algorithm not in self.HASHES:
            raise ValueError(
                "Unknown RSA signature type {!r}".format(algorithm)
            )
        sig = self.key.sign(
            data,
            padding=padding.PKCS1v15(),
            algorithm=self.HASHES[algorithm](),
        )
        m = Message()
        m.add_string(algorithm)
        m.add_string(sig)
        return m

    def verify_ssh_sig(self, data, msg):
        sig_algorithm = msg.get_text()
        if sig_algorithm not in self.HASHES:
            return False
        key = self.key
        if isinstance(key, rsa.RSAPrivateKey):
            key = key.public_key()

        # NOTE: pad received signature with leading zeros, key.verify()
        # expects a signature of key size (e.g. PuTTY doesn't pad)
        sign = msg.get_binary()
        diff = key.key_size - len(sign) * 8
        if diff > 0:
            sign = b"\x00" * ((diff + 7) // 8) + sign

        try:
            key.verify(
                sign, data, padding.PKCS1v15(), self.HASHES[sig_algorithm]()
            )
        except InvalidSignature:
            return False
        else:
            return True

    def _write_private_fields(self, msg):
        numbers = self.key.private_numbers()
        msg.add_mpint(numbers.public_numbers.n)
        msg.add_mpint(numbers.public_numbers.e)
        msg.add_mpint(numbers.d)
        msg.add_mpint(numbers.iqmp)
        msg.add_mpint(numbers.p)
        msg.add_mpint(numbers.q)

    @classmethod
    def _from_private_fields(cls, msg, key_type):
        n = msg.get_mpint()
        e = msg.get_mpint()
        d = msg.get_mpint()
        iqmp = msg.get_mpint()
        p = msg.get_mpint()
        q = msg.get_mpint()
        cls._check_size(n)
        if p <= 1 or q <= 1 or d <= 0:
            raise FormatError("Invalid RSA private key numbers")
        if p * q != n:
            raise FormatError("RSA private key does not match its modulus")
        try:
            key = rsa.RSAPrivateNumbers(
                p=p,
                q=q,
                d=d,
                dmp1=rsa.rsa_crt_dmp1(d, p),
                dmq1=rsa.rsa_crt_dmq1(d, q),
                iqmp=iqmp,
                public_numbers=rsa.RSAPublicNumbers(e=e, n=n),
            ).private_key(default_backend())
        except (ValueError, UnsupportedAlgorithm) as ex:
            raise FormatError("Invalid RSA private key: {}".format(ex))
        return cls(key=key)

    def _to_pyca_private_key(self):
        if not self.can_sign():
            raise ValueError("RSA key has no private part")
        return self.key

    def _to_pyca_public_key(self):
        if isinstance(self.key, rsa.RSAPrivateKey):
            return self.key.public_key()
        return self.key

    @staticmethod
    def generate(bits=DEFAULT_RSA_BITS):
        """
        Generate a new private RSA key.  This factory function can be used to
        generate a new host key or authentication key.

        :param int bits: number of bits the generated key should be.
        :return: new `.RSAKey` private key
        """
        if bits < MIN_RSA_BITS:
            raise InvalidKeySize(
                "Refusing to generate a {} bit RSA key".format(bits)
            )
        key = rsa.generate_private_key(
            public_exponent=65537, key_size=bits, backend=default_backend()
        )
        return RSAKey(key=key)
