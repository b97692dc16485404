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
ECDSA keys
"""

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from sshkeyfile.common import four_byte
from sshkeyfile.message import Message
from sshkeyfile.pkey import PKey
from sshkeyfile.ssh_exception import (
    FormatError,
    InvalidKeySize,
    UnknownKeyType,
)


class _ECDSACurve:
    """
    Represents a specific ECDSA Curve (nistp256, nistp384, etc).

    Handles the generation of the key format identifier, the selection of
    the proper hash function and the expected point size for the
    ``cryptography`` curve class it wraps.
    """

    def __init__(self, curve_class, nist_name):
        self.nist_name = nist_name
        self.key_length = curve_class.key_size

        # Defined in RFC 5656 6.2
        self.key_format_identifier = "ecdsa-sha2-" + self.nist_name

        # Defined in RFC 5656 6.2.1
        if self.key_length <= 256:
            self.hash_object = hashes.SHA256
        elif self.key_length <= 384:
            self.hash_object = hashes.SHA384
        else:
            self.hash_object = hashes.SHA512

        # uncompressed SEC1 point: 0x04 || X || Y
        self.coordinate_length = (self.key_length + 7) // 8
        self.point_length = 1 + 2 * self.coordinate_length

        self.curve_class = curve_class


class _ECDSACurveSet:
    """
    A collection to hold the ECDSA curves. Allows querying by curve class,
    key length and key format identifier.
    """

    def __init__(self, ecdsa_curves):
        self.ecdsa_curves = ecdsa_curves

    def get_key_format_identifier_list(self):
        return [curve.key_format_identifier for curve in self.ecdsa_curves]

    def get_by_curve_class(self, curve_class):
        for curve in self.ecdsa_curves:
            if curve.curve_class == curve_class:
                return curve

    def get_by_key_format_identifier(self, key_format_identifier):
        for curve in self.ecdsa_curves:
            if curve.key_format_identifier == key_format_identifier:
                return curve

    def get_by_key_length(self, key_length):
        for curve in self.ecdsa_curves:
            if curve.key_length == key_length:
                return curve


class ECDSAKey(PKey):
    """
    Representation of an ECDSA key which can be used to sign and verify SSH2
    data.
    """

    _ECDSA_CURVES = _ECDSACurveSet(
        [
            _ECDSACurve(ec.SECP256R1, "nistp256"),
            _ECDSACurve(ec.SECP384R1, "nistp384"),
            _ECDSACurve(ec.SECP521R1, "nistp521"),
        ]
    )

    def __init__(self, msg=None, data=None, vals=None):
        self.verifying_key = None
        self.signing_key = None
        if (msg is None) and (data is not None):
            msg = Message(data)
        if vals is not None:
            self.signing_key, self.verifying_key = vals
            c_class = self.verifying_key.curve.__class__
            self.ecdsa_curve = self._ECDSA_CURVES.get_by_curve_class(c_class)
            if self.ecdsa_curve is None:
                raise UnknownKeyType(key_type=self.verifying_key.curve.name)
        else:
            key_type = self._check_type(
                msg, self._ECDSA_CURVES.get_key_format_identifier_list()
            )
            self.ecdsa_curve, self.verifying_key = self._read_public(
                msg, key_type
            )

    @classmethod
    def _read_public(cls, msg, key_type):
        curve = cls._ECDSA_CURVES.get_by_key_format_identifier(key_type)
        curvename = msg.get_text()
        if curvename != curve.nist_name:
            raise FormatError(
                "Curve {!r} does not match key type {!r}".format(
                    curvename, key_type
                )
            )
        pointinfo = msg.get_binary()
        if pointinfo[0:1] != four_byte:
            raise FormatError("Point compression is being used")
        if len(pointinfo) != curve.point_length:
            raise InvalidKeySize(
                "{} point must be {} bytes, got {}".format(
                    curve.nist_name, curve.point_length, len(pointinfo)
                )
            )
        try:
            key = ec.EllipticCurvePublicKey.from_encoded_point(
                curve.curve_class(), pointinfo
            )
        except ValueError:
            raise FormatError("Invalid public key: point not on curve")
        return curve, key

    @classmethod
    def identifiers(cls):
        return cls._ECDSA_CURVES.get_key_format_identifier_list()

    @property
    def curve(self):
        """
        The OpenSSH curve name, eg ``"nistp256"``.
        """
        return self.ecdsa_curve.nist_name

    @property
    def point(self):
        """
        The public point in uncompressed SEC1 form.
        """
        return self.verifying_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint,
        )

    @property
    def scalar(self):
        """
        The private scalar, or ``None`` for a public-only key.
        """
        if self.signing_key is None:
            return None
        return self.signing_key.private_numbers().private_value

    def asbytes(self):
        m = Message()
        m.add_string(self.ecdsa_curve.key_format_identifier)
        m.add_string(self.ecdsa_curve.nist_name)
        m.add_string(self.point)
        return m.asbytes()

    @property
    def _fields(self):
        numbers = self.verifying_key.public_numbers()
        return (self.get_name(), numbers.x, numbers.y)

    @property
    def _private_fields(self):
        return (self.scalar,)

    def get_name(self):
        return self.ecdsa_curve.key_format_identifier

    def get_bits(self):
        return self.ecdsa_curve.key_length

    def can_sign(self):
        return self.signing_key is not None

    def sign_ssh_data(self, data, algorithm=None):
        self._require_private("sign with")
        ecdsa = ec.ECDSA(self.ecdsa_curve.hash_object())
        sig = self.signing_key.sign(data, ecdsa)
        r, s = decode_dss_signature(sig)

        m = Message()
        m.add_string(self.ecdsa_curve.key_format_identifier)
        m.add_string(self._sigencode(r, s))
        return m

    def verify_ssh_sig(self, data, msg):
        if msg.get_text() != self.ecdsa_curve.key_format_identifier:
            return False
        sig = msg.get_binary()
        sigR, sigS = self._sigdecode(sig)
        signature = encode_dss_signature(sigR, sigS)

        try:
            self.verifying_key.verify(
                signature, data, ec.ECDSA(self.ecdsa_curve.hash_object())
            )
        except InvalidSignature:
            return False
        else:
            return True

    def _write_private_fields(self, msg):
        msg.add_string(self.ecdsa_curve.nist_name)
        msg.add_string(self.point)
        msg.add_mpint(self.scalar)

    @classmethod
    def _from_private_fields(cls, msg, key_type):
        curve, verifying_key = cls._read_public(msg, key_type)
        private_value = msg.get_mpint()
        if private_value <= 0 or (
            private_value.bit_length() > curve.key_length
        ):
            raise InvalidKeySize(
                "{} private scalar out of range".format(curve.nist_name)
            )
        try:
            signing_key = ec.derive_private_key(
                private_value, curve.curve_class(), default_backend()
            )
        except (ValueError, UnsupportedAlgorithm) as e:
            raise FormatError("Invalid ECDSA private key: {}".format(e))
        if (
            signing_key.public_key().public_numbers()
            != verifying_key.public_numbers()
        ):
            raise FormatError(
                "ECDSA private key does not match its public point"
            )
        return cls(vals=(signing_key, verifying_key))

    def _to_pyca_private_key(self):
        if not self.can_sign():
            raise ValueError("ECDSA key has no private part")
        return self.signing_key

    def _to_pyca_public_key(self):
        return self.verifying_key

    @classmethod
    def generate(cls, curve=ec.SECP256R1(), bits=None):
        """
        Generate a new private ECDSA key.  This factory function can be used to
        generate a new host key or authentication key.

        :param curve: a ``cryptography`` curve instance; ignored if ``bits``
            is given.
        :param int bits: 256, 384 or 521, to pick the curve by size.
        :returns: A new private key (`.ECDSAKey`) object
        """
        if bits is not None:
            curve = cls._ECDSA_CURVES.get_by_key_length(bits)
            if curve is None:
                raise InvalidKeySize(
                    "Unsupported key length: {:d}".format(bits)
                )
            curve = curve.curve_class()

        private_key = ec.generate_private_key(curve, backend=default_backend())
        return ECDSAKey(vals=(private_key, private_key.public_key()))

    # ...internals...

    def _sigencode(self, r, s):
        msg = Message()
        msg.add_mpint(r)
        msg.add_mpint(s)
        return msg.asbytes()

    def _sigdecode(self, sig):
        msg = Message(sig)
        r = msg.get_mpint()
        s = msg.get_mpint()
        return r, s
