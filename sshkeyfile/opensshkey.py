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
The ``openssh-key-v1`` private key container, as written by ``ssh-keygen``
since OpenSSH 6.5.

Reference:
https://github.com/openssh/openssh-portable/blob/master/PROTOCOL.key
"""

import base64
import os
import struct

from sshkeyfile import cipher as _cipher
from sshkeyfile.common import (
    DEFAULT_CIPHER,
    DEFAULT_KDF_ROUNDS,
    OPENSSH_AUTH_MAGIC,
    OPENSSH_PEM_LINE_LENGTH,
    OPENSSH_PEM_TAG,
    byte_chr,
)
from sshkeyfile.message import Message
from sshkeyfile.pkey import PKey
from sshkeyfile.secret import SecretBuffer
from sshkeyfile.ssh_exception import (
    DecryptionFailed,
    FormatError,
    PaddingInvalid,
)
from sshkeyfile.util import b, constant_time_bytes_eq, get_logger, u

_log = get_logger(__name__)

BEGIN_MARKER = "-----BEGIN {}-----".format(OPENSSH_PEM_TAG)
END_MARKER = "-----END {}-----".format(OPENSSH_PEM_TAG)


class DecryptedPayload:
    """
    The plaintext private section of an ``openssh-key-v1`` file: a pair of
    matching check integers, one entry per key, then ``1, 2, 3, ...``
    padding up to the cipher block size.
    """

    def __init__(self, check1, check2, entries, padding):
        self.check1 = check1
        self.check2 = check2
        self.entries = entries
        self.padding = padding

    @classmethod
    def parse(cls, plain, public_blobs):
        """
        Decode a decrypted private section.

        :param plain: the plaintext (`bytearray` or `bytes`), read in place.
        :param list public_blobs:
            the public keys listed in the file header; entry ``i`` must match
            blob ``i``.

        :raises: `.DecryptionFailed` -- if the check integers differ, which
            almost always means a wrong passphrase.
        :raises: `.PaddingInvalid` -- if the trailing padding is wrong.
        :raises: `.FormatError` -- if an entry disagrees with its public key.
        """
        m = Message(plain)
        check1 = m.get_int()
        check2 = m.get_int()
        if check1 != check2:
            raise DecryptionFailed(
                "OpenSSH private key file checkints do not match"
            )
        entries = []
        for i, blob in enumerate(public_blobs):
            key = PKey.from_private_message(m)
            key.comment = m.get_text()
            if not constant_time_bytes_eq(key.asbytes(), blob):
                raise FormatError(
                    "Private key {} does not match its public key".format(i)
                )
            entries.append(key)
        padding = m.get_remainder()
        for i, pad in enumerate(padding):
            if pad != (i + 1) & 0xFF:
                raise PaddingInvalid(
                    "Bad padding byte {:#04x} at offset {}".format(pad, i)
                )
        return cls(check1, check2, entries, padding)

    @staticmethod
    def build(keys, block_size, checkint=None):
        """
        Encode ``keys`` into a padded private section.

        :returns: the plaintext in a `.SecretBuffer` owned by the caller.
        """
        if checkint is None:
            checkint = struct.unpack(">I", os.urandom(4))[0]
        m = Message()
        plain = SecretBuffer.adopt(m.packet)
        try:
            m.add_int(checkint)
            m.add_int(checkint)
            for key in keys:
                key.write_private_entry(m)
                m.add_string(key.comment or "")
            i = 0
            while len(m.packet) % block_size:
                i += 1
                m.add_byte(byte_chr(i & 0xFF))
        except BaseException:
            plain.wipe()
            raise
        return plain


class PrivateKeyEnvelope:
    """
    The outer, unencrypted structure of an ``openssh-key-v1`` file.

    Use `from_bytes` to parse one and `build` to wrap new keys; `decrypt`
    unlocks the private section.
    """

    def __init__(self, cipher_name, kdf, public_blobs, encrypted_payload):
        self.cipher_name = cipher_name
        self.kdf = kdf
        self.public_blobs = list(public_blobs)
        self.encrypted_payload = encrypted_payload

    def __repr__(self):
        return "PrivateKeyEnvelope(cipher={}, kdf={}, keys={})".format(
            self.cipher_name, self.kdf.name, len(self.public_blobs)
        )

    @property
    def cipher(self):
        return _cipher.get_cipher_spec(self.cipher_name)

    @property
    def encrypted(self):
        return self.cipher_name != "none"

    def public_keys(self):
        """
        Decode the public keys listed in the (unencrypted) header.
        """
        return [PKey.from_public_blob(blob) for blob in self.public_blobs]

    @classmethod
    def from_bytes(cls, data):
        """
        Parse a raw (already base64 decoded) ``openssh-key-v1`` blob.
        """
        if bytes(data[: len(OPENSSH_AUTH_MAGIC)]) != OPENSSH_AUTH_MAGIC:
            raise FormatError("unexpected OpenSSH key header encountered")
        m = Message(data)
        m.get_bytes(len(OPENSSH_AUTH_MAGIC))
        cipher_name = m.get_text()
        kdf_name = m.get_text()
        kdf_options = m.get_binary()
        cipher = _cipher.get_cipher_spec(cipher_name)
        kdf = _cipher.parse_kdf(kdf_name, kdf_options)
        if kdf.name == "none" and cipher.name != "none":
            raise FormatError(
                "Cipher {!r} used without a KDF".format(cipher_name)
            )
        num_keys = m.get_int()
        if num_keys == 0:
            raise FormatError("OpenSSH private key file holds no keys")
        # every blob takes at least its 4 byte length prefix
        if num_keys > m.remaining() // 4:
            raise FormatError(
                "Key count {} exceeds the data available".format(num_keys)
            )
        public_blobs = [m.get_binary() for _ in range(num_keys)]
        payload = m.get_binary()
        if m.remaining():
            raise FormatError(
                "{} trailing bytes after private section".format(m.remaining())
            )
        if not payload or len(payload) % cipher.block_size:
            raise FormatError(
                "Private section of {} bytes is not a positive multiple of "
                "the {} byte block size".format(
                    len(payload), cipher.block_size
                )
            )
        _log.debug(
            f"Read openssh-key-v1 envelope: cipher={cipher_name}, "
            f"kdf={kdf_name}, keys={num_keys}"
        )
        return cls(cipher_name, kdf, public_blobs, payload)

    @classmethod
    def build(
        cls,
        keys,
        passphrase=None,
        cipher_name=None,
        rounds=None,
        checkint=None,
    ):
        """
        Wrap private ``keys`` in a new envelope.

        :param list keys: `.PKey` objects with private parts.
        :param passphrase: `str` or `bytes`; ``None`` (or empty) writes the
            keys unencrypted.
        :param str cipher_name: defaults to ``aes256-ctr`` when encrypting.
        :param int rounds: bcrypt rounds, default 16.

        :raises: ``ValueError`` -- for a passphrase with the ``none`` cipher,
            a real cipher without a passphrase, or fewer than 1 round.
        """
        keys = list(keys)
        if not keys:
            raise ValueError("Need at least one key to write")
        if passphrase:
            if cipher_name is None:
                cipher_name = DEFAULT_CIPHER
            if cipher_name == "none":
                raise ValueError("Cannot use a passphrase with cipher 'none'")
            if rounds is None:
                rounds = DEFAULT_KDF_ROUNDS
            kdf = _cipher.new_kdf(rounds)
        else:
            if cipher_name not in (None, "none"):
                raise ValueError(
                    "Cipher {!r} needs a passphrase".format(cipher_name)
                )
            cipher_name = "none"
            kdf = _cipher.KDF_NONE
        cipher = _cipher.get_cipher_spec(cipher_name)
        plain = DecryptedPayload.build(keys, cipher.block_size, checkint)
        with plain:
            payload = _cipher.encrypt(plain.buffer, cipher, kdf, passphrase)
        return cls(cipher_name, kdf, [k.asbytes() for k in keys], payload)

    def decrypt(self, passphrase=None):
        """
        Decrypt and decode the private section.

        :param passphrase: `str` or `bytes`; ignored for unencrypted files.
        :returns: a `DecryptedPayload`.
        """
        with _cipher.decrypt(
            self.encrypted_payload, self.cipher, self.kdf, passphrase
        ) as plain:
            return DecryptedPayload.parse(plain.buffer, self.public_blobs)

    def asbytes(self):
        m = Message()
        m.add_bytes(OPENSSH_AUTH_MAGIC)
        m.add_string(self.cipher_name)
        m.add_string(self.kdf.name)
        m.add_string(_cipher.kdf_options(self.kdf))
        m.add_int(len(self.public_blobs))
        for blob in self.public_blobs:
            m.add_string(blob)
        m.add_string(self.encrypted_payload)
        return m.asbytes()

    def __bytes__(self):
        return self.asbytes()


def armor(data):
    """
    Wrap a raw ``openssh-key-v1`` blob in ``BEGIN OPENSSH PRIVATE KEY``
    lines, base64 wrapped at 70 columns as ``ssh-keygen`` does.
    """
    s = u(base64.b64encode(data))
    lines = [
        s[i : i + OPENSSH_PEM_LINE_LENGTH]
        for i in range(0, len(s), OPENSSH_PEM_LINE_LENGTH)
    ]
    return "\n".join([BEGIN_MARKER] + lines + [END_MARKER]) + "\n"


def dearmor(text):
    """
    Extract and decode the base64 body between the OpenSSH PEM markers.
    """
    try:
        lines = u(text).splitlines()
    except UnicodeDecodeError as e:
        raise FormatError("Key file is not text: {}".format(e))
    lines = [line.strip() for line in lines]
    try:
        start = lines.index(BEGIN_MARKER)
        end = lines.index(END_MARKER, start)
    except ValueError:
        raise FormatError("not a valid OPENSSH private key file")
    try:
        return base64.b64decode("".join(lines[start + 1 : end]), validate=True)
    except ValueError as e:
        raise FormatError("base64 decoding error: {}".format(e))


def is_armored(data):
    return BEGIN_MARKER.encode() in b(data)


def decode_openssh_private(data, passphrase=None):
    """
    Read every key in an ``openssh-key-v1`` file, armored or raw.

    :returns: a list of private `.PKey` objects, comments attached.
    """
    if isinstance(data, str) or is_armored(data):
        data = dearmor(data)
    envelope = PrivateKeyEnvelope.from_bytes(data)
    return envelope.decrypt(passphrase).entries


def encode_openssh_private(
    keys, passphrase=None, cipher_name=None, rounds=None
):
    """
    Write ``keys`` (one `.PKey` or a list) as an armored ``openssh-key-v1``
    file.

    :returns: the file contents as a `str`.
    """
    if isinstance(keys, PKey):
        keys = [keys]
    envelope = PrivateKeyEnvelope.build(
        keys, passphrase=passphrase, cipher_name=cipher_name, rounds=rounds
    )
    return armor(envelope.asbytes())
