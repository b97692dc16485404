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
Passphrase based encryption of the private section of ``openssh-key-v1``
files: bcrypt-pbkdf key derivation feeding a block cipher.
"""

import os
from collections import namedtuple

import bcrypt
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers import algorithms, modes, Cipher

from sshkeyfile.common import (
    DEFAULT_KDF_ROUNDS,
    KDF_SALT_LENGTH,
    UNENCRYPTED_BLOCK_SIZE,
)
from sshkeyfile.message import Message
from sshkeyfile.secret import SecretBuffer
from sshkeyfile.ssh_exception import (
    FormatError,
    PasswordRequiredException,
    UnsupportedCipher,
    UnsupportedKdf,
)
from sshkeyfile.util import b, get_logger

# TripleDES is moving from `cryptography.hazmat.primitives.ciphers.algorithms`
# in cryptography>=43.0.0 to `cryptography.hazmat.decrepit.ciphers.algorithms`
# It will be removed from `cryptography.hazmat.primitives.ciphers.algorithms`
# in cryptography==48.0.0.
#
# Source References:
# - https://github.com/pyca/cryptography/commit/722a6393e61b3ac
# - https://github.com/pyca/cryptography/pull/11407/files
try:
    from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
except ImportError:
    from cryptography.hazmat.primitives.ciphers.algorithms import TripleDES


_log = get_logger(__name__)

CipherSpec = namedtuple(
    "CipherSpec",
    ["name", "key_len", "iv_len", "block_size", "mode", "algorithm"],
)

KdfSpec = namedtuple("KdfSpec", ["name", "salt", "rounds"])

_CIPHER_TABLE = {
    "none": CipherSpec("none", 0, 0, UNENCRYPTED_BLOCK_SIZE, None, None),
    "3des-cbc": CipherSpec("3des-cbc", 24, 8, 8, modes.CBC, TripleDES),
}
for _bits in (128, 192, 256):
    for _mode in (modes.CBC, modes.CTR):
        _name = "aes{}-{}".format(_bits, _mode.name.lower())
        _CIPHER_TABLE[_name] = CipherSpec(
            _name, _bits // 8, 16, 16, _mode, algorithms.AES
        )
# pre-standard name for aes256-cbc, still written by old OpenSSH releases
_CIPHER_TABLE["rijndael-cbc@lysator.liu.se"] = _CIPHER_TABLE[
    "aes256-cbc"
]._replace(name="rijndael-cbc@lysator.liu.se")

KDF_NONE = KdfSpec("none", b"", 0)


def cipher_names():
    """
    Return the names of every cipher we can read and write.
    """
    return list(_CIPHER_TABLE.keys())


def get_cipher_spec(name):
    """
    Look up a cipher by its OpenSSH name.

    :raises: `.UnsupportedCipher` -- for names missing from the table.
    """
    try:
        return _CIPHER_TABLE[name]
    except KeyError:
        raise UnsupportedCipher("Unknown cipher {!r}".format(name))


def new_kdf(rounds=DEFAULT_KDF_ROUNDS):
    """
    Create bcrypt parameters with a fresh random salt.
    """
    if rounds < 1:
        raise ValueError(
            "bcrypt rounds must be at least 1, got {}".format(rounds)
        )
    return KdfSpec("bcrypt", os.urandom(KDF_SALT_LENGTH), rounds)


def parse_kdf(name, options):
    """
    Build a `KdfSpec` from the KDF name and raw option string of a key file.

    :raises: `.UnsupportedKdf` -- for anything but ``bcrypt`` and ``none``.
    :raises: `.FormatError` -- if the options do not match the KDF.
    """
    if name == "none":
        if options:
            raise FormatError("KDF 'none' must not carry options")
        return KDF_NONE
    if name != "bcrypt":
        raise UnsupportedKdf("Unknown KDF {!r}".format(name))
    m = Message(options)
    salt = m.get_binary()
    rounds = m.get_int()
    if m.remaining():
        raise FormatError("Trailing bytes after bcrypt KDF options")
    if not salt:
        raise FormatError("bcrypt KDF salt is empty")
    if rounds < 1:
        raise FormatError("bcrypt KDF rounds must be at least 1")
    return KdfSpec(name, salt, rounds)


def kdf_options(kdf):
    """
    Wire encode the options of ``kdf``; empty for ``none``.
    """
    if kdf.name == "none":
        return b""
    m = Message()
    m.add_string(kdf.salt)
    m.add_int(kdf.rounds)
    return m.asbytes()


def derive(passphrase, kdf, key_len, iv_len):
    """
    Stretch ``passphrase`` into cipher key and IV.

    :returns:
        a ``(key, iv)`` pair of `.SecretBuffer` objects; the caller owns (and
        must wipe) both.
    """
    if kdf.name == "none" or key_len + iv_len == 0:
        return SecretBuffer(), SecretBuffer()
    key_iv = SecretBuffer(
        bcrypt.kdf(
            password=bytes(b(passphrase)),
            salt=kdf.salt,
            desired_key_bytes=key_len + iv_len,
            rounds=kdf.rounds,
            # We can't control how many rounds are on disk, so no sense
            # warning about it.
            ignore_few_rounds=True,
        )
    )
    with key_iv:
        return (
            SecretBuffer.adopt(key_iv.buffer[:key_len]),
            SecretBuffer.adopt(key_iv.buffer[key_len:]),
        )


def _cipher_context(cipher, key, iv):
    return Cipher(
        cipher.algorithm(key.buffer),
        cipher.mode(iv.buffer),
        backend=default_backend(),
    )


def _check_aligned(data, cipher):
    if len(data) % cipher.block_size:
        raise FormatError(
            "{} byte payload is not a multiple of the {} block size".format(
                len(data), cipher.name
            )
        )


def decrypt(data, cipher, kdf, passphrase):
    """
    Decrypt the private section of a key file.

    The ``none`` cipher is a pure pass-through: neither the KDF nor any
    cipher primitive is touched.

    :param bytes data: the encrypted private section.
    :param .CipherSpec cipher: the cipher named in the file.
    :param .KdfSpec kdf: the KDF parameters from the file.
    :param passphrase: `str` or `bytes`; required unless cipher is ``none``.
    :returns: the plaintext, in a `.SecretBuffer` owned by the caller.

    :raises: `.PasswordRequiredException` -- if no passphrase was given.
    :raises: `.FormatError` -- if ``data`` is not block aligned.
    """
    _check_aligned(data, cipher)
    if cipher.name == "none":
        return SecretBuffer(data)
    if not passphrase:
        raise PasswordRequiredException("Private key file is encrypted")
    _log.debug(
        f"Decrypting {len(data)} bytes with {cipher.name}, "
        f"{kdf.name} rounds={kdf.rounds}"
    )
    key, iv = derive(passphrase, kdf, cipher.key_len, cipher.iv_len)
    plain = SecretBuffer(size=len(data))
    try:
        with key, iv:
            decryptor = _cipher_context(cipher, key, iv).decryptor()
        # update_into needs room for one extra block
        out = SecretBuffer(size=len(data) + cipher.block_size)
        with out:
            n = decryptor.update_into(data, out.buffer)
            decryptor.finalize()
            with memoryview(out.buffer) as view:
                plain.buffer[:n] = view[:n]
    except BaseException:
        plain.wipe()
        raise
    return plain


def encrypt(data, cipher, kdf, passphrase):
    """
    Encrypt a padded private section; the inverse of `decrypt`.

    :param data: block aligned plaintext (`bytes` or `bytearray`).
    :returns: the ciphertext `bytes`.
    """
    _check_aligned(data, cipher)
    if cipher.name == "none":
        return bytes(data)
    if not passphrase:
        raise ValueError(
            "A passphrase is required to encrypt with {}".format(cipher.name)
        )
    _log.debug(
        f"Encrypting {len(data)} bytes with {cipher.name}, "
        f"{kdf.name} rounds={kdf.rounds}"
    )
    key, iv = derive(passphrase, kdf, cipher.key_len, cipher.iv_len)
    with key, iv:
        encryptor = _cipher_context(cipher, key, iv).encryptor()
        return encryptor.update(data) + encryptor.finalize()
