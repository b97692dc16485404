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
Legacy PEM private keys: PKCS#1 (``RSA PRIVATE KEY``), OpenSSL DSA
(``DSA PRIVATE KEY``), SEC1 (``EC PRIVATE KEY``) and PKCS#8 (``PRIVATE KEY``
and ``ENCRYPTED PRIVATE KEY``), including OpenSSL's traditional
``Proc-Type``/``DEK-Info`` encryption.

Public keys are read and written as X.509 SubjectPublicKeyInfo
(``PUBLIC KEY``) or, for RSA, PKCS#1 (``RSA PUBLIC KEY``).
"""

import base64
import os
import re
from binascii import hexlify, unhexlify
from hashlib import md5

from cryptography.exceptions import UnsupportedAlgorithm as _CryptoUnsupported
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import padding, serialization
from cryptography.hazmat.primitives.ciphers import algorithms, modes, Cipher

from sshkeyfile import util
from sshkeyfile.cipher import TripleDES
from sshkeyfile.common import DEFAULT_PEM_CIPHER, PEM_LINE_LENGTH
from sshkeyfile.dsskey import DSSKey
from sshkeyfile.ecdsakey import ECDSAKey
from sshkeyfile.pkey import PKey
from sshkeyfile.rsakey import RSAKey
from sshkeyfile.secret import SecretBuffer
from sshkeyfile.ssh_exception import (
    DecryptionFailed,
    FormatError,
    PasswordRequiredException,
    UnsupportedAlgorithm,
    UnsupportedCipher,
    UnsupportedFormat,
)
from sshkeyfile.util import b, u

_log = util.get_logger(__name__)

# known encryption types for traditional private key files:
_CIPHER_TABLE = {
    "AES-128-CBC": {
        "cipher": algorithms.AES,
        "keysize": 16,
        "blocksize": 16,
        "mode": modes.CBC,
    },
    "AES-192-CBC": {
        "cipher": algorithms.AES,
        "keysize": 24,
        "blocksize": 16,
        "mode": modes.CBC,
    },
    "AES-256-CBC": {
        "cipher": algorithms.AES,
        "keysize": 32,
        "blocksize": 16,
        "mode": modes.CBC,
    },
    "DES-EDE3-CBC": {
        "cipher": TripleDES,
        "keysize": 24,
        "blocksize": 8,
        "mode": modes.CBC,
    },
}

# PEM label -> key class it must decode to (None: any)
_LABELS = {
    "RSA PRIVATE KEY": RSAKey,
    "DSA PRIVATE KEY": DSSKey,
    "EC PRIVATE KEY": ECDSAKey,
    "PRIVATE KEY": None,
    "ENCRYPTED PRIVATE KEY": None,
}

_TRADITIONAL_FORMATS = {"pem": None, "pkcs1": RSAKey, "sec1": ECDSAKey}

_PUBLIC_LABELS = {"PUBLIC KEY": None, "RSA PUBLIC KEY": RSAKey}

# public format -> (cryptography PublicFormat, key class it needs)
_PUBLIC_FORMATS = {
    "pem-public": (serialization.PublicFormat.SubjectPublicKeyInfo, None),
    "pkcs1-public": (serialization.PublicFormat.PKCS1, RSAKey),
}

BEGIN_TAG = re.compile(r"^-{5}BEGIN ([A-Z0-9 ]+)-{5}\s*$")
END_TAG = re.compile(r"^-{5}END ([A-Z0-9 ]+)-{5}\s*$")


def _label_for(key):
    for label, key_class in _LABELS.items():
        if key_class is not None and isinstance(key, key_class):
            return label
    raise UnsupportedFormat(
        "{} keys have no traditional PEM form".format(key.get_name())
    )


def pem_label(data):
    """
    Return the label of the first ``-----BEGIN <label>-----`` line in
    ``data``, or ``None``.
    """
    try:
        lines = u(data).splitlines()
    except UnicodeDecodeError:
        return None
    for line in lines:
        m = BEGIN_TAG.match(line.strip())
        if m:
            return m.group(1)
    return None


def read_pem(data):
    """
    Split a PEM block into its label, headers and decoded body.

    :returns: ``(label, headers, der)``, with header names lowercased.
    :raises: `.FormatError` -- for missing markers or bad base64.
    """
    try:
        lines = [line.strip() for line in u(data).splitlines()]
    except UnicodeDecodeError as e:
        raise FormatError("Key file is not text: {}".format(e))
    # find the BEGIN tag
    start = 0
    m = None
    while start < len(lines):
        m = BEGIN_TAG.match(lines[start])
        if m:
            break
        start += 1
    if m is None:
        raise FormatError("no PEM BEGIN line found")
    label = m.group(1)
    start += 1

    # find the END tag
    end = start
    while end < len(lines):
        m = END_TAG.match(lines[end])
        if m:
            break
        end += 1
    if end >= len(lines) or m.group(1) != label:
        raise FormatError("no matching PEM END line for {}".format(label))

    # parse any headers first
    headers = {}
    while start < end:
        line = lines[start].split(": ")
        if len(line) == 1:
            break
        headers[line[0].lower()] = line[1].strip()
        start += 1
    try:
        der = base64.b64decode("".join(lines[start:end]), validate=True)
    except ValueError as e:
        raise FormatError("base64 decoding error: {}".format(e))
    return label, headers, der


def _decrypt_traditional(der, headers, passphrase):
    proc_type = headers["proc-type"]
    if proc_type != "4,ENCRYPTED":
        raise FormatError(
            'Unknown private key structure "{}"'.format(proc_type)
        )
    try:
        encryption_type, saltstr = headers["dek-info"].split(",")
    except (KeyError, ValueError):
        raise FormatError("Can't parse DEK-info in private key file")
    if encryption_type not in _CIPHER_TABLE:
        raise UnsupportedCipher(
            'Unknown private key cipher "{}"'.format(encryption_type)
        )
    # if no password was passed in,
    # raise an exception pointing out that we need one
    if not passphrase:
        raise PasswordRequiredException("Private key file is encrypted")
    cipher = _CIPHER_TABLE[encryption_type]["cipher"]
    keysize = _CIPHER_TABLE[encryption_type]["keysize"]
    blocksize = _CIPHER_TABLE[encryption_type]["blocksize"]
    mode = _CIPHER_TABLE[encryption_type]["mode"]
    try:
        salt = unhexlify(b(saltstr.strip()))
    except ValueError:
        raise FormatError("Bad IV in DEK-Info: {!r}".format(saltstr))
    if len(salt) != blocksize:
        raise FormatError(
            "{} needs a {} byte IV".format(encryption_type, blocksize)
        )
    if not der or len(der) % blocksize:
        raise FormatError("Encrypted key is not a whole number of blocks")
    _log.debug(f"Decrypting traditional PEM key with {encryption_type}")
    with SecretBuffer.adopt(
        util.generate_key_bytes(md5, salt, passphrase, keysize)
    ) as key:
        decryptor = Cipher(
            cipher(key.buffer), mode(salt), backend=default_backend()
        ).decryptor()
    decrypted = SecretBuffer(size=len(der) + blocksize)
    with decrypted:
        n = decryptor.update_into(der, decrypted.buffer)
        decryptor.finalize()
        unpadder = padding.PKCS7(cipher.block_size).unpadder()
        try:
            with memoryview(decrypted.buffer) as view:
                plain = unpadder.update(view[:n]) + unpadder.finalize()
        except ValueError:
            raise DecryptionFailed("Bad password or corrupt private key file")
    return SecretBuffer(plain)


def _encrypt_traditional(der, cipher_name, passphrase):
    try:
        info = _CIPHER_TABLE[cipher_name]
    except KeyError:
        raise UnsupportedCipher(
            'Unknown private key cipher "{}"'.format(cipher_name)
        )
    cipher = info["cipher"]
    iv = os.urandom(info["blocksize"])
    padder = padding.PKCS7(cipher.block_size).padder()
    padded = SecretBuffer(padder.update(der) + padder.finalize())
    with padded, SecretBuffer.adopt(
        util.generate_key_bytes(md5, iv, passphrase, info["keysize"])
    ) as key:
        encryptor = Cipher(
            cipher(key.buffer), info["mode"](iv), backend=default_backend()
        ).encryptor()
        data = encryptor.update(padded.buffer) + encryptor.finalize()
    return iv, data


def _load_der(der, password=None):
    return serialization.load_der_private_key(
        der, password=password, backend=default_backend()
    )


def load_pem_private_key(data, passphrase=None):
    """
    Read a legacy PEM private key.

    :param data: the PEM text, as `str` or `bytes`.
    :param passphrase: `str` or `bytes`, for encrypted keys.
    :returns: a private `.PKey` subclass instance.

    :raises: `.UnsupportedFormat` -- for labels other than the private key
        ones listed in this module.
    :raises: `.PasswordRequiredException` -- if the key is encrypted and no
        passphrase was given.
    :raises: `.DecryptionFailed` -- if the passphrase is wrong.
    """
    label, headers, der = read_pem(data)
    if label not in _LABELS:
        raise UnsupportedFormat("Unknown PEM label {!r}".format(label))
    _log.debug(f"Reading {label} PEM block")
    try:
        if label == "ENCRYPTED PRIVATE KEY":
            if not passphrase:
                raise PasswordRequiredException(
                    "Private key file is encrypted"
                )
            try:
                pyca_key = _load_der(der, password=bytes(b(passphrase)))
            except (ValueError, TypeError):
                raise DecryptionFailed(
                    "Bad password or corrupt private key file"
                )
        elif "proc-type" in headers:
            with _decrypt_traditional(der, headers, passphrase) as plain:
                try:
                    pyca_key = _load_der(plain.buffer)
                except ValueError:
                    # a wrong passphrase slips past the padding check about
                    # one time in 256
                    raise DecryptionFailed(
                        "Bad password or corrupt private key file"
                    )
        else:
            try:
                pyca_key = _load_der(der)
            except TypeError:
                raise PasswordRequiredException(
                    "Private key file is encrypted"
                )
            except ValueError as e:
                raise FormatError("Invalid {} data: {}".format(label, e))
    except _CryptoUnsupported as e:
        raise UnsupportedAlgorithm(str(e))
    key = PKey.from_pyca_key(pyca_key)
    key_class = _LABELS[label]
    if key_class is not None and not isinstance(key, key_class):
        raise FormatError(
            "{} block holds a {} key".format(label, key.get_name())
        )
    return key


def write_pem_private_key(
    key, fmt="pem", passphrase=None, cipher_name=DEFAULT_PEM_CIPHER
):
    """
    Write ``key`` as a legacy PEM private key.

    :param .PKey key: a key with its private part.
    :param str fmt:
        ``"pem"`` for the traditional container of the key's type,
        ``"pkcs1"`` (RSA only), ``"sec1"`` (ECDSA only) or ``"pkcs8"``.
    :param passphrase: optional `str` or `bytes` to encrypt with.
    :param str cipher_name:
        DEK-Info cipher for encrypted traditional keys; PKCS#8 always uses
        the best encryption ``cryptography`` offers.
    :returns: the PEM text, as a `str`.
    """
    if fmt == "pkcs8":
        pyca_key = key._to_pyca_private_key()
        if passphrase:
            encryption = serialization.BestAvailableEncryption(
                bytes(b(passphrase))
            )
        else:
            encryption = serialization.NoEncryption()
        return pyca_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            encryption,
        ).decode()
    if fmt not in _TRADITIONAL_FORMATS:
        raise UnsupportedFormat("Unknown PEM format {!r}".format(fmt))
    required = _TRADITIONAL_FORMATS[fmt]
    if required is not None and not isinstance(key, required):
        raise UnsupportedFormat(
            "{} keys cannot be written as {}".format(key.get_name(), fmt)
        )
    label = _label_for(key)
    pyca_key = key._to_pyca_private_key()
    if not passphrase:
        return pyca_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        ).decode()
    der = SecretBuffer(
        pyca_key.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        )
    )
    with der:
        iv, data = _encrypt_traditional(der.buffer, cipher_name, passphrase)
    s = u(base64.b64encode(data))
    lines = [
        "-----BEGIN {}-----".format(label),
        "Proc-Type: 4,ENCRYPTED",
        "DEK-Info: {},{}".format(cipher_name, u(hexlify(iv)).upper()),
        "",
    ]
    lines += [
        s[i : i + PEM_LINE_LENGTH] for i in range(0, len(s), PEM_LINE_LENGTH)
    ]
    lines.append("-----END {}-----".format(label))
    return "\n".join(lines) + "\n"


def load_pem_public_key(data, comment=""):
    """
    Read a ``PUBLIC KEY`` or ``RSA PUBLIC KEY`` PEM block.

    :returns: a public-only `.PKey` subclass instance.
    """
    label, _, der = read_pem(data)
    if label not in _PUBLIC_LABELS:
        raise UnsupportedFormat("Unknown PEM label {!r}".format(label))
    try:
        pyca_key = serialization.load_der_public_key(
            der, backend=default_backend()
        )
    except ValueError as e:
        raise FormatError("Invalid {} data: {}".format(label, e))
    except _CryptoUnsupported as e:
        raise UnsupportedAlgorithm(str(e))
    key = PKey.from_pyca_public_key(pyca_key, comment)
    key_class = _PUBLIC_LABELS[label]
    if key_class is not None and not isinstance(key, key_class):
        raise FormatError(
            "{} block holds a {} key".format(label, key.get_name())
        )
    return key


def write_pem_public_key(key, fmt="pem-public"):
    """
    Write the public part of ``key`` as PEM.

    :param str fmt:
        ``"pem-public"`` for SubjectPublicKeyInfo (any key type) or
        ``"pkcs1-public"`` (RSA only).
    :returns: the PEM text, as a `str`.
    """
    if fmt not in _PUBLIC_FORMATS:
        raise UnsupportedFormat("Unknown public PEM format {!r}".format(fmt))
    public_format, required = _PUBLIC_FORMATS[fmt]
    if required is not None and not isinstance(key, required):
        raise UnsupportedFormat(
            "{} keys cannot be written as {}".format(key.get_name(), fmt)
        )
    return (
        key._to_pyca_public_key()
        .public_bytes(serialization.Encoding.PEM, public_format)
        .decode()
    )
