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
High level entry points: read any supported key file, write keys in any
supported format, generate new keys and compute fingerprints.
"""

from sshkeyfile.common import DEFAULT_PEM_CIPHER
from sshkeyfile.dsskey import DSSKey
from sshkeyfile.ecdsakey import ECDSAKey
from sshkeyfile.ed25519key import Ed25519Key
from sshkeyfile.opensshkey import (
    decode_openssh_private,
    encode_openssh_private,
)
from sshkeyfile.pemkey import (
    load_pem_private_key,
    load_pem_public_key,
    pem_label,
    write_pem_private_key,
    write_pem_public_key,
)
from sshkeyfile.pkey import PKey
from sshkeyfile.pkey_util import (
    OPENSSH,
    PEM_PUBLIC,
    PUBLIC,
    first_key_line,
    identify_pkey,
)
from sshkeyfile.rsakey import RSAKey
from sshkeyfile.ssh_exception import (
    FormatError,
    UnknownKeyType,
    UnsupportedFormat,
)
from sshkeyfile.util import get_logger

_log = get_logger(__name__)

FORMAT_OPENSSH = "openssh"
FORMAT_PUBLIC = "public"
FORMAT_PEM = "pem"
FORMAT_PKCS1 = "pkcs1"
FORMAT_SEC1 = "sec1"
FORMAT_PKCS8 = "pkcs8"
FORMAT_PEM_PUBLIC = "pem-public"
FORMAT_PKCS1_PUBLIC = "pkcs1-public"

_PEM_FORMATS = (FORMAT_PEM, FORMAT_PKCS1, FORMAT_SEC1, FORMAT_PKCS8)
_PUBLIC_PEM_FORMATS = (FORMAT_PEM_PUBLIC, FORMAT_PKCS1_PUBLIC)
FORMATS = (FORMAT_OPENSSH, FORMAT_PUBLIC) + _PEM_FORMATS + _PUBLIC_PEM_FORMATS

FINGERPRINT_HASHES = ("md5", "sha1", "sha256", "sha384", "sha512")


def parse_public_key(data):
    """
    Read a public key from a one-line ``<type> <base64> [comment]`` file,
    or from a ``PUBLIC KEY`` / ``RSA PUBLIC KEY`` PEM block.  Leading blank
    and ``#`` lines are skipped.

    :param data: `str` or `bytes`.
    :returns: a public-only `.PKey` subclass instance.
    """
    if pem_label(data) in ("PUBLIC KEY", "RSA PUBLIC KEY"):
        return load_pem_public_key(data)
    line = first_key_line(data)
    if line is None:
        raise FormatError("No public key line found")
    return PKey.from_public_line(line)


def load_private_keys(data, passphrase=None):
    """
    Read every private key in ``data``.

    ``openssh-key-v1`` files may hold several keys; legacy PEM files always
    hold one.

    :param data: `str` or `bytes`, armored or raw.
    :param passphrase: `str` or `bytes`, for encrypted files.
    :returns: a `list` of private `.PKey` objects.
    """
    container, _ = identify_pkey(data)
    if container in (PUBLIC, PEM_PUBLIC):
        raise UnsupportedFormat("Public key data holds no private key")
    if container == OPENSSH:
        keys = decode_openssh_private(data, passphrase)
    else:
        keys = [load_pem_private_key(data, passphrase)]
    _log.debug(f"Loaded {len(keys)} private key(s) from {container} data")
    return keys


def parse_private_key(data, passphrase=None):
    """
    Read a private key from any supported container.

    When an ``openssh-key-v1`` file holds more than one key the first one is
    returned; use `load_private_keys` to get them all.
    """
    keys = load_private_keys(data, passphrase)
    if len(keys) > 1:
        _log.warning(
            f"Key file holds {len(keys)} keys; returning only the first"
        )
    return keys[0]


def parse(data, passphrase=None):
    """
    Read a public or private key, whichever ``data`` holds.

    :raises: `.UnsupportedFormat` -- if the format cannot be recognised.
    """
    container, _ = identify_pkey(data)
    if container in (PUBLIC, PEM_PUBLIC):
        return parse_public_key(data)
    return parse_private_key(data, passphrase)


def serialize_public_key(key):
    """
    Return the one-line public form of ``key``, without a trailing newline.
    """
    return key.get_public_line()


def serialize_private_key(
    key, passphrase=None, cipher_name=None, kdf_rounds=None
):
    """
    Write ``key`` as an armored ``openssh-key-v1`` file.

    :param passphrase: optional `str` or `bytes`; without one the key is
        written unencrypted.
    :param str cipher_name: cipher to encrypt with, ``aes256-ctr`` by default.
    :param int kdf_rounds: bcrypt rounds, 16 by default.
    """
    return encode_openssh_private(
        key, passphrase=passphrase, cipher_name=cipher_name, rounds=kdf_rounds
    )


def serialize(
    key,
    target_format=FORMAT_OPENSSH,
    passphrase=None,
    cipher=None,
    kdf_rounds=None,
):
    """
    Write ``key`` in ``target_format``.

    :param str target_format:
        one of ``"openssh"``, ``"public"``, ``"pem"``, ``"pkcs1"``,
        ``"sec1"``, ``"pkcs8"``, or ``"pem-public"`` and ``"pkcs1-public"``
        for the public part alone as PEM.
    :param passphrase: optional `str` or `bytes` to encrypt with.
    :param str cipher: cipher name; an OpenSSH name for ``"openssh"``, a
        DEK-Info name for the traditional PEM formats.
    :param int kdf_rounds: bcrypt rounds, ``"openssh"`` only.
    :returns: the serialized key, as a `str`.

    :raises: `.UnsupportedFormat` -- for an unknown format, or one the key
        type cannot be written in.
    :raises: ``ValueError`` -- when writing a private format from a public
        key.
    """
    if target_format not in FORMATS:
        raise UnsupportedFormat(
            "Unknown key format {!r}".format(target_format)
        )
    if target_format == FORMAT_PUBLIC:
        return serialize_public_key(key)
    if target_format in _PUBLIC_PEM_FORMATS:
        return write_pem_public_key(key, target_format)
    if not key.can_sign():
        raise ValueError(
            "Cannot write a public-only {} key as {}".format(
                key.get_name(), target_format
            )
        )
    if target_format == FORMAT_OPENSSH:
        return serialize_private_key(key, passphrase, cipher, kdf_rounds)
    return write_pem_private_key(
        key, target_format, passphrase, cipher or DEFAULT_PEM_CIPHER
    )


def generate_key(algorithm, comment="", **params):
    """
    Generate a new private key.

    :param str algorithm:
        ``"ssh-rsa"``/``"rsa"`` (``bits``), ``"ssh-dss"``/``"dsa"``,
        ``"ecdsa-sha2-nistp256"`` (or ``384``/``521``), ``"ecdsa"``
        (``bits`` or ``curve``), ``"ssh-ed25519"``/``"ed25519"``.
    :param str comment: comment to attach to the new key.
    :param params: passed through to the key class's ``generate``.
    """
    alg = algorithm.lower()
    if alg in ("ssh-rsa", "rsa"):
        key = RSAKey.generate(**params)
    elif alg in ("ssh-dss", "dsa", "dss"):
        key = DSSKey.generate(**params)
    elif alg in ECDSAKey.identifiers():
        key = ECDSAKey.generate(bits=int(alg[len("ecdsa-sha2-nistp") :]))
    elif alg == "ecdsa":
        key = ECDSAKey.generate(**params)
    elif alg in ("ssh-ed25519", "ed25519"):
        key = Ed25519Key.generate()
    else:
        raise UnknownKeyType(key_type=algorithm)
    key.comment = comment
    _log.debug(f"Generated {key.get_name()} key of {key.get_bits()} bits")
    return key


def fingerprint(key, hash_alg="sha256"):
    """
    Return the raw digest of ``key``'s public blob.  The comment is not
    part of the blob, so it never affects the result.

    :param str hash_alg: ``md5``, ``sha1``, ``sha256``, ``sha384`` or
        ``sha512``.
    :raises: ``ValueError`` -- for any other hash name.
    """
    name = hash_alg.lower()
    if name not in FINGERPRINT_HASHES:
        raise ValueError("Unsupported fingerprint hash {!r}".format(hash_alg))
    return key.get_fingerprint(name)
