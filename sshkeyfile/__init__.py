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

# flake8: noqa
import logging

from sshkeyfile._version import __version__, __version_info__
from sshkeyfile.ssh_exception import (
    DecryptionFailed,
    FormatError,
    InvalidKeySize,
    LengthOverflow,
    PaddingInvalid,
    PasswordRequiredException,
    SSHException,
    TruncatedInput,
    UnknownKeyType,
    UnsupportedAlgorithm,
    UnsupportedCipher,
    UnsupportedFormat,
    UnsupportedKdf,
)
from sshkeyfile.message import Message
from sshkeyfile.secret import SecretBuffer
from sshkeyfile.pkey import PKey, PublicBlob
from sshkeyfile.rsakey import RSAKey
from sshkeyfile.dsskey import DSSKey
from sshkeyfile.ecdsakey import ECDSAKey
from sshkeyfile.ed25519key import Ed25519Key
from sshkeyfile.opensshkey import DecryptedPayload, PrivateKeyEnvelope
from sshkeyfile.keyfile import (
    FORMAT_OPENSSH,
    FORMAT_PEM,
    FORMAT_PEM_PUBLIC,
    FORMAT_PKCS1,
    FORMAT_PKCS1_PUBLIC,
    FORMAT_PKCS8,
    FORMAT_PUBLIC,
    FORMAT_SEC1,
    fingerprint,
    generate_key,
    load_private_keys,
    parse,
    parse_private_key,
    parse_public_key,
    serialize,
    serialize_private_key,
    serialize_public_key,
)

key_classes = (DSSKey, RSAKey, Ed25519Key, ECDSAKey)

# Library code stays quiet unless the application configures logging.
logging.getLogger("sshkeyfile").addHandler(logging.NullHandler())


__license__ = "GNU Lesser General Public License (LGPL)"

__all__ = [
    "DSSKey",
    "DecryptedPayload",
    "DecryptionFailed",
    "ECDSAKey",
    "Ed25519Key",
    "FORMAT_OPENSSH",
    "FORMAT_PEM",
    "FORMAT_PEM_PUBLIC",
    "FORMAT_PKCS1",
    "FORMAT_PKCS1_PUBLIC",
    "FORMAT_PKCS8",
    "FORMAT_PUBLIC",
    "FORMAT_SEC1",
    "FormatError",
    "InvalidKeySize",
    "LengthOverflow",
    "Message",
    "PKey",
    "PaddingInvalid",
    "PasswordRequiredException",
    "PrivateKeyEnvelope",
    "PublicBlob",
    "RSAKey",
    "SSHException",
    "SecretBuffer",
    "TruncatedInput",
    "UnknownKeyType",
    "UnsupportedAlgorithm",
    "UnsupportedCipher",
    "UnsupportedFormat",
    "UnsupportedKdf",
    "fingerprint",
    "generate_key",
    "load_private_keys",
    "parse",
    "parse_private_key",
    "parse_public_key",
    "serialize",
    "serialize_private_key",
    "serialize_public_key",
]
