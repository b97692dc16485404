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
Work out which container format a blob of key data is in, without
decrypting anything.
"""

import re

from sshkeyfile.common import OPENSSH_AUTH_MAGIC, OPENSSH_PEM_TAG
from sshkeyfile.dsskey import DSSKey
from sshkeyfile.ecdsakey import ECDSAKey
from sshkeyfile.message import Message
from sshkeyfile.opensshkey import PrivateKeyEnvelope, dearmor
from sshkeyfile.pemkey import pem_label
from sshkeyfile.rsakey import RSAKey
from sshkeyfile.ssh_exception import UnsupportedFormat
from sshkeyfile.util import b, u

OPENSSH = "OPENSSH"
PUBLIC = "PUBLIC"
PKCS8 = "PKCS8"
PEM_PUBLIC = "PEM_PUBLIC"

_pem_types = {
    "RSA PRIVATE KEY": ("RSA", RSAKey),
    "DSA PRIVATE KEY": ("DSA", DSSKey),
    "EC PRIVATE KEY": ("EC", ECDSAKey),
    "PRIVATE KEY": (PKCS8, None),
    "ENCRYPTED PRIVATE KEY": (PKCS8, None),
    "PUBLIC KEY": (PEM_PUBLIC, None),
    "RSA PUBLIC KEY": (PEM_PUBLIC, RSAKey),
}

_KEY_TYPE = re.compile(r"^[a-z0-9][a-z0-9@.\-]*$")


def key_class_for(key_type):
    """
    Return the `.PKey` subclass handling ``key_type``, or ``None``.
    """
    from sshkeyfile import key_classes

    for key_class in key_classes:
        if key_type in key_class.identifiers():
            return key_class
    return None


def _class_from_envelope(data):
    envelope = PrivateKeyEnvelope.from_bytes(data)
    key_type = Message(envelope.public_blobs[0]).get_text()
    return key_class_for(key_type)


def identify_pkey(data):
    """
    Sniff the container format of ``data``.

    :returns:
        a ``(container, key_class)`` tuple. ``container`` is ``"OPENSSH"``
        (armored or raw ``openssh-key-v1``), ``"RSA"``, ``"DSA"``, ``"EC"``,
        ``"PKCS8"`` (legacy PEM labels), ``"PEM_PUBLIC"`` (a PEM public key)
        or ``"PUBLIC"`` (a public key line).
        ``key_class`` is the `.PKey` subclass when it can be told without a
        passphrase, else ``None``.
    :raises: `.UnsupportedFormat` -- when no known format matches.
    """
    raw = b(data)
    if raw.startswith(OPENSSH_AUTH_MAGIC):
        return (OPENSSH, _class_from_envelope(raw))
    try:
        text = u(raw)
    except UnicodeDecodeError:
        raise UnsupportedFormat("can not determine key format") from None
    label = pem_label(text)
    if label == OPENSSH_PEM_TAG:
        return (OPENSSH, _class_from_envelope(dearmor(text)))
    if label in _pem_types:
        return _pem_types[label]
    if label is not None:
        raise UnsupportedFormat("unsupported PEM block {!r}".format(label))
    line = first_key_line(text)
    fields = line.split(None, 2) if line else []
    if len(fields) >= 2 and _KEY_TYPE.match(fields[0]):
        return (PUBLIC, key_class_for(fields[0]))
    raise UnsupportedFormat("can not determine key format")


def first_key_line(text):
    """
    Return the first line of ``text`` that is neither blank nor a ``#``
    comment, or ``None``.
    """
    for line in u(text).splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            return line
    return None
