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
Tests for key file format sniffing.
"""

import unittest

import pytest

from sshkeyfile import (
    DSSKey,
    ECDSAKey,
    Ed25519Key,
    FormatError,
    RSAKey,
    UnsupportedFormat,
)
from sshkeyfile.opensshkey import dearmor, encode_openssh_private
from sshkeyfile.pemkey import write_pem_private_key, write_pem_public_key
from sshkeyfile.pkey_util import (
    OPENSSH,
    PEM_PUBLIC,
    PKCS8,
    PUBLIC,
    first_key_line,
    identify_pkey,
    key_class_for,
)

from ._util import read_support


class IdentifyTest(unittest.TestCase):
    def test_armored_openssh(self):
        key = Ed25519Key.generate()
        text = encode_openssh_private(key, "pw", rounds=1)
        assert identify_pkey(text) == (OPENSSH, Ed25519Key)
        assert identify_pkey(text.encode()) == (OPENSSH, Ed25519Key)

    def test_raw_openssh(self):
        text = encode_openssh_private(Ed25519Key.generate())
        assert identify_pkey(dearmor(text)) == (OPENSSH, Ed25519Key)

    def test_broken_openssh(self):
        text = encode_openssh_private(Ed25519Key.generate())
        lines = text.splitlines()
        lines[1] = "AAAA" + lines[1][4:]
        with pytest.raises(FormatError):
            identify_pkey("\n".join(lines))

    def test_traditional_pem(self):
        for name, expected in (
            ("test_rsa.key", ("RSA", RSAKey)),
            ("test_dss.key", ("DSA", DSSKey)),
            ("test_ecdsa_256.key", ("EC", ECDSAKey)),
        ):
            assert identify_pkey(read_support(name)) == expected

    def test_pkcs8(self):
        key = Ed25519Key.generate()
        assert identify_pkey(write_pem_private_key(key, "pkcs8")) == (
            PKCS8,
            None,
        )
        encrypted = write_pem_private_key(key, "pkcs8", passphrase="pw")
        assert identify_pkey(encrypted) == (PKCS8, None)

    def test_pem_public(self):
        key = Ed25519Key.generate()
        text = write_pem_public_key(key)
        assert identify_pkey(text) == (PEM_PUBLIC, None)
        rsa = RSAKey.from_public_line(read_support("test_rsa.key.pub"))
        text = write_pem_public_key(rsa, "pkcs1-public")
        assert identify_pkey(text) == (PEM_PUBLIC, RSAKey)

    def test_public_line(self):
        assert identify_pkey(read_support("test_rsa.key.pub")) == (
            PUBLIC,
            RSAKey,
        )
        text = "# my keys\n\n" + read_support("test_ecdsa_521.key.pub")
        assert identify_pkey(text) == (PUBLIC, ECDSAKey)

    def test_public_line_of_unknown_type(self):
        assert identify_pkey("ssh-foo AAAAB3NzaC1mb28=") == (PUBLIC, None)

    def test_other_pem_blocks(self):
        text = "-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n"
        with pytest.raises(UnsupportedFormat):
            identify_pkey(text)

    def test_junk(self):
        for junk in ("", "hello", "Hello World", b"\xff\xfe\x00"):
            with pytest.raises(UnsupportedFormat):
                identify_pkey(junk)


class HelpersTest(unittest.TestCase):
    def test_key_class_for(self):
        assert key_class_for("ssh-rsa") is RSAKey
        assert key_class_for("rsa-sha2-512") is RSAKey
        assert key_class_for("ssh-dss") is DSSKey
        assert key_class_for("ecdsa-sha2-nistp384") is ECDSAKey
        assert key_class_for("ssh-ed25519") is Ed25519Key
        assert key_class_for("ssh-foo") is None

    def test_first_key_line(self):
        assert first_key_line("\n  # comment\n\n  ssh-rsa AAAA x \n") == (
            "ssh-rsa AAAA x"
        )
        assert first_key_line(b"ssh-rsa AAAA") == "ssh-rsa AAAA"
        assert first_key_line("# only comments\n") is None
