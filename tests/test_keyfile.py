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
Tests for the high level parse/serialize/generate/fingerprint entry points.
"""

import hashlib
import logging
import unittest
from unittest.mock import patch

import pytest

import sshkeyfile
from sshkeyfile import (
    DecryptionFailed,
    DSSKey,
    ECDSAKey,
    Ed25519Key,
    FormatError,
    InvalidKeySize,
    PKey,
    PrivateKeyEnvelope,
    RSAKey,
    UnknownKeyType,
    UnsupportedFormat,
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
from sshkeyfile.opensshkey import dearmor, encode_openssh_private
from sshkeyfile.pemkey import read_pem

from ._util import private_fields, read_support, slow


@slow
class CorrectHorseTest(unittest.TestCase):
    def test_rsa_2048_scenario(self):
        key = generate_key("ssh-rsa", bits=2048, comment="horse@battery")
        text = serialize(
            key,
            "openssh",
            passphrase="correct horse",
            cipher="aes256-ctr",
            kdf_rounds=16,
        )
        envelope = PrivateKeyEnvelope.from_bytes(dearmor(text))
        assert envelope.cipher_name == "aes256-ctr"
        assert envelope.kdf.rounds == 16

        got = parse(text, passphrase="correct horse")
        assert isinstance(got, RSAKey)
        assert got.get_bits() == 2048
        assert private_fields(got) == private_fields(key)
        assert got.comment == "horse@battery"

        with pytest.raises(DecryptionFailed):
            parse(text, passphrase="wrong")

        plain = serialize(key)
        with patch("bcrypt.kdf") as kdf_fn:
            again = parse(plain)
        assert not kdf_fn.called
        assert private_fields(again) == private_fields(key)


class ParseTest(unittest.TestCase):
    def test_public_line(self):
        key = parse(read_support("test_rsa.key.pub"))
        assert isinstance(key, RSAKey)
        assert not key.can_sign()
        assert key.comment == "test@sshkeyfile"
        assert key == parse(read_support("test_rsa.key"))

    def test_legacy_pem(self):
        key = parse(read_support("test_dss.key"))
        assert isinstance(key, DSSKey)
        assert key.can_sign()

    def test_openssh(self):
        key = Ed25519Key.generate()
        key.comment = "carol"
        got = parse(encode_openssh_private(key).encode())
        assert got == key
        assert got.comment == "carol"

    def test_unknown(self):
        with pytest.raises(UnsupportedFormat):
            parse("Not a key file\n")

    def test_parse_public_key(self):
        text = "# generated\n" + read_support("test_ecdsa_256.key.pub")
        key = parse_public_key(text)
        assert isinstance(key, ECDSAKey)
        assert key.comment == "test@sshkeyfile"

    def test_parse_public_key_needs_a_line(self):
        with pytest.raises(FormatError):
            parse_public_key("\n# nothing here\n")

    def test_private_loaders_refuse_public_lines(self):
        data = read_support("test_rsa.key.pub")
        with pytest.raises(UnsupportedFormat):
            load_private_keys(data)
        with pytest.raises(UnsupportedFormat):
            parse_private_key(data)


class MultipleKeysTest(unittest.TestCase):
    def setUp(self):
        self.first = Ed25519Key.generate()
        self.first.comment = "first"
        self.second = ECDSAKey.generate()
        self.second.comment = "second"
        self.text = encode_openssh_private([self.first, self.second])

    def test_load_all(self):
        got = load_private_keys(self.text)
        assert got == [self.first, self.second]
        assert [k.comment for k in got] == ["first", "second"]

    def test_parse_returns_first(self):
        assert parse_private_key(self.text) == self.first
        assert parse(self.text) == self.first

    def test_single_key_pem(self):
        got = load_private_keys(read_support("test_rsa.key"))
        assert len(got) == 1


def test_multiple_keys_are_logged(caplog):
    text = encode_openssh_private(
        [Ed25519Key.generate(), Ed25519Key.generate()]
    )
    with caplog.at_level(logging.WARNING, logger="sshkeyfile"):
        parse_private_key(text)
    assert "holds 2 keys" in caplog.text


class SerializeTest(unittest.TestCase):
    def setUp(self):
        self.key = Ed25519Key.generate()
        self.key.comment = "dave@example"

    def test_default_is_unencrypted_openssh(self):
        text = serialize(self.key)
        envelope = PrivateKeyEnvelope.from_bytes(dearmor(text))
        assert envelope.cipher_name == "none"
        assert envelope.kdf.name == "none"
        assert parse(text).comment == "dave@example"

    def test_public(self):
        line = serialize(self.key, "public")
        assert line == serialize_public_key(self.key)
        assert line.startswith("ssh-ed25519 AAAAC3NzaC1lZDI1NTE5")
        assert line.endswith(" dave@example")
        assert "\n" not in line

    def test_public_without_comment(self):
        pub = PKey.from_public_blob(self.key.asbytes())
        assert serialize_public_key(pub) == "ssh-ed25519 " + pub.get_base64()

    def test_serialize_private_key_defaults(self):
        text = serialize_private_key(self.key, "pw", kdf_rounds=1)
        envelope = PrivateKeyEnvelope.from_bytes(dearmor(text))
        assert envelope.cipher_name == "aes256-ctr"
        assert envelope.kdf.rounds == 1

    def test_serialize_private_key_cipher(self):
        text = serialize_private_key(
            self.key, "pw", cipher_name="aes128-cbc", kdf_rounds=1
        )
        envelope = PrivateKeyEnvelope.from_bytes(dearmor(text))
        assert envelope.cipher_name == "aes128-cbc"
        assert parse(text, "pw") == self.key

    def test_pem_cipher(self):
        key = parse(read_support("test_rsa.key"))
        text = serialize(key, "pem", passphrase="pw", cipher="AES-256-CBC")
        _, headers, _ = read_pem(text)
        assert headers["dek-info"].startswith("AES-256-CBC,")
        assert parse(text, "pw") == key

    def test_pem_default_cipher(self):
        key = parse(read_support("test_rsa.key"))
        text = serialize(key, "pkcs1", passphrase="pw")
        _, headers, _ = read_pem(text)
        assert headers["dek-info"].startswith("AES-128-CBC,")

    def test_unknown_format(self):
        with pytest.raises(UnsupportedFormat):
            serialize(self.key, "putty")

    def test_public_only_key_to_private_format(self):
        pub = PKey.from_public_blob(self.key.asbytes())
        for fmt in ("openssh", "pem", "pkcs8"):
            with pytest.raises(ValueError):
                serialize(pub, fmt)
        assert serialize(pub, "public").startswith("ssh-ed25519 ")


class TestEveryFormat:
    @pytest.mark.parametrize("fmt", ["openssh", "pkcs8", "pem"])
    def test_round_trip(self, keys, fmt):
        if fmt == "pem" and keys.short_type == "ed25519":
            with pytest.raises(UnsupportedFormat):
                serialize(keys.pkey, fmt)
            return
        text = serialize(keys.pkey, fmt, passphrase="pw", kdf_rounds=1)
        got = parse(text, passphrase="pw")
        assert isinstance(got, keys.key_class)
        assert got == keys.pkey
        assert private_fields(got) == private_fields(keys.pkey)
        if fmt == "openssh":
            assert got.comment == keys.pkey.comment
            assert got.identical(keys.pkey)

    def test_public_round_trip(self, keys):
        got = parse(serialize(keys.pkey, "public"))
        assert got == keys.pkey
        assert got.comment == keys.pkey.comment
        assert not got.can_sign()


class GenerateTest(unittest.TestCase):
    def test_aliases(self):
        for tag, cls in (
            ("ssh-ed25519", Ed25519Key),
            ("ed25519", Ed25519Key),
            ("ecdsa", ECDSAKey),
            ("ECDSA-SHA2-NISTP384", ECDSAKey),
        ):
            key = generate_key(tag)
            assert isinstance(key, cls)
            assert key.can_sign()
            assert key.comment == ""

    def test_rsa(self):
        key = generate_key("rsa", bits=2048, comment="me")
        assert isinstance(key, RSAKey)
        assert key.get_bits() == 2048
        assert key.comment == "me"
        assert generate_key("ssh-rsa", bits=1024).get_bits() == 1024

    def test_dsa(self):
        for tag in ("ssh-dss", "dsa"):
            key = generate_key(tag)
            assert isinstance(key, DSSKey)
            assert key.get_bits() == 1024

    def test_ecdsa_curves(self):
        for bits in (256, 384, 521):
            key = generate_key(f"ecdsa-sha2-nistp{bits}")
            assert key.get_bits() == bits
            assert generate_key("ecdsa", bits=bits).get_bits() == bits

    def test_unknown(self):
        with pytest.raises(UnknownKeyType):
            generate_key("ssh-foo")


class FingerprintTest(unittest.TestCase):
    def setUp(self):
        self.key = parse(read_support("test_rsa.key"))

    def test_default_is_sha256(self):
        expected = hashlib.sha256(self.key.asbytes()).digest()
        assert fingerprint(self.key) == expected

    def test_md5_matches_known_value(self):
        digest = fingerprint(self.key, "md5").hex()
        assert digest == "60733844cb5186657fdedaa22b5a57d5"

    def test_algorithms(self):
        for name, size in (
            ("md5", 16),
            ("sha1", 20),
            ("sha256", 32),
            ("sha384", 48),
            ("sha512", 64),
            ("SHA256", 32),
        ):
            assert len(fingerprint(self.key, name)) == size

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError):
            fingerprint(self.key, "crc32")

    def test_stable_and_comment_independent(self):
        pub = PKey.from_public_line(read_support("test_rsa.key.pub"))
        first = fingerprint(pub)
        assert fingerprint(pub) == first
        pub.comment = "something else entirely"
        assert fingerprint(pub) == first
        assert fingerprint(self.key) == first

    def test_public_and_private_agree(self):
        pub = sshkeyfile.RSAKey(data=self.key.asbytes())
        assert fingerprint(pub, "sha512") == fingerprint(self.key, "sha512")


class TestPublicPemFormats:
    def test_round_trip(self, keys):
        text = serialize(keys.pkey, "pem-public")
        assert text.startswith("-----BEGIN PUBLIC KEY-----\n")
        for got in (parse(text), parse_public_key(text)):
            assert isinstance(got, keys.key_class)
            assert got == keys.pkey
            assert not got.can_sign()

    def test_public_only_keys_can_be_written(self, keys):
        assert serialize(keys.public, "pem-public") == serialize(
            keys.pkey, "pem-public"
        )

    def test_pkcs1_public(self, keys):
        if keys.short_type != "rsa":
            with pytest.raises(UnsupportedFormat):
                serialize(keys.pkey, "pkcs1-public")
            return
        text = serialize(keys.pkey, "pkcs1-public")
        assert text.startswith("-----BEGIN RSA PUBLIC KEY-----\n")
        assert parse(text) == keys.pkey

    def test_no_private_key_inside(self, keys):
        text = serialize(keys.pkey, "pem-public")
        with pytest.raises(UnsupportedFormat):
            load_private_keys(text)


class KeySizeTest(unittest.TestCase):
    def test_short_rsa_pem_is_refused(self):
        with pytest.raises(InvalidKeySize):
            parse(read_support("test_rsa_768.key"))
