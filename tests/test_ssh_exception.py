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

import pickle
import unittest

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


class HierarchyTest(unittest.TestCase):
    def test_everything_is_an_SSHException(self):
        for cls in (
            DecryptionFailed,
            FormatError,
            InvalidKeySize,
            LengthOverflow,
            PaddingInvalid,
            PasswordRequiredException,
            TruncatedInput,
            UnknownKeyType,
            UnsupportedAlgorithm,
            UnsupportedCipher,
            UnsupportedFormat,
            UnsupportedKdf,
        ):
            assert issubclass(cls, SSHException)

    def test_read_errors_are_format_errors(self):
        assert issubclass(TruncatedInput, FormatError)
        assert issubclass(LengthOverflow, FormatError)

    def test_missing_password_is_a_decryption_failure(self):
        assert issubclass(PasswordRequiredException, DecryptionFailed)

    def test_unknown_key_type_is_unsupported_algorithm(self):
        assert issubclass(UnknownKeyType, UnsupportedAlgorithm)


class LengthOverflowTest(unittest.TestCase):
    def test_str(self):
        exc = LengthOverflow(5000, 4096)
        assert str(exc) == "Declared length 5000 exceeds limit of 4096 bytes"

    def test_pickling(self):
        exc = LengthOverflow(5000, 4096)
        new_exc = pickle.loads(pickle.dumps(exc))
        self.assertEqual(type(exc), type(new_exc))
        self.assertEqual(str(exc), str(new_exc))
        self.assertEqual(exc.args, new_exc.args)
        self.assertEqual(new_exc.length, 5000)


class UnknownKeyTypeTest(unittest.TestCase):
    def test_str(self):
        exc = UnknownKeyType(key_type="ssh-foo", key_bytes=b"abcd")
        assert str(exc) == "UnknownKeyType(type='ssh-foo', bytes=<4>)"
        assert exc.key_type == "ssh-foo"
        assert exc.key_bytes == b"abcd"

    def test_str_without_bytes(self):
        exc = UnknownKeyType(key_type="ssh-foo")
        assert str(exc) == "UnknownKeyType(type='ssh-foo', bytes=<0>)"

    def test_pickling(self):
        exc = UnknownKeyType(key_type="ssh-foo")
        new_exc = pickle.loads(pickle.dumps(exc))
        self.assertEqual(type(exc), type(new_exc))
        self.assertEqual(str(exc), str(new_exc))
        self.assertEqual(new_exc.key_type, "ssh-foo")


class PlainExceptionsTest(unittest.TestCase):
    def test_pickling(self):
        for cls in (
            DecryptionFailed,
            FormatError,
            InvalidKeySize,
            PaddingInvalid,
            PasswordRequiredException,
            TruncatedInput,
            UnsupportedCipher,
            UnsupportedFormat,
            UnsupportedKdf,
        ):
            exc = cls("something broke")
            new_exc = pickle.loads(pickle.dumps(exc))
            self.assertEqual(type(exc), type(new_exc))
            self.assertEqual(str(exc), str(new_exc))
