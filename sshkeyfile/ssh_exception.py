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


class SSHException(Exception):
    """
    Base class for every error raised while reading or writing key material.
    """

    pass


class FormatError(SSHException):
    """
    Exception raised when key data is structurally invalid: bad magic, bad
    base64, a mismatched field, trailing garbage and so on.
    """

    pass


class TruncatedInput(FormatError):
    """
    Exception raised when fewer bytes remain in a buffer than a field needs.
    """

    pass


class LengthOverflow(FormatError):
    """
    Exception raised when a length prefix declares more data than any sane
    key file could contain.

    :param int length: the declared length
    :param int limit: the ceiling it exceeded
    """

    def __init__(self, length, limit):
        FormatError.__init__(self, length, limit)
        self.length = length
        self.limit = limit

    def __str__(self):
        return "Declared length {} exceeds limit of {} bytes".format(
            self.length, self.limit
        )


class UnsupportedAlgorithm(SSHException):
    """
    Exception raised for a key algorithm (or curve) we do not implement.
    """

    pass


class UnknownKeyType(UnsupportedAlgorithm):
    """
    An unknown public/private key algorithm was attempted to be read.
    """

    def __init__(self, key_type=None, key_bytes=None):
        UnsupportedAlgorithm.__init__(self, key_type)
        self.key_type = key_type
        self.key_bytes = key_bytes

    def __str__(self):
        length = len(self.key_bytes) if self.key_bytes is not None else 0
        return f"UnknownKeyType(type={self.key_type!r}, bytes=<{length}>)"


class UnsupportedCipher(SSHException):
    """
    Exception raised for a cipher name missing from our cipher tables.
    """

    pass


class UnsupportedKdf(SSHException):
    """
    Exception raised for a key derivation function other than ``bcrypt`` or
    ``none``.
    """

    pass


class UnsupportedFormat(SSHException):
    """
    Exception raised when data is not in any container format we know, or a
    key cannot be written in the requested format.
    """

    pass


class DecryptionFailed(SSHException):
    """
    Exception raised when an encrypted private key could not be unlocked,
    almost always because of a wrong passphrase.
    """

    pass


class PasswordRequiredException(DecryptionFailed):
    """
    Exception raised when a password is needed to unlock a private key file.
    """

    pass


class PaddingInvalid(SSHException):
    """
    Exception raised when the padding after the last private key entry is
    not the ``1, 2, 3, ...`` sequence.
    """

    pass


class InvalidKeySize(SSHException):
    """
    Exception raised when a key's size disagrees with its algorithm or curve,
    or is below the minimum we accept.
    """

    pass
