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
Implementation of the SSH wire encoding used inside key blobs.
"""

import struct

from sshkeyfile import util
from sshkeyfile.common import MAX_WIRE_STRING_LENGTH, zero_byte, one_byte
from sshkeyfile.ssh_exception import (
    FormatError,
    LengthOverflow,
    TruncatedInput,
)
from sshkeyfile.util import u


class Message:
    """
    A stream of bytes encoding some combination of strings, integers, bools
    and infinite-precision integers, as laid out in RFC 4251 section 5.  This
    class builds or breaks down such a byte stream.

    Reads are strict: asking for more bytes than remain raises
    `.TruncatedInput`, and a length prefix larger than `max_string_length`
    raises `.LengthOverflow` before any allocation happens.

    A `bytearray` handed to the constructor is read in place rather than
    copied, so a caller holding decrypted key material can still wipe it
    once decoding is finished.
    """

    max_string_length = MAX_WIRE_STRING_LENGTH

    def __init__(self, content=None):
        """
        Create a new SSH2 message.

        :param bytes content:
            the byte stream to use as the message content (passed in only when
            decomposing a message).
        """
        if content is not None:
            self.packet = content
        else:
            self.packet = bytearray()
        self.idx = 0

    def __bytes__(self):
        return self.asbytes()

    def __repr__(self):
        """
        Returns a string representation of this object, for debugging.
        """
        return "sshkeyfile.Message(" + repr(self.asbytes()) + ")"

    __str__ = __repr__

    def asbytes(self):
        """
        Return the byte stream content of this Message, as a `bytes`.
        """
        return bytes(self.packet)

    def rewind(self):
        """
        Rewind the message to the beginning as if no items had been parsed
        out of it yet.
        """
        self.idx = 0

    def get_remainder(self):
        """
        Return the `bytes` of this message that haven't already been parsed and
        returned.
        """
        return bytes(self.packet[self.idx :])

    def get_so_far(self):
        """
        Returns the `bytes` of this message that have been parsed and
        returned. The string passed into a message's constructor can be
        regenerated by concatenating ``get_so_far`` and `get_remainder`.
        """
        return bytes(self.packet[: self.idx])

    def remaining(self):
        """
        Return the number of bytes not yet parsed.
        """
        return len(self.packet) - self.idx

    def get_bytes(self, n):
        """
        Return the next ``n`` bytes of the message.

        :raises: `.TruncatedInput` -- if fewer than ``n`` bytes remain.
        """
        if n < 0:
            raise FormatError("Negative read length: {}".format(n))
        end = self.idx + n
        if end > len(self.packet):
            raise TruncatedInput(
                "Wanted {} bytes but only {} remain".format(
                    n, self.remaining()
                )
            )
        data = bytes(self.packet[self.idx : end])
        self.idx = end
        return data

    def get_byte(self):
        """
        Return the next byte of the message.
        """
        return self.get_bytes(1)

    def get_boolean(self):
        """
        Fetch a boolean from the stream.
        """
        b = self.get_bytes(1)
        return b != zero_byte

    def get_int(self):
        """
        Fetch an int from the stream.

        :return: a 32-bit unsigned `int`.
        """
        return struct.unpack(">I", self.get_bytes(4))[0]

    def get_int64(self):
        """
        Fetch a 64-bit int from the stream.

        :return: a 64-bit unsigned integer (`int`).
        """
        return struct.unpack(">Q", self.get_bytes(8))[0]

    def get_mpint(self):
        """
        Fetch a long int (mpint) from the stream.

        :return: an arbitrary-length integer (`int`).
        """
        return util.inflate_long(self.get_binary())

    def get_string(self):
        """
        Fetch a length-prefixed string from the stream.  The length is
        checked against `max_string_length` before the contents are read.
        """
        length = self.get_int()
        if length > self.max_string_length:
            raise LengthOverflow(length, self.max_string_length)
        return self.get_bytes(length)

    def get_text(self):
        """
        Fetch a UTF-8 string from the stream.

        :raises: `.FormatError` -- if the bytes are not valid UTF-8.
        """
        try:
            return u(self.get_string())
        except UnicodeDecodeError as e:
            raise FormatError("Invalid UTF-8 text field: {}".format(e))

    def get_binary(self):
        """
        Alias for `get_string`, read when the contents are opaque binary.
        """
        return self.get_string()

    def get_list(self):
        """
        Fetch a list of `strings <str>` from the stream.

        These are trivially encoded as comma-separated values in a string; an
        empty string decodes to an empty list.
        """
        text = self.get_text()
        if not text:
            return []
        return text.split(",")

    def _append(self, data):
        if not isinstance(self.packet, bytearray):
            self.packet = bytearray(self.packet)
        self.packet += data

    def add_bytes(self, b):
        """
        Write bytes to the stream, without any formatting.

        :param bytes b: bytes to add
        """
        self._append(b)
        return self

    def add_byte(self, b):
        """
        Write a single byte to the stream, without any formatting.

        :param bytes b: byte to add
        """
        self._append(b)
        return self

    def add_boolean(self, b):
        """
        Add a boolean value to the stream.

        :param bool b: boolean value to add
        """
        if b:
            self._append(one_byte)
        else:
            self._append(zero_byte)
        return self

    def add_int(self, n):
        """
        Add an integer to the stream.

        :param int n: integer to add
        """
        self._append(struct.pack(">I", n))
        return self

    def add_int64(self, n):
        """
        Add a 64-bit int to the stream.

        :param int n: long int to add
        """
        self._append(struct.pack(">Q", n))
        return self

    def add_mpint(self, z):
        """
        Add a long int to the stream, encoded as an infinite-precision
        integer.  Zero is written as an empty string.

        :param int z: long int to add
        """
        if z == 0:
            self.add_string(b"")
        else:
            self.add_string(util.deflate_long(z))
        return self

    def add_string(self, s):
        """
        Add a bytestring to the stream.

        :param byte s: bytestring to add
        """
        s = util.b(s)
        self.add_int(len(s))
        self._append(s)
        return self

    def add_list(self, l):  # noqa: E741
        """
        Add a list of strings to the stream.  They are encoded identically to
        a single string of values separated by commas.  (Yes, really, that's
        how SSH2 does it.)

        :param l: list of strings to add
        """
        self.add_string(",".join(l))
        return self
