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
Common constants and global variables.
"""
import logging

# Standard bytes constants
zero_byte = b"\x00"
one_byte = b"\x01"
four_byte = b"\x04"


def byte_chr(c):
    return bytes([c])


def byte_ord(c):
    # In case we're handed a string instead of an int.
    if not isinstance(c, int):
        c = ord(c)
    return c


# openssh-key-v1 container
OPENSSH_AUTH_MAGIC = b"openssh-key-v1\x00"
OPENSSH_PEM_TAG = "OPENSSH PRIVATE KEY"
OPENSSH_PEM_LINE_LENGTH = 70

# legacy PEM containers
PEM_LINE_LENGTH = 64

# defaults used when writing new key files
DEFAULT_CIPHER = "aes256-ctr"
DEFAULT_KDF_ROUNDS = 16
KDF_SALT_LENGTH = 16
DEFAULT_PEM_CIPHER = "AES-128-CBC"
DEFAULT_RSA_BITS = 3072
DEFAULT_DSS_BITS = 1024

# the block size used to pad an unencrypted private section
UNENCRYPTED_BLOCK_SIZE = 8

# upper bound for any length prefixed field read off the wire; real key
# material is far smaller, so anything larger is a corrupt or hostile file.
MAX_WIRE_STRING_LENGTH = 1 << 20

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL
