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
Useful functions used by the rest of sshkeyfile.
"""

import logging
import threading

from sshkeyfile.common import DEBUG, zero_byte, byte_ord


def inflate_long(s, always_positive=False):
    """turns a normalized byte string into a long-int"""
    return int.from_bytes(s, "big", signed=not always_positive)


def deflate_long(n, add_sign_padding=True):
    """turns a long-int into a normalized byte string"""
    n = int(n)
    if n == 0:
        return zero_byte
    if n > 0 and not add_sign_padding:
        return n.to_bytes((n.bit_length() + 7) // 8, "big")
    # minimal two's complement: one spare bit for the sign
    bits = n.bit_length() if n > 0 else (n + 1).bit_length()
    return n.to_bytes(bits // 8 + 1, "big", signed=True)


def bit_length(n):
    return int(n).bit_length()


def constant_time_bytes_eq(a, b):
    if len(a) != len(b):
        return False
    res = 0
    # noqa: E741
    for i in range(len(a)):  # noqa: E741
        res |= byte_ord(a[i]) ^ byte_ord(b[i])
    return res == 0


def generate_key_bytes(hash_alg, salt, key, nbytes):
    """
    Given a password, passphrase, or other human-source key, scramble it
    through a secure hash into some keyworthy bytes.  This specific algorithm
    is used for encrypting/decrypting traditional PEM private key files
    (OpenSSL's ``EVP_BytesToKey`` with a single iteration).

    :param function hash_alg: A function which creates a new hash object, such
        as ``hashlib.md5``.
    :param salt: data to salt the hash with; only the first 8 bytes are used.
    :type bytes salt: Hash salt
    :param str key: human-entered password or passphrase.
    :param int nbytes: number of bytes to generate.
    :return: Key data, as a `bytearray` the caller is expected to wipe.
    """
    keydata = bytearray()
    digest = bytes()
    if len(salt) > 8:
        salt = salt[:8]
    while nbytes > 0:
        hash_obj = hash_alg()
        if len(digest) > 0:
            hash_obj.update(digest)
        hash_obj.update(b(key))
        hash_obj.update(salt)
        digest = hash_obj.digest()
        size = min(nbytes, len(digest))
        keydata += digest[:size]
        nbytes -= size
    return keydata


_g_thread_data = threading.local()
_g_thread_counter = 0
_g_thread_lock = threading.Lock()


def get_thread_id():
    global _g_thread_data, _g_thread_counter, _g_thread_lock
    try:
        return _g_thread_data.id
    except AttributeError:
        with _g_thread_lock:
            _g_thread_counter += 1
            _g_thread_data.id = _g_thread_counter
        return _g_thread_data.id


def log_to_file(filename, level=DEBUG):
    """send sshkeyfile logs to a logfile,
    if they're not already going somewhere"""
    logger = logging.getLogger("sshkeyfile")
    # the package itself only installs a NullHandler
    if any(
        not isinstance(h, logging.NullHandler) for h in logger.handlers
    ):
        return
    logger.setLevel(level)
    f = open(filename, "a")
    handler = logging.StreamHandler(f)
    frm = "%(levelname)-.3s [%(asctime)s.%(msecs)03d] thr=%(_threadid)-3d"
    frm += " %(name)s: %(message)s"
    handler.setFormatter(logging.Formatter(frm, "%Y%m%d-%H:%M:%S"))
    logger.addHandler(handler)


# make only one filter object, so it doesn't get applied more than once
class PFilter:
    def filter(self, record):
        record._threadid = get_thread_id()
        return True


_pfilter = PFilter()


def get_logger(name):
    logger = logging.getLogger(name)
    logger.addFilter(_pfilter)
    return logger


def b(s, encoding="utf8"):
    """cast unicode or bytes to bytes"""
    if isinstance(s, (bytes, bytearray)):
        return s
    elif isinstance(s, str):
        return s.encode(encoding)
    else:
        raise TypeError(f"Expected unicode or bytes, got {type(s)}")


def u(s, encoding="utf8"):
    """cast bytes or unicode to unicode"""
    if isinstance(s, (bytes, bytearray)):
        return s.decode(encoding)
    elif isinstance(s, str):
        return s
    else:
        raise TypeError(f"Expected unicode or bytes, got {type(s)}")
