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
Common API for all public keys.
"""

import base64
import hashlib
from base64 import encodebytes

from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed25519, rsa

from sshkeyfile.message import Message
from sshkeyfile.ssh_exception import FormatError, UnknownKeyType
from sshkeyfile.util import u


class PKey:
    """
    Base class for public keys.

    Also includes some "meta" level convenience constructors such as
    `.from_type_string` and `.from_public_line`.

    Every key carries a ``comment`` (an empty `str` unless one was read from
    a file or assigned by the caller).  The comment plays no part in equality,
    hashing or fingerprints.

    ``==`` compares public parts only, so a public-only key equals the private
    key it was derived from.  Use `identical` to also compare the private
    parts and the comment.
    """

    comment = ""

    @staticmethod
    def from_type_string(key_type, key_bytes):
        """
        Given type `str` & raw `bytes`, return a `PKey` subclass instance.

        For example, ``PKey.from_type_string("ssh-ed25519", <public bytes>)``
        will (if successful) return a new `.Ed25519Key`.

        :param str key_type:
            The key type, eg ``"ssh-ed25519"``.
        :param bytes key_bytes:
            The wire encoded public key, starting with its own type string.

        :returns:
            A `PKey` subclass instance.

        :raises:
            `.UnknownKeyType`, if no registered classes knew about this type;
            `.FormatError`, if the blob has bytes left over after the key.
        """
        from sshkeyfile import key_classes

        for key_class in key_classes:
            if key_type in key_class.identifiers():
                msg = Message(key_bytes)
                key = key_class(msg=msg)
                if msg.remaining():
                    raise FormatError(
                        "{} trailing bytes after {} public key".format(
                            msg.remaining(), key_type
                        )
                    )
                return key
        raise UnknownKeyType(key_type=key_type, key_bytes=key_bytes)

    @staticmethod
    def from_public_blob(key_bytes):
        """
        Decode a wire encoded public key, using its leading type string to
        pick the key class.
        """
        key_type = Message(key_bytes).get_text()
        return PKey.from_type_string(key_type, key_bytes)

    @staticmethod
    def from_public_line(line):
        """
        Parse a single ``<key-type> <base64-blob> [<comment>]`` line, as
        found in ``id_*.pub`` and ``authorized_keys`` files.

        :param str line: the line; `bytes` is accepted too.
        :returns: a public-only `PKey` subclass instance, comment attached.
        """
        blob = PublicBlob.from_string(line)
        key = PKey.from_type_string(blob.key_type, blob.key_blob)
        key.comment = blob.comment or ""
        return key

    @staticmethod
    def from_private_message(msg):
        """
        Decode one private key entry (type string then private fields, no
        comment) from the decrypted section of an ``openssh-key-v1`` file.

        ``msg`` is left positioned just after the entry's last field.
        """
        from sshkeyfile import key_classes

        key_type = msg.get_text()
        for key_class in key_classes:
            if key_type in key_class.identifiers():
                return key_class._from_private_fields(msg, key_type)
        raise UnknownKeyType(key_type=key_type)

    @staticmethod
    def from_pyca_key(key, comment=""):
        """
        Wrap a ``cryptography`` private key object in the matching `PKey`
        subclass.
        """
        # Lazy import to avoid circular import issues
        from sshkeyfile import DSSKey, ECDSAKey, Ed25519Key, RSAKey

        # NOTE: isinstance, because the loaders hand back private backend
        # classes.
        if isinstance(key, rsa.RSAPrivateKey):
            pkey = RSAKey(key=key)
        elif isinstance(key, dsa.DSAPrivateKey):
            pkey = DSSKey.from_pyca_key(key)
        elif isinstance(key, ec.EllipticCurvePrivateKey):
            pkey = ECDSAKey(vals=(key, key.public_key()))
        elif isinstance(key, ed25519.Ed25519PrivateKey):
            pkey = Ed25519Key(vals=(key, key.public_key()))
        else:
            raise UnknownKeyType(key_type=key.__class__.__name__)
        pkey.comment = comment
        return pkey

    @staticmethod
    def from_pyca_public_key(key, comment=""):
        """
        Wrap a ``cryptography`` public key object in the matching `PKey`
        subclass.  The result cannot sign.
        """
        from sshkeyfile import DSSKey, ECDSAKey, Ed25519Key, RSAKey

        if isinstance(key, rsa.RSAPublicKey):
            pkey = RSAKey(key=key)
        elif isinstance(key, dsa.DSAPublicKey):
            numbers = key.public_numbers()
            params = numbers.parameter_numbers
            pkey = DSSKey(vals=(params.p, params.q, params.g, numbers.y))
        elif isinstance(key, ec.EllipticCurvePublicKey):
            pkey = ECDSAKey(vals=(None, key))
        elif isinstance(key, ed25519.Ed25519PublicKey):
            pkey = Ed25519Key(vals=(None, key))
        else:
            raise UnknownKeyType(key_type=key.__class__.__name__)
        pkey.comment = comment
        return pkey

    @classmethod
    def identifiers(cls):
        """
        returns an iterable of key format/name strings this class can handle.

        Most classes only have a single identifier, and thus this default
        implementation suffices; see `.ECDSAKey` for one example of an
        override.
        """
        return [cls.name]

    def __repr__(self):
        comment = ""
        if self.comment:
            comment = f", comment={self.comment!r}"
        return f"PKey(alg={self.algorithm_name}, bits={self.get_bits()}, fp={self.fingerprint}{comment})"  # noqa

    def asbytes(self):
        """
        Return a string of an SSH `.Message` made up of the public part(s) of
        this key.  This string is suitable for passing to `from_type_string`
        to re-create the key object later.
        """
        raise NotImplementedError

    def __bytes__(self):
        return self.asbytes()

    def __eq__(self, other):
        return isinstance(other, PKey) and self._fields == other._fields

    def __hash__(self):
        return hash(self._fields)

    @property
    def _fields(self):
        raise NotImplementedError

    @property
    def _private_fields(self):
        raise NotImplementedError

    def identical(self, other):
        """
        Return ``True`` if ``other`` has the same public part, the same
        private part (or lack of one) and the same comment as this key.
        """
        return (
            self == other
            and self.comment == other.comment
            and self._private_fields == other._private_fields
        )

    def get_name(self):
        """
        Return the name of this private key implementation.

        :return:
            name of this private key type, in SSH terminology, as a `str` (for
            example, ``"ssh-rsa"``).
        """
        return self.name

    @property
    def algorithm_name(self):
        """
        Return the key algorithm identifier for this key.

        Similar to `get_name`, but aimed at pure algorithm name instead of SSH
        protocol field value.
        """
        # Nuke the leading 'ssh-', then any eg ECDSA suffix, as OpenSSH does.
        name = self.get_name().replace("ssh-", "")
        return name.split("-")[0].upper()

    def get_bits(self):
        """
        Return the number of significant bits in this key.  This is useful
        for judging the relative security of a key.

        :return: bits in the key (as an `int`)
        """
        raise NotImplementedError

    def can_sign(self):
        """
        Return ``True`` if this key has the private part necessary for signing
        data.
        """
        return False

    def get_fingerprint(self, hash_name="md5"):
        """
        Return a fingerprint of the public part of this key.  Nothing secret
        is revealed.

        :param str hash_name: any `hashlib` algorithm name; MD5 by default.
        :return: the raw digest `bytes`.
        """
        return hashlib.new(hash_name, self.asbytes()).digest()

    @property
    def fingerprint(self):
        """
        Modern fingerprint property designed to be comparable to OpenSSH.

        Currently only does SHA256 (the OpenSSH default).
        """
        hashy = hashlib.sha256(bytes(self))
        hash_name = hashy.name.upper()
        b64ed = encodebytes(hashy.digest())
        cleaned = u(b64ed).strip().rstrip("=")  # yes, OpenSSH does this too!
        return f"{hash_name}:{cleaned}"

    def get_base64(self):
        """
        Return a base64 string containing the public part of this key.  Nothing
        secret is revealed.  This format is compatible with that used to store
        public key files or recognized host keys.

        :return: a base64 `string <str>` containing the public part of the key.
        """
        return u(encodebytes(self.asbytes())).replace("\n", "")

    def get_public_line(self):
        """
        Return the one-line public key form, ``<name> <base64>[ <comment>]``,
        without a trailing newline.
        """
        line = f"{self.get_name()} {self.get_base64()}"
        if self.comment:
            line += f" {self.comment}"
        return line

    def sign_ssh_data(self, data, algorithm=None):
        """
        Sign a blob of data with this private key, and return a `.Message`
        representing an SSH signature message.

        :param bytes data:
            the data to sign.
        :param str algorithm:
            the signature algorithm to use, if different from the key's
            internal name. Default: ``None``.
        :return: an SSH signature `message <.Message>`.

        :raises: ``ValueError`` -- if this key has no private part.
        """
        raise NotImplementedError

    def _require_private(self, action):
        if not self.can_sign():
            raise ValueError(
                "{} key has no private part to {}".format(
                    self.get_name(), action
                )
            )

    def verify_ssh_sig(self, data, msg):
        """
        Given a blob of data, and an SSH message representing a signature of
        that data, verify that it was signed with this key.

        :param bytes data: the data that was signed.
        :param .Message msg: an SSH signature message
        :return:
            ``True`` if the signature verifies correctly; ``False`` otherwise.
        """
        raise NotImplementedError

    def write_private_entry(self, msg):
        """
        Append this key's type string and private fields, in the order used
        by ``openssh-key-v1`` files, to ``msg``.  The comment is left to the
        caller.

        :raises: ``ValueError`` -- if this key has no private part.
        """
        self._require_private("write")
        msg.add_string(self.get_name())
        self._write_private_fields(msg)

    def _write_private_fields(self, msg):
        raise NotImplementedError

    @classmethod
    def _from_private_fields(cls, msg, key_type):
        raise NotImplementedError

    def _to_pyca_private_key(self):
        """
        Return the ``cryptography`` private key object backing this key, for
        the legacy PEM writers.
        """
        raise NotImplementedError

    def _to_pyca_public_key(self):
        raise NotImplementedError

    def _check_type(self, msg, key_type):
        """
        Perform message type-checking.

        The obtained key type is returned for classes which need to know what
        it was (e.g. ECDSA.)
        """
        # Normalization; most classes have a single key type and give a string,
        # but eg ECDSA is a 1:N mapping.
        key_types = key_type
        if isinstance(key_type, str):
            key_types = [key_types]
        # Can't do much with no message, that should've been handled elsewhere
        if msg is None:
            raise ValueError("Key object may not be empty")
        # First field is always key type. (make sure we rewind before grabbing
        # it - sometimes caller had to do their own introspection first!)
        msg.rewind()
        type_ = msg.get_text()
        if type_ not in key_types:
            err = "Invalid key (class: {}, data type: {})"
            raise FormatError(err.format(self.__class__.__name__, type_))
        return type_


# General construct for an OpenSSH style Public Key blob
# readable from a one-line file of the format:
#     <key-name> <base64-blob> [<comment>]
class PublicBlob:
    """
    OpenSSH plain public key.

    Tries to be as dumb as possible and barely cares about specific
    per-key-type data.

    .. note::

        Most of the time you'll want to call `from_string` for useful
        instantiation, the main constructor is basically "I should be using
        ``attrs`` for this."
    """

    def __init__(self, type_, blob, comment=None):
        """
        Create a new public blob of given type and contents.

        :param str type_: Type indicator, eg ``ssh-rsa``.
        :param bytes blob: The blob bytes themselves.
        :param str comment: A comment, if one was given (e.g. file-based.)
        """
        self.key_type = type_
        self.key_blob = blob
        self.comment = comment

    @classmethod
    def from_string(cls, string):
        """
        Create a public blob from a ``.pub``-style string.
        """
        try:
            string = u(string)
        except UnicodeDecodeError as e:
            raise FormatError("Public key line is not UTF-8: {}".format(e))
        fields = string.split(None, 2)
        if len(fields) < 2:
            msg = "Not enough fields for public blob: {}"
            raise FormatError(msg.format(fields))
        key_type = fields[0]
        try:
            key_blob = base64.b64decode(fields[1], validate=True)
        except ValueError as e:
            raise FormatError("base64 decoding error: {}".format(e))
        try:
            comment = fields[2].strip()
        except IndexError:
            comment = None
        # Verify that the blob message first (string) field matches the
        # key_type
        m = Message(key_blob)
        blob_type = m.get_text()
        if blob_type != key_type:
            deets = "key type={!r}, but blob type={!r}".format(
                key_type, blob_type
            )
            raise FormatError("Invalid PublicBlob contents: {}".format(deets))
        # All good? All good.
        return cls(type_=key_type, blob=key_blob, comment=comment)

    def __str__(self):
        ret = "{} public key".format(self.key_type)
        if self.comment:
            ret += "- {}".format(self.comment)
        return ret

    def __eq__(self, other):
        return (
            isinstance(other, PublicBlob) and self.key_blob == other.key_blob
        )

    def __ne__(self, other):
        return not self == other
