from os.path import dirname, realpath
from pathlib import Path

import pytest

from sshkeyfile import DSSKey, ECDSAKey, Ed25519Key, RSAKey

tests_dir = dirname(realpath(__file__))

slow = pytest.mark.slow


def _support(filename):
    base = Path(tests_dir)
    top = base / filename
    deeper = base / "_support" / filename
    return str(deeper if deeper.exists() else top)


def read_support(filename):
    with open(_support(filename)) as fd:
        return fd.read()


def private_fields(key):
    """
    Every field that ends up in a private key entry, for exact comparisons.
    """
    if isinstance(key, RSAKey):
        return (key.n, key.e, key.d, key.iqmp, key.p, key.q)
    if isinstance(key, DSSKey):
        return (key.p, key.q, key.g, key.y, key.x)
    if isinstance(key, ECDSAKey):
        return (key.curve, key.point, key.scalar)
    if isinstance(key, Ed25519Key):
        return (key.public, key.secret)
    raise TypeError(key)
