import logging
import os

from invoke.vendor.lexicon import Lexicon

import pytest
from sshkeyfile import DSSKey, ECDSAKey, Ed25519Key, PKey, RSAKey


# Perform logging by default; pytest will capture and thus hide it normally,
# presenting it on error/failure. (But also allow turning it off when doing
# very pinpoint debugging - e.g. using breakpoints, so you don't want output
# hiding enabled, but also don't want all the logging to gum up the terminal.)
if not os.environ.get("DISABLE_LOGGING", False):
    logging.basicConfig(
        level=logging.DEBUG,
        # Also make sure to set up timestamping for more sanity when debugging.
        format="[%(relativeCreated)s]\t%(levelname)s:%(name)s:%(message)s",
        datefmt="%H:%M:%S",
    )


key_data = [
    ["ssh-rsa", RSAKey, {"bits": 2048}],
    ["ssh-dss", DSSKey, {"bits": 1024}],
    ["ssh-ed25519", Ed25519Key, {}],
    ["ecdsa-sha2-nistp256", ECDSAKey, {"bits": 256}],
    ["ecdsa-sha2-nistp384", ECDSAKey, {"bits": 384}],
    ["ecdsa-sha2-nistp521", ECDSAKey, {"bits": 521}],
]
for datum in key_data:
    # Add true first member with human-facing short algo name
    short = datum[0].replace("ssh-", "").replace("sha2-nistp", "")
    datum.insert(0, short)


@pytest.fixture(scope="session", params=key_data, ids=lambda x: x[0])
def keys(request):
    """
    Yield an object for each known type of key, with attributes:

    - ``short_type``: short identifier, eg ``rsa`` or ``ecdsa-256``
    - ``full_type``: the "message style" key identifier, eg ``ssh-rsa``, or
      ``ecdsa-sha2-nistp256``.
    - ``key_class``: the `.PKey` subclass
    - ``pkey``: a freshly generated private key, with a comment
    - ``public``: the public half of ``pkey`` as its own object

    Keys are generated once per session; tests must not mutate them.
    """
    short_type, key_type, key_class, params = request.param
    bag = Lexicon()
    bag.short_type = short_type
    bag.full_type = key_type
    bag.key_class = key_class
    bag.pkey = key_class.generate(**params)
    bag.pkey.comment = f"{short_type}@sshkeyfile"
    bag.public = PKey.from_public_blob(bag.pkey.asbytes())
    # Safety checks
    assert bag.pkey.get_name() == key_type
    assert bag.pkey.can_sign()
    assert not bag.public.can_sign()
    yield bag
